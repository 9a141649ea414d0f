from decimal import Decimal

import pytest

from errors import OrderNotFoundError, BelowMinimumError
from schemas import EligibilityReason
from services.eligibility_service import check_order, validate_order
from conftest import add_order

MINIMUM = Decimal("500")


@pytest.mark.asyncio
async def test_valid_order_is_case_insensitive(session_factory, session):
    await add_order(session_factory, "AMIT_47", email="amit@fplabs.tech", amount="650")

    result = await validate_order(session, "amit_47", "Amit@FPLabs.tech", MINIMUM)

    assert result.valid is True
    assert result.reason == EligibilityReason.OK
    assert result.order_id == "AMIT_47"
    assert result.amount == Decimal("650")


@pytest.mark.asyncio
async def test_unknown_order(session):
    result = await validate_order(session, "NOBODY_01", "amit@fplabs.tech", MINIMUM)
    assert result.valid is False
    assert result.reason == EligibilityReason.NOT_FOUND


@pytest.mark.asyncio
async def test_email_mismatch(session_factory, session):
    await add_order(session_factory, "AMIT_47")
    result = await validate_order(session, "AMIT_47", "parth@fplabs.tech", MINIMUM)
    assert result.reason == EligibilityReason.EMAIL_MISMATCH


@pytest.mark.asyncio
async def test_below_minimum_surfaces_amount_and_minimum(session_factory, session):
    await add_order(session_factory, "AMIT_47", amount="320")

    result = await validate_order(session, "AMIT_47", "amit@fplabs.tech", MINIMUM)

    assert result.reason == EligibilityReason.BELOW_MINIMUM
    assert result.amount == Decimal("320")
    assert result.minimum == MINIMUM
    assert "₹500" in result.message


@pytest.mark.asyncio
async def test_already_used_is_reported_separately(session_factory, session):
    await add_order(session_factory, "AMIT_47", consumed=True)

    result = await validate_order(session, "AMIT_47", "amit@fplabs.tech", MINIMUM)

    assert result.valid is False
    assert result.already_used is True
    assert result.reason == EligibilityReason.ALREADY_USED


@pytest.mark.asyncio
async def test_checks_short_circuit_in_order(session_factory, session):
    # Email не совпадает и сумма мала: побеждает первая проверка
    await add_order(session_factory, "AMIT_47", amount="10", consumed=True)
    result = await validate_order(session, "AMIT_47", "other@fplabs.tech", MINIMUM)
    assert result.reason == EligibilityReason.EMAIL_MISMATCH


@pytest.mark.asyncio
async def test_check_order_raises_specific_errors(session_factory, session):
    await add_order(session_factory, "AMIT_47", amount="100")

    with pytest.raises(OrderNotFoundError):
        await check_order(session, "PARTH_01", "amit@fplabs.tech", MINIMUM)

    with pytest.raises(BelowMinimumError) as exc_info:
        await check_order(session, "AMIT_47", "amit@fplabs.tech", MINIMUM)
    assert exc_info.value.amount == Decimal("100")
    assert exc_info.value.minimum == MINIMUM
