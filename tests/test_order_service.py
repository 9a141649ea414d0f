from decimal import Decimal
from unittest.mock import Mock

import pytest

from errors import InvalidEmailError, OrderReferenceExhaustedError
from services.order_service import (
    create_order,
    find_order,
    generate_order_reference,
    list_recent_orders,
    normalize_items,
)
from conftest import add_order

MINIMUM = Decimal("500")


@pytest.mark.asyncio
async def test_reference_is_built_from_email(session):
    rng = Mock(randint=Mock(return_value=7))
    order_ref = await generate_order_reference(session, "amit@fplabs.tech", rng=rng)
    assert order_ref == "AMIT_07"


@pytest.mark.asyncio
async def test_reference_generation_retries_on_collision(session_factory, session):
    await add_order(session_factory, "AMIT_47")
    rng = Mock(randint=Mock(side_effect=[47, 47, 12]))

    order_ref = await generate_order_reference(session, "amit@fplabs.tech", rng=rng)

    assert order_ref == "AMIT_12"
    assert rng.randint.call_count == 3


@pytest.mark.asyncio
async def test_reference_generation_is_bounded(session_factory, session):
    await add_order(session_factory, "amit_47")
    rng = Mock(randint=Mock(return_value=47))

    with pytest.raises(OrderReferenceExhaustedError):
        await generate_order_reference(session, "amit@fplabs.tech", max_attempts=4, rng=rng)

    assert rng.randint.call_count == 4


@pytest.mark.asyncio
async def test_create_order_marks_eligibility(session):
    eligible = await create_order(session, "Amit@FPLabs.tech", "650.50", MINIMUM, "Urli, Tulip")
    small = await create_order(session, "parth@fplabs.tech", 120, MINIMUM)

    assert eligible.email == "amit@fplabs.tech"
    assert eligible.order_ref.startswith("AMIT_")
    assert eligible.is_eligible is True
    assert eligible.consumed is False
    assert eligible.items == [
        {"name": "Urli", "quantity": 1},
        {"name": "Tulip", "quantity": 1},
    ]
    assert small.is_eligible is False
    assert (await find_order(session, eligible.order_ref.lower())).id == eligible.id


@pytest.mark.asyncio
async def test_create_order_enforces_email_domain(session):
    with pytest.raises(InvalidEmailError):
        await create_order(session, "amit@gmail.com", 650, MINIMUM, email_domain="fplabs.tech")
    with pytest.raises(InvalidEmailError):
        await create_order(session, "not-an-email", 650, MINIMUM)


@pytest.mark.asyncio
async def test_list_recent_orders(session_factory, session):
    await add_order(session_factory, "AMIT_01")
    await add_order(session_factory, "AMIT_02")

    orders = await list_recent_orders(session, limit=1)

    assert [order.order_ref for order in orders] == ["AMIT_02"]


def test_normalize_items():
    assert normalize_items(None) is None
    assert normalize_items(" Diya ,, Rangoli") == [
        {"name": "Diya", "quantity": 1},
        {"name": "Rangoli", "quantity": 1},
    ]
    assert normalize_items([{"name": "Moti", "price": 1000, "quantity": 2}]) == [
        {"name": "Moti", "price": 1000, "quantity": 2}
    ]
