from decimal import Decimal

import pytest

from services.redemption_service import RedemptionService
from services.stats_service import get_play_stats, get_sales_stats
from conftest import add_order, add_player


@pytest.mark.asyncio
async def test_stats_after_redemption(session_factory, session, tier_table):
    await add_order(session_factory, "AMIT_47", amount="650")
    await add_order(session_factory, "PARTH_23", email="parth@fplabs.tech", amount="120")
    player_id = await add_player(session_factory)
    outcome = await RedemptionService(tier_table, Decimal("500")).redeem(
        session, "AMIT_47", player_id
    )

    plays = await get_play_stats(session)
    sales = await get_sales_stats(session)

    assert plays["totalPlays"] == 1
    assert plays["distribution"] == [{"prize": outcome.prize_name, "count": 1}]
    assert sales["totalOrders"] == 2
    assert sales["totalRevenue"] == Decimal("770")
    breakdown = {row["isEligible"]: row["count"] for row in sales["eligibilityBreakdown"]}
    assert breakdown == {True: 1, False: 1}


@pytest.mark.asyncio
async def test_stats_on_empty_database(session):
    assert await get_play_stats(session) == {"totalPlays": 0, "distribution": []}
    sales = await get_sales_stats(session)
    assert sales["totalOrders"] == 0
    assert sales["totalRevenue"] == Decimal("0")
