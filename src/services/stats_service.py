from decimal import Decimal
from typing import Dict, Any

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from models.order_model import Order
from models.play_model import Play


async def get_play_stats(session: AsyncSession) -> Dict[str, Any]:
    """
    Получает статистику розыгрышей

    Returns:
        dict: Общее количество розыгрышей и распределение по подаркам
    """
    total = await session.execute(select(func.count(Play.id)))
    distribution = await session.execute(
        select(Play.prize_name, func.count(Play.id))
        .group_by(Play.prize_name)
        .order_by(func.count(Play.id).desc())
    )
    return {
        "totalPlays": total.scalar() or 0,
        "distribution": [
            {"prize": prize, "count": count} for prize, count in distribution.all()
        ],
    }


async def get_sales_stats(session: AsyncSession) -> Dict[str, Any]:
    """
    Получает статистику продаж

    Returns:
        dict: Количество заказов, выручка и разбивка по участию в акции
    """
    totals = await session.execute(select(func.count(Order.id), func.sum(Order.amount)))
    total_orders, total_revenue = totals.one()

    eligibility = await session.execute(
        select(Order.is_eligible, func.count(Order.id), func.sum(Order.amount))
        .group_by(Order.is_eligible)
    )

    return {
        "totalOrders": total_orders or 0,
        "totalRevenue": Decimal(str(total_revenue or 0)),
        "eligibilityBreakdown": [
            {
                "isEligible": bool(is_eligible),
                "count": count,
                "totalAmount": Decimal(str(amount or 0)),
            }
            for is_eligible, count, amount in eligibility.all()
        ],
    }
