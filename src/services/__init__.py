from .tier_service import resolve_tier, select_prize
from .order_service import (
    find_order,
    generate_order_reference,
    create_order,
    list_recent_orders,
)
from .eligibility_service import check_order, validate_order
from .redemption_service import RedemptionService
from .player_service import get_or_create_player, get_player_session
from .stats_service import get_play_stats, get_sales_stats

__all__ = [
    "resolve_tier",
    "select_prize",
    "find_order",
    "generate_order_reference",
    "create_order",
    "list_recent_orders",
    "check_order",
    "validate_order",
    "RedemptionService",
    "get_or_create_player",
    "get_player_session",
    "get_play_stats",
    "get_sales_stats",
]
