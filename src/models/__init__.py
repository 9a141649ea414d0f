from .order_model import Order
from .player_model import Player
from .play_model import Play

__all__ = ["Order", "Player", "Play"]
