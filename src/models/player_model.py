from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from database import Base


class Player(Base):
    """Модель игрока: стабильный идентификатор, привязанный к email"""

    __tablename__ = "players"

    id = Column(Integer, primary_key=True)
    player_id = Column(String(64), nullable=False, unique=True)  # UUID игрока
    email = Column(String(255), nullable=False, unique=True)  # Email (в нижнем регистре)
    created_at = Column(DateTime, server_default=func.now())  # Дата первого обращения

    def __repr__(self):
        return f"<Player(player_id={self.player_id}, email={self.email})>"
