from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, backref
from database import Base


class Play(Base):
    """Модель розыгрыша: подарок, навсегда закрепленный за заказом"""

    __tablename__ = "plays"

    id = Column(Integer, primary_key=True)  # ID розыгрыша
    order_id = Column(
        Integer, ForeignKey("orders.id"), nullable=False, unique=True
    )  # Ссылка на заказ (один розыгрыш на заказ)
    player_id = Column(
        String(64), ForeignKey("players.player_id"), nullable=False
    )  # Ссылка на игрока
    email = Column(String(255), nullable=False)  # Email на момент розыгрыша
    prize_name = Column(String(255), nullable=False)  # Название подарка
    prize_details = Column(JSON, nullable=True)  # Состав подарка в том виде, как он задан в конфигурации
    tier_name = Column(String(64), nullable=True)  # Тир на момент розыгрыша
    played_at = Column(DateTime, server_default=func.now())  # Дата розыгрыша

    # Отношения
    order = relationship("Order", backref=backref("play", uselist=False))
    player = relationship("Player", backref="plays")

    def __repr__(self):
        return f"<Play(id={self.id}, order_id={self.order_id}, prize={self.prize_name})>"
