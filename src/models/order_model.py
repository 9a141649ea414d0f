from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Numeric,
    Boolean,
    JSON,
    Index,
)
from sqlalchemy.sql import func
from database import Base


class Order(Base):
    """Модель заказа, дающего право на один розыгрыш"""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)  # ID заказа
    order_ref = Column(String(64), nullable=False, unique=True)  # Номер заказа (AMIT_47)
    email = Column(String(255), nullable=False)  # Email покупателя (в нижнем регистре)
    amount = Column(Numeric(10, 2), nullable=False)  # Сумма покупки
    items = Column(JSON, nullable=True)  # Позиции заказа [{name, price, quantity}]
    is_eligible = Column(Boolean, nullable=False, default=False)  # Сумма >= минимальной
    consumed = Column(
        Boolean, nullable=False, default=False
    )  # Заказ уже использован для розыгрыша
    created_at = Column(DateTime, server_default=func.now())  # Дата создания

    def __repr__(self):
        return f"<Order(id={self.id}, order_ref={self.order_ref}, consumed={self.consumed})>"


# Номер заказа уникален без учета регистра
Index("ix_orders_order_ref_lower", func.lower(Order.order_ref), unique=True)
