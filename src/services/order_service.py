import random
from decimal import Decimal
from typing import Optional, List, Dict, Any, Union

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models.order_model import Order
from config import ORDER_EMAIL_DOMAIN, ORDER_REFERENCE_MAX_ATTEMPTS
from errors import (
    InvalidEmailError,
    OrderReferenceExhaustedError,
    PersistenceError,
)
from logger import logger


async def find_order(session: AsyncSession, order_ref: str) -> Optional[Order]:
    """
    Ищет заказ по номеру без учета регистра

    Args:
        session: Сессия базы данных
        order_ref: Номер заказа

    Returns:
        Optional[Order]: Заказ или None
    """
    query = await session.execute(
        select(Order)
        .where(func.lower(Order.order_ref) == order_ref.strip().lower())
        .execution_options(populate_existing=True)
    )
    return query.scalars().first()


async def generate_order_reference(
    session: AsyncSession,
    email: str,
    max_attempts: int = ORDER_REFERENCE_MAX_ATTEMPTS,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Генерирует номер заказа из email и случайного двузначного числа

    Пример: amit@fplabs.tech -> AMIT_47

    Args:
        session: Сессия базы данных
        email: Email покупателя
        max_attempts: Максимальное количество попыток подобрать свободный номер
        rng: Генератор случайных чисел

    Returns:
        str: Свободный номер заказа

    Raises:
        OrderReferenceExhaustedError: Если за max_attempts попыток свободный номер не найден
    """
    username = email.split("@")[0].upper()
    rng = rng or random

    for attempt in range(1, max_attempts + 1):
        order_ref = f"{username}_{rng.randint(0, 99):02d}"
        if await find_order(session, order_ref) is None:
            return order_ref
        logger.info(
            f"Номер заказа {order_ref} уже занят, попытка {attempt} из {max_attempts}"
        )

    raise OrderReferenceExhaustedError(
        f"Не удалось подобрать свободный номер заказа для {email} за {max_attempts} попыток"
    )


def normalize_items(items: Union[str, List[Dict[str, Any]], None]) -> Optional[List[Dict[str, Any]]]:
    """Приводит позиции заказа к списку словарей"""
    if items is None:
        return None
    if isinstance(items, str):
        # Строка "Diya, Rangoli" -> [{name: Diya, quantity: 1}, ...]
        return [
            {"name": name.strip(), "quantity": 1}
            for name in items.split(",")
            if name.strip()
        ]
    return [dict(item) for item in items]


async def create_order(
    session: AsyncSession,
    email: str,
    amount: Union[Decimal, int, float, str],
    minimum: Decimal,
    items: Union[str, List[Dict[str, Any]], None] = None,
    email_domain: str = ORDER_EMAIL_DOMAIN,
) -> Order:
    """
    Регистрирует заказ (используется персоналом магазина)

    Args:
        session: Сессия базы данных
        email: Email покупателя
        amount: Сумма покупки
        minimum: Минимальная сумма для участия в акции
        items: Позиции заказа
        email_domain: Допустимый домен email (пустая строка - любой)

    Returns:
        Order: Созданный заказ
    """
    email = email.strip().lower()
    if "@" not in email:
        raise InvalidEmailError(f"Некорректный email: {email}")
    if email_domain and not email.endswith(f"@{email_domain.lower()}"):
        raise InvalidEmailError(f"Email должен быть в домене @{email_domain}")

    purchase_amount = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    if purchase_amount < 0:
        raise ValueError("Сумма заказа не может быть отрицательной")

    order_ref = await generate_order_reference(session, email)
    order = Order(
        order_ref=order_ref,
        email=email,
        amount=purchase_amount,
        items=normalize_items(items),
        is_eligible=purchase_amount >= minimum,
        consumed=False,
    )

    try:
        session.add(order)
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        logger.error(f"Номер заказа {order_ref} занят параллельным запросом: {str(e)}")
        raise PersistenceError(f"Не удалось сохранить заказ {order_ref}") from e
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Ошибка при сохранении заказа: {str(e)}")
        raise PersistenceError("Не удалось сохранить заказ") from e

    logger.info(
        f"Создан заказ {order_ref}: ₹{purchase_amount} для {email} "
        f"({'участвует' if order.is_eligible else 'не участвует'} в акции)"
    )
    return order


async def list_recent_orders(session: AsyncSession, limit: int = 20) -> List[Order]:
    """Возвращает последние заказы"""
    result = await session.execute(
        select(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)
    )
    return list(result.scalars().all())
