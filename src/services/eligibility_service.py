from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from models.order_model import Order
from schemas import EligibilityReason, EligibilityResult
from services.order_service import find_order
from errors import (
    OrderNotFoundError,
    EmailMismatchError,
    BelowMinimumError,
    AlreadyUsedError,
)
from logger import logger


async def check_order(
    session: AsyncSession, order_ref: str, email: str, minimum: Decimal
) -> Order:
    """
    Проверяет, может ли заказ участвовать в розыгрыше

    Проверки выполняются по порядку до первой неудачной. Проверка
    только читает данные и не защищает от параллельных розыгрышей.

    Args:
        session: Сессия базы данных
        order_ref: Номер заказа
        email: Email, указанный покупателем
        minimum: Минимальная сумма покупки

    Returns:
        Order: Заказ, прошедший все проверки

    Raises:
        OrderNotFoundError: Заказ не найден
        EmailMismatchError: Email не совпадает
        BelowMinimumError: Сумма меньше минимальной
        AlreadyUsedError: Заказ уже использован
    """
    order = await find_order(session, order_ref)
    if order is None:
        raise OrderNotFoundError(order_ref)

    if order.email.lower() != email.strip().lower():
        raise EmailMismatchError(order_ref)

    if Decimal(order.amount) < minimum:
        raise BelowMinimumError(order.order_ref, Decimal(order.amount), minimum)

    if order.consumed:
        raise AlreadyUsedError(order.order_ref)

    return order


async def validate_order(
    session: AsyncSession, order_ref: str, email: str, minimum: Decimal
) -> EligibilityResult:
    """Проверяет заказ и возвращает результат с причиной отказа"""
    try:
        order = await check_order(session, order_ref, email, minimum)
    except OrderNotFoundError:
        return EligibilityResult(
            valid=False,
            reason=EligibilityReason.NOT_FOUND,
            message="Order not found. Please check your Order ID.",
        )
    except EmailMismatchError:
        return EligibilityResult(
            valid=False,
            reason=EligibilityReason.EMAIL_MISMATCH,
            message="Email does not match the order. Please verify your details.",
        )
    except BelowMinimumError as e:
        return EligibilityResult(
            valid=False,
            reason=EligibilityReason.BELOW_MINIMUM,
            message=f"Minimum purchase of ₹{e.minimum} required. Your order: ₹{e.amount}",
            order_id=e.order_ref,
            amount=e.amount,
            minimum=e.minimum,
        )
    except AlreadyUsedError as e:
        return EligibilityResult(
            valid=False,
            reason=EligibilityReason.ALREADY_USED,
            message="This order has already been used for scratch & win.",
            already_used=True,
            order_id=e.order_ref,
        )

    logger.info(f"Заказ {order.order_ref} прошел проверку")
    return EligibilityResult(
        valid=True,
        reason=EligibilityReason.OK,
        message="Order validated! Ready to play.",
        order_id=order.order_ref,
        email=order.email,
        amount=Decimal(order.amount),
        minimum=minimum,
    )
