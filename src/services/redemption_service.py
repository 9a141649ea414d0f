import asyncio
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models.order_model import Order
from models.play_model import Play
from schemas import Tier, TierTable, PrizeOption, RedemptionOutcome
from services.order_service import find_order
from services.tier_service import resolve_tier, select_prize
from errors import (
    RedemptionError,
    InvalidOrderError,
    BelowMinimumError,
    PersistenceError,
)
from logger import logger, error_logging_context

UNKNOWN = "Unknown"

PrizeSelector = Callable[[Tier], PrizeOption]


class RedemptionService:
    """
    Розыгрыш подарка по заказу

    Заказ переходит из состояния "не использован" в "использован" не более
    одного раза. Переход выполняется условным UPDATE (consumed = false) в
    одной транзакции со вставкой записи о розыгрыше; уникальный order_id в
    таблице plays отсекает вторую запись, если флаг и записи разошлись.
    Проигравший параллельный запрос получает уже сохраненный подарок.

    Ошибки БД не повторяются автоматически: повтор после неясного коммита
    мог бы выдать второй подарок.
    """

    def __init__(
        self,
        tier_table: TierTable,
        minimum_purchase_amount: Decimal,
        prize_selector: PrizeSelector = select_prize,
    ):
        self.tier_table = tier_table
        self.minimum_purchase_amount = minimum_purchase_amount
        self.prize_selector = prize_selector

    async def redeem(
        self,
        session: AsyncSession,
        order_ref: str,
        player_id: str,
        email: Optional[str] = None,
    ) -> RedemptionOutcome:
        """
        Проводит розыгрыш по заказу или возвращает уже выданный подарок

        Args:
            session: Сессия базы данных (без открытой транзакции)
            order_ref: Номер заказа (без учета регистра)
            player_id: Идентификатор игрока
            email: Email игрока (по умолчанию email заказа)

        Returns:
            RedemptionOutcome: Подарок, тир и признак повторного запроса

        Raises:
            InvalidOrderError: Заказ не найден
            BelowMinimumError: Сумма заказа меньше минимальной
            PersistenceError: Ошибка БД, транзакция откатена
        """
        try:
            order = await find_order(session, order_ref)
        except SQLAlchemyError as e:
            await session.rollback()
            raise PersistenceError(f"Не удалось загрузить заказ {order_ref}") from e

        if order is None:
            logger.warning(f"Попытка розыгрыша по несуществующему заказу {order_ref}")
            raise InvalidOrderError(order_ref)

        # После отката объект заказа истекает, поэтому значения копируются заранее
        order_id = order.id
        canonical_ref = order.order_ref
        amount = Decimal(order.amount)
        play_email = email or order.email

        if order.consumed:
            return await self._replay(session, order_id, canonical_ref)

        if amount < self.minimum_purchase_amount:
            raise BelowMinimumError(canonical_ref, amount, self.minimum_purchase_amount)

        tier = resolve_tier(self.tier_table, amount)

        prize = await self._commit_play(
            session, order_id, canonical_ref, player_id, play_email, tier
        )
        if prize is None:
            return await self._replay(session, order_id, canonical_ref)

        logger.info(
            f"Заказ {canonical_ref}: выдан подарок '{prize.name}' (тир {tier.name}) игроку {player_id}"
        )
        return RedemptionOutcome(
            already_redeemed=False,
            prize_name=prize.name,
            prize_details=prize.details(),
            tier_name=tier.name,
        )

    async def _commit_play(
        self,
        session: AsyncSession,
        order_id: int,
        order_ref: str,
        player_id: str,
        email: str,
        tier: Tier,
    ) -> Optional[PrizeOption]:
        """
        Атомарно помечает заказ использованным, разыгрывает и сохраняет подарок

        Подарок выбирается только после успешной смены флага, поэтому
        проигравший запрос не делает лишнего розыгрыша.

        Returns:
            Optional[PrizeOption]: Выданный подарок или None, если заказ уже
            использован другим запросом
        """
        try:
            with error_logging_context(f"Розыгрыш по заказу {order_ref}"):
                # UPDATE блокирует строку заказа до конца транзакции
                flipped = await session.execute(
                    update(Order)
                    .where(Order.id == order_id, Order.consumed.is_(False))
                    .values(consumed=True)
                    .execution_options(synchronize_session=False)
                )
                if flipped.rowcount != 1:
                    await session.rollback()
                    logger.info(f"Заказ {order_ref} уже использован параллельным запросом")
                    return None

                # Флаг отставал от записи: фиксируем флаг и отдаем сохраненный подарок
                if await self._find_play(session, order_id, order_ref) is not None:
                    await session.commit()
                    logger.warning(
                        f"Заказ {order_ref} не был помечен использованным, флаг восстановлен"
                    )
                    return None

                prize = self.prize_selector(tier)
                session.add(
                    Play(
                        order_id=order_id,
                        player_id=player_id,
                        email=email,
                        prize_name=prize.name,
                        prize_details=prize.details(),
                        tier_name=tier.name,
                    )
                )
                await session.flush()
                await session.commit()
                return prize
        except asyncio.CancelledError:
            # Отмененный запрос не оставляет ни флага, ни записи
            await session.rollback()
            logger.warning(f"Розыгрыш по заказу {order_ref} отменен, транзакция откатена")
            raise
        except IntegrityError as e:
            await session.rollback()
            # Конфликт по order_id означает, что розыгрыш уже сохранен
            if await self._find_play(session, order_id, order_ref) is None:
                raise PersistenceError(
                    f"Нарушено ограничение БД при розыгрыше по заказу {order_ref}"
                ) from e
            logger.warning(
                f"Запись о розыгрыше по заказу {order_ref} уже существует, возвращаем ее"
            )
            return None
        except RedemptionError:
            await session.rollback()
            raise
        except SQLAlchemyError as e:
            await session.rollback()
            raise PersistenceError(
                f"Не удалось сохранить розыгрыш по заказу {order_ref}"
            ) from e

    async def _replay(
        self, session: AsyncSession, order_id: int, order_ref: str
    ) -> RedemptionOutcome:
        """Возвращает сохраненный подарок без повторного розыгрыша"""
        play = await self._find_play(session, order_id, order_ref)

        if play is None:
            logger.warning(
                f"Нарушение целостности: заказ {order_ref} использован, но запись о розыгрыше не найдена"
            )
            return RedemptionOutcome(
                already_redeemed=True,
                prize_name=UNKNOWN,
                prize_details=[],
                tier_name=UNKNOWN,
            )

        logger.info(f"Повторный запрос по заказу {order_ref}: подарок '{play.prize_name}'")
        return RedemptionOutcome(
            already_redeemed=True,
            prize_name=play.prize_name,
            prize_details=play.prize_details or [],
            tier_name=play.tier_name or UNKNOWN,
        )

    async def _find_play(
        self, session: AsyncSession, order_id: int, order_ref: str
    ) -> Optional[Play]:
        try:
            query = await session.execute(select(Play).where(Play.order_id == order_id))
            return query.scalars().first()
        except SQLAlchemyError as e:
            await session.rollback()
            raise PersistenceError(
                f"Не удалось загрузить розыгрыш по заказу {order_ref}"
            ) from e
