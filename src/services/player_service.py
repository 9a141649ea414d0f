import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from models.player_model import Player
from models.play_model import Play
from schemas import PlayerSession
from errors import PersistenceError
from logger import logger


async def find_player_by_email(session: AsyncSession, email: str) -> Optional[Player]:
    query = await session.execute(
        select(Player).where(Player.email == email.strip().lower())
    )
    return query.scalars().first()


async def get_or_create_player(
    session: AsyncSession, email: str, player_id: Optional[str] = None
) -> Player:
    """
    Возвращает игрока по email или регистрирует нового

    Email главнее идентификатора, присланного клиентом: вернувшийся с
    другого устройства игрок получает свой прежний player_id.

    Args:
        session: Сессия базы данных
        email: Email игрока
        player_id: Идентификатор, сохраненный на клиенте (необязательный)

    Returns:
        Player: Объект игрока
    """
    email = email.strip().lower()

    player = await find_player_by_email(session, email)
    if player:
        return player

    if player_id:
        taken = await session.execute(select(Player).where(Player.player_id == player_id))
        if taken.scalars().first():
            # Идентификатор уже принадлежит другому email
            player_id = None

    player = Player(player_id=player_id or str(uuid.uuid4()), email=email)
    try:
        session.add(player)
        await session.commit()
    except IntegrityError:
        # Параллельный запрос уже зарегистрировал этот email
        await session.rollback()
        logger.warning(f"Параллельная регистрация игрока {email}, читаем существующего")
        player = await find_player_by_email(session, email)
        if player is None:
            raise PersistenceError(f"Не удалось зарегистрировать игрока {email}")
        return player
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceError(f"Не удалось зарегистрировать игрока {email}") from e

    logger.info(f"Зарегистрирован новый игрок: {player.player_id} ({email})")
    return player


async def get_play_for_player(session: AsyncSession, player_id: str) -> Optional[Play]:
    """Возвращает первый розыгрыш игрока без номера заказа"""
    query = await session.execute(
        select(Play).where(Play.player_id == player_id).order_by(Play.id)
    )
    return query.scalars().first()


async def get_player_session(
    session: AsyncSession, email: str, player_id: Optional[str] = None
) -> PlayerSession:
    """Определяет игрока и сообщает, играл ли он уже"""
    player = await get_or_create_player(session, email, player_id)
    play = await get_play_for_player(session, player.player_id)
    return PlayerSession(
        player_id=player.player_id,
        email=player.email,
        has_played=play is not None,
        prize=play.prize_name if play else None,
    )
