from typing import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from config import DB_URL, DB_ECHO

# Создаем базовый класс для моделей
Base = declarative_base()


def make_engine(url: str = DB_URL, echo: bool = DB_ECHO) -> AsyncEngine:
    """Создает асинхронный движок SQLAlchemy"""
    connect_args = {}
    if url.startswith("sqlite"):
        # SQLite ждет освобождения блокировки записи вместо немедленной ошибки
        connect_args["timeout"] = 30
    return create_async_engine(url, echo=echo, connect_args=connect_args)


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = make_engine()

# Фабрика сессий
async_session = make_session_factory(engine)


async def init_models(bind: AsyncEngine = engine) -> None:
    """Создает таблицы в базе данных"""
    # Импорт регистрирует модели в метаданных
    import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Функция для получения сессии базы данных
async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session
