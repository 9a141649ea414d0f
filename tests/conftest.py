import os
import tempfile
from decimal import Decimal

# Логи тестов не должны попадать в рабочую директорию
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "scratch_win_test_logs"))

import pytest
import pytest_asyncio

from config import load_tier_table
from database import make_engine, make_session_factory, init_models
from models import Order, Player


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'scratch_win_test.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def tier_table():
    return load_tier_table("")


async def add_order(
    session_factory, order_ref, email="amit@fplabs.tech", amount="650.00", consumed=False
):
    async with session_factory() as session:
        order = Order(
            order_ref=order_ref,
            email=email,
            amount=Decimal(amount),
            items=[{"name": "Urli", "price": 290, "quantity": 1}],
            is_eligible=Decimal(amount) >= Decimal("500"),
            consumed=consumed,
        )
        session.add(order)
        await session.commit()
        return order.id


async def add_player(session_factory, player_id="player-1", email="amit@fplabs.tech"):
    async with session_factory() as session:
        session.add(Player(player_id=player_id, email=email))
        await session.commit()
    return player_id
