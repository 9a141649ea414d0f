import os
import json
from decimal import Decimal, InvalidOperation
from typing import Optional, List, Dict, Any

from dotenv import load_dotenv
from pydantic import ValidationError

from errors import ConfigurationError
from schemas import Tier, TierTable
from logger import logger

# Загрузка переменных окружения из .env файла
load_dotenv()

# Настройки базы данных
DB_URL = os.getenv("DB_URL", "sqlite+aiosqlite:///./scratch_win.db")
DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

# Параметры акции
SCRATCH_THRESHOLD = int(os.getenv("SCRATCH_THRESHOLD", "50"))
ORDER_EMAIL_DOMAIN = os.getenv("ORDER_EMAIL_DOMAIN", "")
ORDER_REFERENCE_MAX_ATTEMPTS = int(os.getenv("ORDER_REFERENCE_MAX_ATTEMPTS", "10"))

# Информация о магазине
STORE_INFO = {
    "name": os.getenv("STORE_NAME", "OneCard Diwali Dhamaka"),
    "tagline": os.getenv("STORE_TAGLINE", "शुभ दीपावली!"),
    "description": os.getenv(
        "STORE_DESCRIPTION", "Shop for Rangoli, Diyas, Scented Candles & More!"
    ),
}


def parse_amount(raw: Optional[str], default: str) -> Decimal:
    """Разбирает денежную сумму из переменной окружения"""
    try:
        value = Decimal(raw if raw else default)
    except InvalidOperation as e:
        raise ConfigurationError(f"Некорректная сумма в настройках: {raw!r}") from e
    if value < 0:
        raise ConfigurationError(f"Сумма не может быть отрицательной: {raw!r}")
    return value


MIN_PURCHASE_AMOUNT = parse_amount(os.getenv("MIN_PURCHASE_AMOUNT"), "500")


def _items(*pairs) -> List[Dict[str, Any]]:
    return [{"name": name, "quantity": quantity} for name, quantity in pairs]


TEALIGHT = "Tealight Candle"
HEART = "Heart Tealight Candle"
DAMRU = "Damru Candle"

# Тиры по умолчанию: самые дешевые подарки имеют наибольший вес
DEFAULT_PRIZE_TIERS: List[Dict[str, Any]] = [
    {
        "min": 100,
        "max": 299,
        "name": "Bronze",
        "prizes": [
            {"name": "1 Tealight Candle", "items": _items((TEALIGHT, 1)), "weight": 50},
            {"name": "3 Tealight Candles", "items": _items((TEALIGHT, 3)), "weight": 30},
            {"name": "4 Tealight Candles", "items": _items((TEALIGHT, 4)), "weight": 15},
            {"name": "5 Tealight Candles", "items": _items((TEALIGHT, 5)), "weight": 5},
        ],
    },
    {
        "min": 300,
        "max": 499,
        "name": "Silver",
        "prizes": [
            {"name": "1 Heart + 2 Tealights", "items": _items((HEART, 1), (TEALIGHT, 2)), "weight": 45},
            {"name": "1 Heart + 3 Tealights", "items": _items((HEART, 1), (TEALIGHT, 3)), "weight": 30},
            {"name": "2 Hearts + 2 Tealights", "items": _items((HEART, 2), (TEALIGHT, 2)), "weight": 20},
            {"name": "2 Heart Candles", "items": _items((HEART, 2)), "weight": 5},
        ],
    },
    {
        "min": 500,
        "max": 1000,
        "name": "Gold",
        "prizes": [
            {"name": "1 Damru + 3 Hearts", "items": _items((DAMRU, 1), (HEART, 3)), "weight": 40},
            {"name": "1 Damru + 3 Hearts + 2 Tealights", "items": _items((DAMRU, 1), (HEART, 3), (TEALIGHT, 2)), "weight": 30},
            {"name": "1 Damru + 4 Hearts", "items": _items((DAMRU, 1), (HEART, 4)), "weight": 20},
            {"name": "1 Damru + 5 Hearts", "items": _items((DAMRU, 1), (HEART, 5)), "weight": 8},
            {"name": "2 Damru + 2 Hearts", "items": _items((DAMRU, 2), (HEART, 2)), "weight": 2},
        ],
    },
]


def load_tier_table(raw: Optional[str] = None) -> TierTable:
    """
    Загружает и проверяет таблицу тиров

    Порядок приоритета:
    1) Аргумент raw (JSON-строка)
    2) Переменная окружения PRIZE_TIERS
    3) Тиры по умолчанию

    Args:
        raw: JSON-описание тиров

    Returns:
        TierTable: Неизменяемая таблица тиров

    Raises:
        ConfigurationError: Если конфигурация не разбирается или не проходит проверку
    """
    if raw is None:
        raw = os.getenv("PRIZE_TIERS", "")

    if raw.strip():
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"PRIZE_TIERS не является корректным JSON: {e}") from e
    else:
        data = DEFAULT_PRIZE_TIERS

    if not isinstance(data, list):
        raise ConfigurationError("PRIZE_TIERS должен быть списком тиров")
    if not data:
        raise ConfigurationError("Таблица тиров пуста")

    try:
        tiers = tuple(Tier.model_validate(entry) for entry in data)
    except ValidationError as e:
        raise ConfigurationError(f"Некорректная конфигурация тиров: {e}") from e

    table = TierTable(tiers=tiers)

    for warning in table.range_warnings():
        logger.warning(warning)

    logger.info("Конфигурация тиров подарков:")
    for tier in table.tiers:
        logger.info(
            f"  {tier.name}: ₹{tier.min_amount}-₹{tier.max_amount} ({len(tier.prizes)} подарков)"
        )

    return table
