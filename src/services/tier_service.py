import random
from decimal import Decimal
from typing import Optional, Union

from schemas import Tier, TierTable, PrizeOption
from errors import ConfigurationError
from logger import logger

Amount = Union[Decimal, int, float, str]


def resolve_tier(table: TierTable, amount: Amount) -> Tier:
    """
    Определяет тир по сумме покупки

    Тиры просматриваются в порядке конфигурации, возвращается первый,
    в диапазон которого (включительно) попадает сумма. Если ни один тир
    не подошел (сумма выше всех диапазонов или разрыв в конфигурации),
    возвращается последний тир.

    Args:
        table: Таблица тиров
        amount: Сумма покупки

    Returns:
        Tier: Подходящий тир

    Raises:
        ConfigurationError: Если таблица тиров пуста
    """
    if not table.tiers:
        raise ConfigurationError("Таблица тиров пуста")

    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))

    for tier in table.tiers:
        if tier.contains(value):
            return tier

    fallback = table.tiers[-1]
    logger.info(f"Сумма ₹{value} вне диапазонов тиров, используется тир {fallback.name}")
    return fallback


def select_prize(tier: Tier, rng: Optional[random.Random] = None) -> PrizeOption:
    """
    Выбирает подарок из тира случайно с учетом весов

    Args:
        tier: Тир с вариантами подарков
        rng: Генератор случайных чисел (по умолчанию модуль random)

    Returns:
        PrizeOption: Выбранный подарок

    Raises:
        ConfigurationError: Если в тире нет подарков или суммарный вес не положителен
    """
    prizes = tier.prizes
    if not prizes:
        raise ConfigurationError(f"В тире {tier.name} нет подарков")

    total_weight = sum(prize.weight for prize in prizes)
    if total_weight <= 0:
        raise ConfigurationError(
            f"Суммарный вес подарков тира {tier.name} должен быть положительным"
        )

    remainder = (rng or random).random() * total_weight
    for prize in prizes:
        remainder -= prize.weight
        if remainder <= 0:
            return prize

    # Остаток из-за округления: последний подарок
    return prizes[-1]
