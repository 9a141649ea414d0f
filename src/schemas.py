"""
Схемы данных акции

Конфигурация тиров (Tier, PrizeOption) и результаты операций
(EligibilityResult, RedemptionOutcome, PlayerSession) описаны Pydantic-моделями.
Модели конфигурации неизменяемы: таблица тиров собирается один раз при
запуске и передается в сервисы явно.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Шаг суммы заказа (Numeric(10, 2) в таблице orders)
AMOUNT_STEP = Decimal("0.01")


class PrizeOption(BaseModel):
    """Вариант подарка с относительным весом внутри тира"""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    # Состав подарка хранится в том виде, в каком он задан в конфигурации
    items: Tuple[Dict[str, Any], ...] = ()
    weight: float = Field(..., gt=0, allow_inf_nan=False)

    def details(self) -> List[Dict[str, Any]]:
        return [dict(item) for item in self.items]


class Tier(BaseModel):
    """Диапазон суммы покупки (границы включительно) со своим набором подарков"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    min_amount: Decimal = Field(..., alias="min", ge=0)
    max_amount: Decimal = Field(..., alias="max", ge=0)
    name: str = Field(..., min_length=1)
    prizes: Tuple[PrizeOption, ...] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_range(self) -> "Tier":
        if self.min_amount > self.max_amount:
            raise ValueError(
                f"min ({self.min_amount}) больше max ({self.max_amount}) в тире {self.name}"
            )
        return self

    def contains(self, amount: Decimal) -> bool:
        return self.min_amount <= amount <= self.max_amount


class TierTable(BaseModel):
    """Упорядоченная таблица тиров"""

    model_config = ConfigDict(frozen=True)

    tiers: Tuple[Tier, ...] = ()

    def range_warnings(self) -> List[str]:
        """
        Ищет разрывы и пересечения между соседними диапазонами

        Returns:
            List[str]: Описания найденных проблем (пустой список, если их нет)
        """
        warnings = []
        for prev, current in zip(self.tiers, self.tiers[1:]):
            if current.min_amount <= prev.max_amount:
                warnings.append(
                    f"Тиры {prev.name} и {current.name} пересекаются: "
                    f"{prev.max_amount} >= {current.min_amount}"
                )
            elif current.min_amount > prev.max_amount + AMOUNT_STEP:
                # Суммы дробные: между 299 и 300 остаются 299.01-299.99
                warnings.append(
                    f"Разрыв между тирами {prev.name} и {current.name}: "
                    f"{prev.max_amount}..{current.min_amount}"
                )
        return warnings


class EligibilityReason(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    EMAIL_MISMATCH = "email_mismatch"
    BELOW_MINIMUM = "below_minimum"
    ALREADY_USED = "already_used"


class ApiModel(BaseModel):
    """Базовая модель ответов с camelCase-полями"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EligibilityResult(ApiModel):
    valid: bool
    reason: EligibilityReason
    message: str
    already_used: bool = False
    order_id: Optional[str] = None
    email: Optional[str] = None
    amount: Optional[Decimal] = None
    minimum: Optional[Decimal] = None


class RedemptionOutcome(ApiModel):
    already_redeemed: bool
    prize_name: str
    prize_details: List[Dict[str, Any]] = Field(default_factory=list)
    tier_name: str


class PlayerSession(ApiModel):
    player_id: str
    email: str
    has_played: bool
    prize: Optional[str] = None
