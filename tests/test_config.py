import json
from decimal import Decimal

import pytest

from config import load_tier_table, parse_amount, DEFAULT_PRIZE_TIERS
from errors import ConfigurationError


def tiers_json(**overrides):
    tier = {
        "min": 100,
        "max": 299,
        "name": "Bronze",
        "prizes": [{"name": "X", "items": [{"name": "Tealight Candle", "quantity": 1}], "weight": 1}],
    }
    tier.update(overrides)
    return json.dumps([tier])


def test_blank_configuration_uses_default_tiers():
    table = load_tier_table("")
    assert [tier.name for tier in table.tiers] == [t["name"] for t in DEFAULT_PRIZE_TIERS]


def test_default_tiers_report_fractional_gaps():
    # 299.01-299.99 и 499.01-499.99 не попадают ни в один тир
    table = load_tier_table("")
    warnings = table.range_warnings()
    assert len(warnings) == 2
    assert all("Разрыв" in warning for warning in warnings)
    assert "Bronze" in warnings[0] and "Silver" in warnings[0]
    assert "Silver" in warnings[1] and "Gold" in warnings[1]


def test_contiguous_decimal_ranges_report_nothing():
    raw = json.dumps(
        [
            {"min": 0, "max": "299.99", "name": "A", "prizes": [{"name": "X", "weight": 1}]},
            {"min": 300, "max": "499.99", "name": "B", "prizes": [{"name": "Y", "weight": 1}]},
        ]
    )
    assert load_tier_table(raw).range_warnings() == []


def test_environment_configuration_is_used(monkeypatch):
    monkeypatch.setenv("PRIZE_TIERS", tiers_json(name="Platinum"))
    table = load_tier_table()
    assert table.tiers[0].name == "Platinum"


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[]",
        '{"min": 1}',
        tiers_json(prizes=[]),
        tiers_json(prizes=[{"name": "X", "weight": 0}]),
        tiers_json(prizes=[{"name": "X", "weight": -5}]),
        tiers_json(min=300, max=100),
        tiers_json(name=""),
    ],
)
def test_invalid_configuration_is_rejected_at_load(raw):
    with pytest.raises(ConfigurationError):
        load_tier_table(raw)


def test_gaps_and_overlaps_are_reported_not_rejected():
    raw = json.dumps(
        [
            {"min": 0, "max": 299, "name": "A", "prizes": [{"name": "X", "weight": 1}]},
            {"min": 250, "max": 499, "name": "B", "prizes": [{"name": "Y", "weight": 1}]},
            {"min": 900, "max": 1000, "name": "C", "prizes": [{"name": "Z", "weight": 1}]},
        ]
    )
    table = load_tier_table(raw)
    warnings = table.range_warnings()
    assert len(warnings) == 2
    assert "пересекаются" in warnings[0]
    assert "Разрыв" in warnings[1]


def test_parse_amount():
    assert parse_amount(None, "500") == Decimal("500")
    assert parse_amount("750.50", "500") == Decimal("750.50")
    with pytest.raises(ConfigurationError):
        parse_amount("abc", "500")
    with pytest.raises(ConfigurationError):
        parse_amount("-1", "500")
