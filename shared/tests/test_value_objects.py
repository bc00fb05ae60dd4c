from datetime import date
from decimal import Decimal

import pytest

from shared.domain.value_objects import DateRange, Money, to_minor_units


def test_money_multiplies_by_nights():
    assert Money(Decimal("100.00")) * 3 == Money(Decimal("300.00"), "USD")


def test_money_normalizes_currency_and_rejects_negative():
    assert Money("12.50", "usd").currency == "USD"
    with pytest.raises(ValueError):
        Money(Decimal("-1"))


def test_money_rejects_unknown_currency_and_float_factors():
    with pytest.raises(ValueError):
        Money(Decimal("1"), "KZT")
    with pytest.raises(TypeError):
        Money(Decimal("1")) * 1.5


def test_minor_units_truncate_without_rounding():
    assert to_minor_units(Decimal("300.00")) == 30000
    assert to_minor_units(Decimal("10.999")) == 1099
    assert Money(Decimal("0.015")).minor_units == 1


def test_date_range_counts_nights():
    stay = DateRange(date(2025, 6, 1), date(2025, 6, 4))
    assert len(stay) == 3
    assert str(stay) == "2025-06-01 - 2025-06-04"


def test_date_range_requires_checkout_after_checkin():
    with pytest.raises(ValueError):
        DateRange(date(2025, 6, 4), date(2025, 6, 4))


@pytest.mark.parametrize(
    "other, expected",
    [
        (DateRange(date(2025, 6, 3), date(2025, 6, 6)), True),
        (DateRange(date(2025, 5, 28), date(2025, 6, 2)), True),
        (DateRange(date(2025, 6, 4), date(2025, 6, 6)), False),
        (DateRange(date(2025, 5, 28), date(2025, 6, 1)), False),
    ],
)
def test_date_range_overlap_is_half_open(other, expected):
    stay = DateRange(date(2025, 6, 1), date(2025, 6, 4))
    assert stay.overlaps_with(other) is expected
    assert other.overlaps_with(stay) is expected
