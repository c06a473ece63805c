"""
Derived budget records.

Nothing here is persisted: lines and plans are recomputed from the
current markers every time they are needed.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Union

Number = Union[int, float, str, Decimal]


def to_decimal(value: Number) -> Decimal:
    """Convert a cost to Decimal without float representation noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("Booleans are not amounts")
    return Decimal(str(value))


def json_number(value: Decimal) -> Union[int, float]:
    """Plain JSON number for a Decimal amount."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


@dataclass(frozen=True)
class BudgetLine:
    """Aggregated row of the budget for one treatment."""

    treatment_name: str
    count: int
    unit_cost: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.count * self.unit_cost

    def to_dict(self):
        return {
            "name": self.treatment_name,
            "count": self.count,
            "unit_cost": json_number(self.unit_cost),
            "total": json_number(self.line_total),
        }


@dataclass(frozen=True)
class SessionPlan:
    """Split of the grand total across payment sessions."""

    session_count: int
    amount_per_session: Decimal

    def to_dict(self):
        return {
            "sessions": self.session_count,
            "amount_per_session": json_number(self.amount_per_session),
        }
