"""
Results and output structures for FinEventLab.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from .events import ScenarioEvent

FLOW_COLUMNS = ["income", "expense", "net"]
STOCK_COLUMNS = ["balance", "cash", "assets", "total"]


@dataclass(frozen=True)
class FiredEvent:
    """An event that fired in a month, with its signed contribution."""

    event: ScenarioEvent
    amount: float

    @property
    def name(self) -> str:
        return self.event.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.event.name,
            "type": self.event.type.value,
            "amount": self.amount,
        }


@dataclass(frozen=True)
class CashflowRecord:
    """Net cashflow of one month and the events that produced it, in declared order."""

    net_amount: float
    fired_events: tuple[FiredEvent, ...] = ()

    @property
    def income(self) -> float:
        return sum(f.amount for f in self.fired_events if f.amount > 0)

    @property
    def expense(self) -> float:
        return -sum(f.amount for f in self.fired_events if f.amount < 0)

    def fired_names(self) -> list[str]:
        return [f.event.name for f in self.fired_events]

    def to_dict(self) -> dict[str, Any]:
        return {
            "net_amount": self.net_amount,
            "fired_events": [f.to_dict() for f in self.fired_events],
        }


@dataclass(frozen=True)
class ScenarioResult:
    """
    Month-keyed output of a simulation run.

    ``cashflow`` and ``balance`` share the same ordered month-keys
    (``"YYYY-MM"``). For every month ``balance[m] == balance[m-1] +
    cashflow[m].net_amount``, starting from the initial balance. The engine
    accumulates in Decimal, where the identity is exact; each stored float is
    the nearest float to its exact value, so on the floats themselves the
    identity holds to within rounding (compare with ``pytest.approx`` or
    ``math.isclose``). Balances never drift: ``0.1`` earned for three months
    is stored as ``0.3``.

    **Example:**
        ```python
        result = scenario.run(ld(2025, 1, 1), ld(2025, 12, 1), initial_balance=5000)
        result.balance["2025-06"]
        result.first_fired("Bonus")   # "2025-03" or None
        df = result.to_frame()        # PeriodIndex, income/expense/net/balance
        ```
    """

    cashflow: dict[str, CashflowRecord] = field(default_factory=dict)
    balance: dict[str, float] = field(default_factory=dict)

    @property
    def months(self) -> list[str]:
        return list(self.cashflow.keys())

    def is_empty(self) -> bool:
        return not self.cashflow

    def first_fired(self, name: str) -> str | None:
        """Month-key of the first month ``name`` fired, or None."""
        for month, record in self.cashflow.items():
            if name in record.fired_names():
                return month
        return None

    def fired_months(self, name: str) -> list[str]:
        return [m for m, r in self.cashflow.items() if name in r.fired_names()]

    def _frame_columns(self) -> dict[str, list[float]]:
        records = self.cashflow.values()
        return {
            "income": [r.income for r in records],
            "expense": [r.expense for r in records],
            "net": [r.net_amount for r in records],
            "balance": [self.balance[m] for m in self.cashflow],
        }

    def to_frame(self) -> pd.DataFrame:
        """Monthly DataFrame with PeriodIndex 'M' (empty frame for empty runs)."""
        index = pd.PeriodIndex(self.months, freq="M", name="month")
        return pd.DataFrame(self._frame_columns(), index=index)

    def yearly(self) -> pd.DataFrame:
        """Return yearly aggregated data."""
        return aggregate_totals(self.to_frame(), "Y")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "cashflow": {m: r.to_dict() for m, r in self.cashflow.items()},
            "balance": dict(self.balance),
        }


@dataclass(frozen=True)
class ScenarioResultExtended(ScenarioResult):
    """
    Result of a run with portfolio tracking.

    ``balance`` equals ``total_balance``; ``total_balance[m] ==
    cash_balance[m] + sum(asset_balance[m].values())`` for every month.
    """

    cash_balance: dict[str, float] = field(default_factory=dict)
    asset_balance: dict[str, dict[str, float]] = field(default_factory=dict)
    total_balance: dict[str, float] = field(default_factory=dict)

    def _frame_columns(self) -> dict[str, list[float]]:
        columns = super()._frame_columns()
        columns["cash"] = [self.cash_balance[m] for m in self.cashflow]
        columns["assets"] = [sum(self.asset_balance[m].values()) for m in self.cashflow]
        columns["total"] = [self.total_balance[m] for m in self.cashflow]
        return columns

    def asset_frame(self) -> pd.DataFrame:
        """Per-asset balances, one column per asset id."""
        index = pd.PeriodIndex(self.months, freq="M", name="month")
        return pd.DataFrame(
            [self.asset_balance[m] for m in self.cashflow], index=index
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["cash_balance"] = dict(self.cash_balance)
        data["asset_balance"] = {m: dict(v) for m, v in self.asset_balance.items()}
        data["total_balance"] = dict(self.total_balance)
        return data


def aggregate_totals(df: pd.DataFrame, freq: str = "Y") -> pd.DataFrame:
    """
    Aggregate monthly totals to a coarser frequency.

    Flows (income, expense, net) are summed over the period; stocks
    (balance, cash, assets, total) take the period-end value.

    Args:
        df: Monthly DataFrame with PeriodIndex
        freq: Target frequency ('M', 'Q', 'Y')

    Returns:
        Aggregated DataFrame with PeriodIndex
    """
    if freq.upper() in ["M", "MONTHLY"]:
        return df

    agg = {col: ("sum" if col in FLOW_COLUMNS else "last") for col in df.columns}
    out = df.groupby(df.index.asfreq(freq)).agg(agg)
    return out.reindex(columns=df.columns)
