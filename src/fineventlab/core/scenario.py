"""
Scenario engine for FinEventLab.

A :class:`Scenario` is an ordered, name-unique set of events. ``run_scenario``
steps through the months of a date range, decides which events fire, and
folds their signed amounts into running cash (and optional asset) balances.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

from .conditions import (
    Condition,
    DateInRange,
    DateIs,
    EventHappened,
    IncomeIsAbove,
    NetworthIsAbove,
)
from .dividends import generate_dividend_events
from .errors import ConfigError
from .events import ScenarioEvent, event_from_dict, is_event_active_in_month
from .exceptions import ScenarioValidationError
from .local_date import LocalDate, month_range
from .portfolio import PortfolioAsset
from .registry import EventRegistry
from .results import CashflowRecord, FiredEvent, ScenarioResult, ScenarioResultExtended
from .utils import monthly_rate
from .validation import ValidationReport

logger = logging.getLogger(__name__)


def _dec(value: float) -> Decimal:
    return Decimal(str(value))


@dataclass(frozen=True)
class ScenarioConfig:
    """Configuration options for scenario execution."""

    growth_rate: float = 0.0
    dividend_yield: float = 0.0
    warn_on_unresolved: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "growth_rate": self.growth_rate,
            "dividend_yield": self.dividend_yield,
            "warn_on_unresolved": self.warn_on_unresolved,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ScenarioConfig:
        data = data or {}
        return cls(
            growth_rate=float(data.get("growth_rate", 0.0)),
            dividend_yield=float(data.get("dividend_yield", 0.0)),
            warn_on_unresolved=bool(data.get("warn_on_unresolved", True)),
        )


@dataclass(frozen=True)
class Scenario:
    """
    An ordered set of uniquely named events plus run configuration.

    Construction validates the event graph: duplicate names are always
    rejected, and dependency cycles (``event-happened`` / ``income-is-above``
    references that loop back) are rejected unless ``validate_triggers`` is
    False. An accepted cycle is a permanent deadlock: none of its events
    ever fires. References to unknown events are accepted; such conditions
    are never satisfied.

    Attributes:
        name: Human-readable name for the scenario
        events: Events in declared order (order drives output ordering)
        config: Growth and dividend settings used by ``run``
        validate_triggers: Reject dependency cycles at construction

    **Example Usage:**
        ```python
        from fineventlab import EventHappened, Scenario, ld, make_one_off, make_recurring

        scenario = Scenario(
            name="Starter",
            events=[
                make_recurring("Salary", 3000, "income", "monthly", ld(2025, 1, 1)),
                make_one_off("Buy Car", 20000, "expense", ld(2025, 9, 1)),
                make_recurring(
                    "Car Insurance", 80, "expense", "monthly", ld(2025, 1, 1),
                    unlocked_by=[EventHappened("Buy Car")],
                ),
            ],
        )
        result = scenario.run(ld(2025, 1, 1), ld(2026, 12, 1), initial_balance=5000)
        ```
    """

    name: str
    events: tuple[ScenarioEvent, ...] = ()
    config: ScenarioConfig = field(default_factory=ScenarioConfig)
    validate_triggers: bool = True

    def __post_init__(self):
        if not isinstance(self.events, tuple):
            object.__setattr__(self, "events", tuple(self.events))
        registry = EventRegistry(self.events)
        object.__setattr__(self, "_registry", registry)

        duplicates = registry.duplicates()
        if duplicates:
            raise ScenarioValidationError.duplicate_names(
                self.name, ValidationReport(duplicate_names=duplicates)
            )
        if self.validate_triggers:
            report = registry.validate()
            if report.cycles:
                raise ScenarioValidationError.dependency_cycle(self.name, report)

    @property
    def registry(self) -> EventRegistry:
        return self._registry

    def get_event(self, name: str) -> ScenarioEvent:
        return self._registry.get(name)

    def event_names(self) -> list[str]:
        return [e.name for e in self.events]

    def validate(self) -> ValidationReport:
        """Return the structured validation report for this scenario's events."""
        return self._registry.validate()

    def with_events(self, events: Iterable[ScenarioEvent]) -> Scenario:
        """Copy of this scenario with a different event list."""
        return Scenario(
            name=self.name,
            events=tuple(events),
            config=self.config,
            validate_triggers=self.validate_triggers,
        )

    def without(self, names: Iterable[str], cascade: bool = True) -> Scenario:
        """
        Copy of this scenario with the named events disabled.

        With ``cascade`` every event that transitively depends on a disabled
        event is disabled as well.
        """
        disabled = set(names)
        if cascade:
            for name in list(disabled):
                if name in self._registry:
                    disabled.update(self._registry.dependents_of(name))
        return self.with_events(e for e in self.events if e.name not in disabled)

    def with_dividends(
        self,
        assets: Sequence[PortfolioAsset],
        start: LocalDate,
        end: LocalDate,
        annual_yield: float | None = None,
    ) -> Scenario:
        """
        Copy of this scenario with dividend events appended.

        The dividend events become ordinary members of the scenario, so the
        analyzer classifies them and ``without`` can disable them. The copy's
        ``dividend_yield`` is reset to 0 so ``run`` does not add them twice.

        Args:
            assets: Portfolio holdings that may pay dividends
            start: First month of the dividend events
            end: Last month of the dividend events
            annual_yield: Yield to apply; defaults to ``config.dividend_yield``

        Raises:
            ScenarioValidationError: If a dividend event name is already taken
        """
        if annual_yield is None:
            annual_yield = self.config.dividend_yield
        dividends = _dividend_events(self, assets, annual_yield, start, end)
        return Scenario(
            name=self.name,
            events=self.events + tuple(dividends),
            config=replace(self.config, dividend_yield=0.0),
            validate_triggers=self.validate_triggers,
        )

    def run(
        self,
        start: LocalDate,
        end: LocalDate,
        initial_balance: float = 0.0,
        portfolio_assets: Sequence[PortfolioAsset] | None = None,
    ) -> ScenarioResult:
        """Run the scenario with this scenario's configured growth and dividend rates."""
        return run_scenario(
            self,
            start,
            end,
            initial_balance=initial_balance,
            portfolio_assets=portfolio_assets,
            growth_rate=self.config.growth_rate,
            dividend_yield=self.config.dividend_yield,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "config": self.config.to_dict(),
            "events": [e.to_dict() for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Scenario:
        """Create a scenario from its plain-dict form (see ``to_dict``)."""
        return cls(
            name=data.get("name", "scenario"),
            events=tuple(event_from_dict(e) for e in data.get("events", [])),
            config=ScenarioConfig.from_dict(data.get("config")),
            validate_triggers=data.get("validate_triggers", True),
        )


def _dividend_events(
    scenario: Scenario,
    assets: Sequence[PortfolioAsset],
    annual_yield: float,
    start: LocalDate,
    end: LocalDate,
) -> list[ScenarioEvent]:
    """Dividend events for ``assets``, checked against the scenario's names."""
    if not annual_yield or not assets:
        return []
    dividends = generate_dividend_events(assets, annual_yield, start, end)
    seen = set(scenario.registry.names())
    clashes = []
    for event in dividends:
        if event.name in seen:
            clashes.append(event.name)
        seen.add(event.name)
    if clashes:
        raise ScenarioValidationError.dividend_clash(scenario.name, clashes)
    return dividends


@dataclass
class _History:
    """State finalized through the end of the previous month."""

    total: Decimal
    fired: set[str] = field(default_factory=set)


class _MonthEvaluator:
    """
    Decides which events fire in one month.

    Results are memoized per event name. An event whose evaluation re-enters
    itself through ``income-is-above`` references is treated as not firing.
    """

    def __init__(
        self,
        month: LocalDate,
        by_name: dict[str, ScenarioEvent],
        history: _History,
    ):
        self.month = month
        self._by_name = by_name
        self._history = history
        self._decided: dict[str, bool] = {}
        self._in_progress: set[str] = set()

    def fires(self, event: ScenarioEvent) -> bool:
        name = event.name
        if name in self._decided:
            return self._decided[name]
        if name in self._in_progress:
            return False
        if not is_event_active_in_month(self.month, event):
            self._decided[name] = False
            return False
        self._in_progress.add(name)
        try:
            result = all(self._holds(c) for c in event.unlocked_by)
        finally:
            self._in_progress.discard(name)
        self._decided[name] = result
        return result

    def _holds(self, condition: Condition) -> bool:
        key = self.month.month_key
        if isinstance(condition, DateIs):
            return condition.date.month_key == key
        if isinstance(condition, DateInRange):
            return condition.start.month_key <= key <= condition.end.month_key
        if isinstance(condition, NetworthIsAbove):
            return self._history.total >= _dec(condition.amount)
        if isinstance(condition, EventHappened):
            return condition.event_name in self._history.fired
        if isinstance(condition, IncomeIsAbove):
            referenced = self._by_name.get(condition.event_name)
            if referenced is None:
                return False
            return self.fires(referenced) and referenced.amount >= condition.amount
        raise TypeError(f"Unknown condition variant: {type(condition).__name__}")


def run_scenario(
    scenario: Scenario,
    start_date: LocalDate,
    end_date: LocalDate,
    initial_balance: float = 0.0,
    portfolio_assets: Sequence[PortfolioAsset] | None = None,
    growth_rate: float = 0.0,
    dividend_yield: float = 0.0,
) -> ScenarioResult:
    """
    Simulate a scenario month by month over ``[start_date, end_date]``.

    Each month, in order:

    1. collect the events whose recurrence is active;
    2. check their conditions against the history through the previous
       month (``income-is-above`` looks at the referenced event's firing in
       the current month);
    3. sum the signed amounts of the events that fire;
    4. add the net to cash; with portfolio tracking grow every asset by the
       monthly equivalent of ``growth_rate`` and total = cash + assets;
    5. record the fired names for later ``event-happened`` checks.

    Args:
        scenario: Events to simulate
        start_date: First month simulated (its day is ignored)
        end_date: Last month simulated, inclusive
        initial_balance: Starting cash balance
        portfolio_assets: Holdings to track; ``None`` disables tracking and
            returns a plain :class:`ScenarioResult`
        growth_rate: Annual asset growth rate, compounded monthly
        dividend_yield: Annual yield; when non-zero and assets are given,
            dividend events are appended after the declared events

    Returns:
        ScenarioResult, or ScenarioResultExtended when assets are tracked.
        A ``start_date`` after ``end_date`` yields an empty result.

    Raises:
        ScenarioValidationError: If a synthesized dividend event collides
            with a declared event name
        ConfigError: If two portfolio assets share an id
    """
    tracking = portfolio_assets is not None
    assets_in = list(portfolio_assets or ())
    events = list(scenario.events)

    events.extend(
        _dividend_events(scenario, assets_in, dividend_yield, start_date, end_date)
    )

    asset_values: dict[str, Decimal] = {}
    for asset in assets_in:
        if asset.id in asset_values:
            raise ConfigError(f"Duplicate portfolio asset id '{asset.id}'")
        asset_values[asset.id] = _dec(asset.initial_value)

    logger.debug(
        "Running scenario %r from %s to %s: %d events, portfolio tracking %s",
        scenario.name,
        start_date.month_key,
        end_date.month_key,
        len(events),
        "on" if tracking else "off",
    )

    cashflow: dict[str, CashflowRecord] = {}
    balance: dict[str, float] = {}
    cash_balance: dict[str, float] = {}
    asset_balance: dict[str, dict[str, float]] = {}
    total_balance: dict[str, float] = {}

    if start_date > end_date:
        months: list[LocalDate] = []
    else:
        months = list(month_range(start_date, end_date))

    by_name = {e.name: e for e in events}
    growth = _dec(monthly_rate(growth_rate)) if tracking else Decimal(0)
    cash = _dec(initial_balance)
    history = _History(total=cash + sum(asset_values.values(), Decimal(0)))

    for month in months:
        evaluator = _MonthEvaluator(month, by_name, history)
        fired = tuple(
            FiredEvent(event, event.signed_amount)
            for event in events
            if evaluator.fires(event)
        )
        net = sum((_dec(f.amount) for f in fired), Decimal(0))
        cash += net

        if tracking:
            for asset_id in asset_values:
                asset_values[asset_id] *= 1 + growth
            total = cash + sum(asset_values.values(), Decimal(0))
        else:
            total = cash

        key = month.month_key
        cashflow[key] = CashflowRecord(net_amount=float(net), fired_events=fired)
        balance[key] = float(total)
        if tracking:
            cash_balance[key] = float(cash)
            asset_balance[key] = {k: float(v) for k, v in asset_values.items()}
            total_balance[key] = float(total)

        history.total = total
        history.fired.update(f.event.name for f in fired)

    if tracking:
        return ScenarioResultExtended(
            cashflow=cashflow,
            balance=balance,
            cash_balance=cash_balance,
            asset_balance=asset_balance,
            total_balance=total_balance,
        )
    return ScenarioResult(cashflow=cashflow, balance=balance)
