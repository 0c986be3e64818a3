"""
Scenario events and their recurrence patterns.

An event is a named income or expense with a non-negative amount, a
recurrence (``Once``, ``Monthly`` or ``Yearly``) and an ordered tuple of
unlock conditions. Events are frozen so scenarios can be hashed and memoized.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from .conditions import Condition, condition_from_dict, condition_to_dict
from .errors import ConfigError
from .kinds import K
from .local_date import LocalDate


class EventType(Enum):
    INCOME = K.INCOME
    EXPENSE = K.EXPENSE


class Frequency(Enum):
    ONCE = K.ONCE
    MONTHLY = K.MONTHLY
    YEARLY = K.YEARLY


def _check_range(start: LocalDate, end: LocalDate | None) -> None:
    if end is not None and end < start:
        raise ConfigError(f"Recurrence end date {end} is before start date {start}")


@dataclass(frozen=True)
class Once:
    """Active only in the calendar month containing ``date``."""

    date: LocalDate

    frequency: ClassVar[Frequency] = Frequency.ONCE


@dataclass(frozen=True)
class Monthly:
    """Active every month from ``start_date``'s month through ``end_date``'s month."""

    start_date: LocalDate
    end_date: LocalDate | None = None

    frequency: ClassVar[Frequency] = Frequency.MONTHLY

    def __post_init__(self):
        _check_range(self.start_date, self.end_date)


@dataclass(frozen=True)
class Yearly:
    """Active in months whose month-number matches ``start_date``, within range."""

    start_date: LocalDate
    end_date: LocalDate | None = None

    frequency: ClassVar[Frequency] = Frequency.YEARLY

    def __post_init__(self):
        _check_range(self.start_date, self.end_date)


Recurrence = Union[Once, Monthly, Yearly]

# Open monthly recurrence used for events that carry no calendar pattern
ALWAYS = Monthly(LocalDate(1, 1, 1))


@dataclass(frozen=True)
class ScenarioEvent:
    """
    A named income or expense gated by a recurrence and unlock conditions.

    Attributes:
        name: Unique identifier within a scenario, used by trigger references
        type: Income or expense (strings are coerced)
        amount: Non-negative magnitude; the sign comes from ``type``
        recurrence: Calendar pattern deciding in which months the event is active
        unlocked_by: Conditions that must all hold for the event to fire
    """

    name: str
    type: EventType
    amount: float
    recurrence: Recurrence = ALWAYS
    unlocked_by: tuple[Condition, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ConfigError("Event name must be a non-empty string")
        if not isinstance(self.type, EventType):
            try:
                object.__setattr__(self, "type", EventType(self.type))
            except ValueError as exc:
                raise ConfigError(
                    f"Event '{self.name}': unknown type '{self.type}'. "
                    f"Known: {K.event_types()}"
                ) from exc
        if self.amount < 0:
            raise ConfigError(
                f"Event '{self.name}': amount must be non-negative, got {self.amount}"
            )
        if not isinstance(self.unlocked_by, tuple):
            object.__setattr__(self, "unlocked_by", tuple(self.unlocked_by))

    @property
    def is_income(self) -> bool:
        return self.type is EventType.INCOME

    @property
    def signed_amount(self) -> float:
        return self.amount if self.is_income else -self.amount

    @property
    def frequency(self) -> Frequency:
        return self.recurrence.frequency

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the catalog event form."""
        data: dict[str, Any] = {
            "name": self.name,
            "type": self.type.value,
            "amount": self.amount,
            "recurrence": recurrence_to_dict(self.recurrence),
        }
        if self.unlocked_by:
            data["unlocked_by"] = [condition_to_dict(c) for c in self.unlocked_by]
        return data


def make_one_off(
    name: str,
    amount: float,
    type: EventType | str,
    date: LocalDate,
    unlocked_by: Iterable[Condition] = (),
) -> ScenarioEvent:
    """Create an event that fires only in the month containing ``date``."""
    return ScenarioEvent(name, type, amount, Once(date), tuple(unlocked_by))


def make_recurring(
    name: str,
    amount: float,
    type: EventType | str,
    frequency: Frequency | str,
    start_date: LocalDate,
    end_date: LocalDate | None = None,
    unlocked_by: Iterable[Condition] = (),
) -> ScenarioEvent:
    """
    Create a monthly or yearly event.

    Raises:
        ConfigError: If ``frequency`` is not monthly/yearly or the range is inverted
    """
    try:
        freq = Frequency(frequency)
    except ValueError as exc:
        raise ConfigError(
            f"Event '{name}': unknown frequency '{frequency}'. Known: {K.frequencies()}"
        ) from exc
    if freq is Frequency.MONTHLY:
        recurrence: Recurrence = Monthly(start_date, end_date)
    elif freq is Frequency.YEARLY:
        recurrence = Yearly(start_date, end_date)
    else:
        raise ConfigError(
            f"Event '{name}': recurring events need a monthly or yearly frequency"
        )
    return ScenarioEvent(name, type, amount, recurrence, tuple(unlocked_by))


def make_event(
    name: str,
    amount: float,
    type: EventType | str,
    unlocked_by: Iterable[Condition] = (),
    recurrence: Recurrence | None = None,
) -> ScenarioEvent:
    """Create an event; without a recurrence it is active in every month."""
    return ScenarioEvent(
        name, type, amount, recurrence or ALWAYS, tuple(unlocked_by)
    )


def is_event_active_in_month(date: LocalDate, event: ScenarioEvent) -> bool:
    """
    Whether the event's recurrence covers the month containing ``date``.

    Pure calendar check: conditions and simulation history are not consulted.
    """
    recurrence = event.recurrence
    key = date.month_key
    if isinstance(recurrence, Once):
        return recurrence.date.month_key == key
    if isinstance(recurrence, (Monthly, Yearly)):
        if key < recurrence.start_date.month_key:
            return False
        if recurrence.end_date is not None and key > recurrence.end_date.month_key:
            return False
        if isinstance(recurrence, Yearly):
            return date.month == recurrence.start_date.month
        return True
    raise TypeError(f"Unknown recurrence variant: {type(recurrence).__name__}")


def recurrence_to_dict(recurrence: Recurrence) -> dict[str, Any]:
    if isinstance(recurrence, Once):
        return {"frequency": K.ONCE, "date": recurrence.date.isoformat()}
    if isinstance(recurrence, (Monthly, Yearly)):
        data: dict[str, Any] = {
            "frequency": recurrence.frequency.value,
            "start_date": recurrence.start_date.isoformat(),
        }
        if recurrence.end_date is not None:
            data["end_date"] = recurrence.end_date.isoformat()
        return data
    raise TypeError(f"Unknown recurrence variant: {type(recurrence).__name__}")


def recurrence_from_dict(data: dict[str, Any] | None) -> Recurrence:
    """Parse a recurrence mapping; ``None`` means active every month."""
    if data is None:
        return ALWAYS
    try:
        freq = Frequency(data.get("frequency", K.MONTHLY))
    except ValueError as exc:
        raise ConfigError(
            f"Unknown frequency '{data.get('frequency')}'. Known: {K.frequencies()}"
        ) from exc
    try:
        if freq is Frequency.ONCE:
            return Once(LocalDate.coerce(data["date"]))
        start = LocalDate.coerce(data["start_date"])
    except KeyError as exc:
        raise ConfigError(f"{freq.value} recurrence is missing field {exc}") from exc
    end = data.get("end_date")
    end_date = LocalDate.coerce(end) if end is not None else None
    if freq is Frequency.MONTHLY:
        return Monthly(start, end_date)
    return Yearly(start, end_date)


def event_from_dict(data: dict[str, Any]) -> ScenarioEvent:
    """Build an event from its catalog form."""
    try:
        name = data["name"]
        type_ = data["type"]
        amount = float(data["amount"])
    except KeyError as exc:
        raise ConfigError(f"Event is missing field {exc}") from exc
    conditions = tuple(condition_from_dict(c) for c in data.get("unlocked_by") or [])
    return ScenarioEvent(
        name, type_, amount, recurrence_from_dict(data.get("recurrence")), conditions
    )
