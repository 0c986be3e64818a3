"""
Unlock conditions gating scenario events.

Conditions are frozen tagged variants. Cashflow-tagged conditions are pure
calendar gates; balance-tagged conditions read the simulation history and are
evaluated by the engine in :mod:`fineventlab.core.scenario`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union

from .errors import ConfigError
from .kinds import K
from .local_date import LocalDate


class ConditionTag(Enum):
    """Domain of a condition: calendar-only or simulation-state dependent."""

    CASHFLOW = K.TAG_CASHFLOW
    BALANCE = K.TAG_BALANCE


@dataclass(frozen=True)
class DateIs:
    """Satisfied in the calendar month containing ``date``."""

    date: LocalDate

    kind: ClassVar[str] = K.DATE_IS
    tag: ClassVar[ConditionTag] = ConditionTag.CASHFLOW


@dataclass(frozen=True)
class DateInRange:
    """Satisfied from ``start``'s month through ``end``'s month inclusive."""

    start: LocalDate
    end: LocalDate

    kind: ClassVar[str] = K.DATE_IN_RANGE
    tag: ClassVar[ConditionTag] = ConditionTag.CASHFLOW

    def __post_init__(self):
        if self.end < self.start:
            raise ConfigError(
                f"date-in-range end {self.end} is before start {self.start}"
            )


@dataclass(frozen=True)
class NetworthIsAbove:
    """
    Satisfied when the total balance at the end of the previous month is at
    least ``amount``. ``event_ref`` only labels the condition.
    """

    amount: float
    event_ref: str | None = None

    kind: ClassVar[str] = K.NETWORTH_IS_ABOVE
    tag: ClassVar[ConditionTag] = ConditionTag.BALANCE


@dataclass(frozen=True)
class EventHappened:
    """Satisfied once ``event_name`` has fired in a strictly earlier month."""

    event_name: str

    kind: ClassVar[str] = K.EVENT_HAPPENED
    tag: ClassVar[ConditionTag] = ConditionTag.BALANCE


@dataclass(frozen=True)
class IncomeIsAbove:
    """Satisfied when ``event_name`` fires this month with magnitude >= ``amount``."""

    event_name: str
    amount: float

    kind: ClassVar[str] = K.INCOME_IS_ABOVE
    tag: ClassVar[ConditionTag] = ConditionTag.BALANCE


Condition = Union[DateIs, DateInRange, NetworthIsAbove, EventHappened, IncomeIsAbove]

CONDITION_TYPES: dict[str, type] = {
    K.DATE_IS: DateIs,
    K.DATE_IN_RANGE: DateInRange,
    K.NETWORTH_IS_ABOVE: NetworthIsAbove,
    K.EVENT_HAPPENED: EventHappened,
    K.INCOME_IS_ABOVE: IncomeIsAbove,
}


def is_balance_condition(condition: Condition) -> bool:
    return condition.tag is ConditionTag.BALANCE


def referenced_event(condition: Condition) -> str | None:
    """Name of the event a condition depends on, if it depends on one."""
    if isinstance(condition, (EventHappened, IncomeIsAbove)):
        return condition.event_name
    return None


def condition_to_dict(condition: Condition) -> dict[str, Any]:
    """Serialize a condition to its catalog/JSON form."""
    if isinstance(condition, DateIs):
        return {"type": condition.kind, "date": condition.date.isoformat()}
    if isinstance(condition, DateInRange):
        return {
            "type": condition.kind,
            "start": condition.start.isoformat(),
            "end": condition.end.isoformat(),
        }
    if isinstance(condition, NetworthIsAbove):
        data: dict[str, Any] = {"type": condition.kind, "amount": condition.amount}
        if condition.event_ref is not None:
            data["event_ref"] = condition.event_ref
        return data
    if isinstance(condition, EventHappened):
        return {"type": condition.kind, "event": condition.event_name}
    if isinstance(condition, IncomeIsAbove):
        return {
            "type": condition.kind,
            "event": condition.event_name,
            "amount": condition.amount,
        }
    raise TypeError(f"Unknown condition variant: {type(condition).__name__}")


def condition_from_dict(data: dict[str, Any]) -> Condition:
    """
    Build a condition from its catalog/JSON form.

    Raises:
        ConfigError: If the kind is unknown or a required field is missing
    """
    kind = data.get("type")
    if kind not in CONDITION_TYPES:
        raise ConfigError(
            f"Unknown condition type '{kind}'. Known: {K.condition_kinds()}"
        )
    try:
        if kind == K.DATE_IS:
            return DateIs(LocalDate.coerce(data["date"]))
        if kind == K.DATE_IN_RANGE:
            return DateInRange(
                LocalDate.coerce(data["start"]), LocalDate.coerce(data["end"])
            )
        if kind == K.NETWORTH_IS_ABOVE:
            return NetworthIsAbove(
                float(data["amount"]), data.get("event_ref") or data.get("event")
            )
        if kind == K.EVENT_HAPPENED:
            return EventHappened(str(data["event"]))
        return IncomeIsAbove(str(data["event"]), float(data["amount"]))
    except KeyError as exc:
        raise ConfigError(f"Condition '{kind}' is missing field {exc}") from exc
