"""
Post-run dependency analysis.

Classifies every event of a scenario as independent, conditional or
triggered, and regroups a result's fired events into a chronological event
flow separating events that start on their own from events triggered by
another event.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from .conditions import (
    Condition,
    EventHappened,
    IncomeIsAbove,
    NetworthIsAbove,
    is_balance_condition,
)
from .events import Monthly, Once, ScenarioEvent, Yearly
from .results import ScenarioResult
from .scenario import Scenario

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConditionalEvent:
    """Event gated by net-worth or income thresholds, with readable conditions."""

    event: ScenarioEvent
    conditions: tuple[str, ...]


@dataclass(frozen=True)
class TriggeredEvent:
    """
    Event gated by another event having happened.

    ``fired_at`` is the first month-key the event fired in (None if never).
    ``resolved`` is False when ``trigger_event`` names no event of the
    scenario; such an event never fires.
    """

    event: ScenarioEvent
    trigger_event: str
    fired_at: str | None = None
    resolved: bool = True


@dataclass(frozen=True)
class FlowItem:
    event: ScenarioEvent
    amount: float


@dataclass(frozen=True)
class TriggeredFlowItem:
    event: ScenarioEvent
    trigger_event: str
    amount: float


@dataclass(frozen=True)
class EventFlowMonth:
    """Fired events of one month, split into starting and triggered."""

    month_key: str
    starting_events: tuple[FlowItem, ...] = ()
    triggered_by: tuple[TriggeredFlowItem, ...] = ()


@dataclass
class EventDependencyAnalysis:
    """Classification of a scenario's events plus its month-by-month event flow."""

    independent_events: list[ScenarioEvent] = field(default_factory=list)
    conditional_events: list[ConditionalEvent] = field(default_factory=list)
    triggered_events: list[TriggeredEvent] = field(default_factory=list)
    event_flow: list[EventFlowMonth] = field(default_factory=list)

    @property
    def trigger_map(self) -> dict[str, str]:
        """Map triggered event name -> trigger event name."""
        return {t.event.name: t.trigger_event for t in self.triggered_events}

    @property
    def unresolved_triggers(self) -> list[TriggeredEvent]:
        return [t for t in self.triggered_events if not t.resolved]

    def dependents_of(self, name: str) -> list[str]:
        """
        Events transitively triggered by ``name``, breadth-first.

        Used to disable an event together with everything that hangs off it.
        The visited set keeps malformed trigger loops from recursing forever.
        """
        children: dict[str, list[str]] = {}
        for child, parent in self.trigger_map.items():
            children.setdefault(parent, []).append(child)

        ordered: list[str] = []
        visited = {name}
        queue = deque([name])
        while queue:
            current = queue.popleft()
            for child in children.get(current, []):
                if child not in visited:
                    visited.add(child)
                    ordered.append(child)
                    queue.append(child)
        return ordered

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "independent_events": [e.name for e in self.independent_events],
            "conditional_events": [
                {"event": c.event.name, "conditions": list(c.conditions)}
                for c in self.conditional_events
            ],
            "triggered_events": [
                {
                    "event": t.event.name,
                    "trigger_event": t.trigger_event,
                    "fired_at": t.fired_at,
                    "resolved": t.resolved,
                }
                for t in self.triggered_events
            ],
            "event_flow": [
                {
                    "month_key": m.month_key,
                    "starting_events": [
                        {"event": i.event.name, "amount": i.amount}
                        for i in m.starting_events
                    ],
                    "triggered_by": [
                        {
                            "event": i.event.name,
                            "trigger_event": i.trigger_event,
                            "amount": i.amount,
                        }
                        for i in m.triggered_by
                    ],
                }
                for m in self.event_flow
            ],
        }


def _format_money(amount: float) -> str:
    text = f"{amount:,.3f}".rstrip("0").rstrip(".")
    return f"${text}"


def describe_condition(condition: Condition) -> str:
    """
    Human-readable description of a balance condition.

    Cashflow (date) conditions render as an empty string; they are not
    dependencies worth showing.
    """
    if not is_balance_condition(condition):
        return ""
    if isinstance(condition, NetworthIsAbove):
        return f"When net worth > {_format_money(condition.amount)}"
    if isinstance(condition, EventHappened):
        return f'After "{condition.event_name}" happens'
    if isinstance(condition, IncomeIsAbove):
        return f'When "{condition.event_name}" >= {_format_money(condition.amount)}'
    raise TypeError(f"Unknown condition variant: {type(condition).__name__}")


def frequency_label(event: ScenarioEvent) -> str:
    if isinstance(event.recurrence, Once):
        return "one-time"
    if isinstance(event.recurrence, Monthly):
        return "/month"
    if isinstance(event.recurrence, Yearly):
        return "/year"
    raise TypeError(f"Unknown recurrence variant: {type(event.recurrence).__name__}")


def analyze_event_dependencies(
    scenario: Scenario, result: ScenarioResult
) -> EventDependencyAnalysis:
    """
    Classify events and build the event flow of a run.

    Classification, per event and in declared order:

    - independent: no balance-tagged condition (date gates do not count);
    - triggered: has an ``event-happened`` condition; the first one names
      the trigger, and ``fired_at`` is found by scanning the result;
    - conditional: any other balance condition, rendered through
      :func:`describe_condition`.

    The event flow lists every month with at least one fired event.

    Args:
        scenario: The full scenario (before any events were disabled)
        result: Output of running that scenario, or a subset of it

    Returns:
        EventDependencyAnalysis; unresolved triggers are reported, never raised
    """
    analysis = EventDependencyAnalysis()
    known = set(scenario.event_names())

    for event in scenario.events:
        balance_conditions = [c for c in event.unlocked_by if is_balance_condition(c)]
        if not balance_conditions:
            analysis.independent_events.append(event)
            continue

        trigger = next(
            (c for c in balance_conditions if isinstance(c, EventHappened)), None
        )
        if trigger is not None:
            analysis.triggered_events.append(
                TriggeredEvent(
                    event=event,
                    trigger_event=trigger.event_name,
                    fired_at=result.first_fired(event.name),
                    resolved=trigger.event_name in known,
                )
            )
        else:
            descriptions = tuple(
                d for d in (describe_condition(c) for c in balance_conditions) if d
            )
            analysis.conditional_events.append(ConditionalEvent(event, descriptions))

    unresolved = analysis.unresolved_triggers
    if unresolved and scenario.config.warn_on_unresolved:
        logger.warning(
            "Scenario %r has triggers on unknown events: %s",
            scenario.name,
            ", ".join(f"{t.event.name} <- {t.trigger_event}" for t in unresolved),
        )

    trigger_map = analysis.trigger_map
    for month_key in sorted(result.cashflow):
        record = result.cashflow[month_key]
        if not record.fired_events:
            continue
        starting: list[FlowItem] = []
        triggered: list[TriggeredFlowItem] = []
        for fired in record.fired_events:
            name = fired.event.name
            if name in trigger_map:
                triggered.append(
                    TriggeredFlowItem(fired.event, trigger_map[name], fired.amount)
                )
            else:
                starting.append(FlowItem(fired.event, fired.amount))
        analysis.event_flow.append(
            EventFlowMonth(month_key, tuple(starting), tuple(triggered))
        )

    return analysis
