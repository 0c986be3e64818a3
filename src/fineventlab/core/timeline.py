"""
Yearly timeline view built from an event dependency analysis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .analyzer import EventDependencyAnalysis
from .events import ScenarioEvent
from .local_date import month_key_month, month_key_year


@dataclass(frozen=True)
class Occurrence:
    month_key: str
    month: int  # 1-12
    amount: float


@dataclass(eq=False)
class TimelineEvent:
    """One event's occurrences within a year plus the events it triggered."""

    event: ScenarioEvent
    occurrences: list[Occurrence] = field(default_factory=list)
    triggered_by: str | None = None
    children: list[TimelineEvent] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(o.amount for o in self.occurrences)

    def walk(self):
        """Yield this node and all descendants, depth-first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.event.name,
            "type": self.event.type.value,
            "triggered_by": self.triggered_by,
            "occurrences": [
                {"month_key": o.month_key, "month": o.month, "amount": o.amount}
                for o in self.occurrences
            ],
            "children": [c.to_dict() for c in self.children],
        }


@dataclass
class TimelineYear:
    year: int
    total_income: float
    total_expense: float
    net_cashflow: float
    events: list[TimelineEvent] = field(default_factory=list)

    def iter_events(self):
        """All nodes of the year's forest, depth-first."""
        for node in self.events:
            yield from node.walk()

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "total_income": self.total_income,
            "total_expense": self.total_expense,
            "net_cashflow": self.net_cashflow,
            "events": [e.to_dict() for e in self.events],
        }


def _build_forest(nodes: list[TimelineEvent]) -> list[TimelineEvent]:
    """
    Arrange one year's nodes into trigger trees.

    A triggered node goes under its trigger's node when that node exists in
    the same year; otherwise it is promoted to the top level. Nodes that no
    root reaches (trigger loops) are promoted as well, so every node appears
    exactly once.
    """
    by_name = {node.event.name: node for node in nodes}
    roots: list[TimelineEvent] = []
    promoted: list[TimelineEvent] = []
    for node in nodes:
        parent = by_name.get(node.triggered_by) if node.triggered_by else None
        if node.triggered_by is None:
            roots.append(node)
        elif parent is None or parent is node:
            promoted.append(node)
        else:
            parent.children.append(node)

    top = roots + promoted
    reached = {id(n) for root in top for n in root.walk()}
    for node in nodes:
        if id(node) not in reached:
            # Detach from its loop so the promoted subtree stays finite
            for other in nodes:
                if node in other.children:
                    other.children.remove(node)
            top.append(node)
            reached.update(id(n) for n in node.walk())
    return top


def transform_to_timeline_data(analysis: EventDependencyAnalysis) -> list[TimelineYear]:
    """
    Group the event flow by calendar year into trigger hierarchies.

    Within a year each event becomes one node (first-seen order) carrying its
    monthly occurrences. Top-level order is untriggered events first, then
    promoted triggered events. Year totals sum the occurrences: positive
    amounts are income, negative amounts count (absolute) as expense.

    Args:
        analysis: Output of :func:`analyze_event_dependencies`

    Returns:
        Years in ascending order
    """
    trigger_map = analysis.trigger_map
    years: dict[int, dict[str, TimelineEvent]] = {}

    for flow_month in analysis.event_flow:
        key = flow_month.month_key
        year = month_key_year(key)
        month = month_key_month(key)
        nodes = years.setdefault(year, {})

        items = [
            (i.event, i.amount, trigger_map.get(i.event.name))
            for i in flow_month.starting_events
        ]
        items += [(i.event, i.amount, i.trigger_event) for i in flow_month.triggered_by]
        for event, amount, trigger in items:
            node = nodes.get(event.name)
            if node is None:
                node = TimelineEvent(event=event, triggered_by=trigger)
                nodes[event.name] = node
            node.occurrences.append(Occurrence(key, month, amount))

    timeline: list[TimelineYear] = []
    for year in sorted(years):
        nodes = list(years[year].values())
        income = sum(o.amount for n in nodes for o in n.occurrences if o.amount > 0)
        expense = sum(-o.amount for n in nodes for o in n.occurrences if o.amount < 0)
        timeline.append(
            TimelineYear(
                year=year,
                total_income=income,
                total_expense=expense,
                net_cashflow=income - expense,
                events=_build_forest(nodes),
            )
        )
    return timeline
