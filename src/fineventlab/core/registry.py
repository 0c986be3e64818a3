"""
Registry for indexing and validating scenario events.

Provides name-keyed lookup and dependency-graph checks for the simulation engine.
"""
from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from .conditions import referenced_event

if TYPE_CHECKING:
    from .events import ScenarioEvent
    from .validation import ValidationReport


class EventRegistry:
    """
    Name-keyed registry of scenario events with dependency validation.

    Events reference each other by name through ``event-happened`` and
    ``income-is-above`` conditions. The registry resolves those references
    into a dependency graph (dependent -> referenced event) and reports
    duplicates, dangling references and cycles.

    **Example Usage:**
        ```python
        from fineventlab.core.conditions import EventHappened
        from fineventlab.core.events import make_one_off, make_recurring
        from fineventlab.core.local_date import ld
        from fineventlab.core.registry import EventRegistry

        car = make_one_off("Buy Car", 25000, "expense", ld(2026, 3, 1))
        insurance = make_recurring(
            "Car Insurance", 90, "expense", "monthly", ld(2026, 1, 1),
            unlocked_by=[EventHappened("Buy Car")],
        )
        registry = EventRegistry([car, insurance])

        registry.dependencies("Car Insurance")  # ["Buy Car"]
        registry.dependents_of("Buy Car")       # ["Car Insurance"]
        registry.validate().is_valid()          # True
        ```

    **Key Features:**
    - Lookup keeps the first declaration when names are duplicated
    - Construction never raises; callers decide what to do with the report
    """

    def __init__(self, events: Iterable[ScenarioEvent]):
        """
        Initialize registry with events in declared order.

        Args:
            events: Scenario events; order is preserved for all listings
        """
        self._events: list[ScenarioEvent] = list(events)
        self._by_name: dict[str, ScenarioEvent] = {}
        self._duplicates: list[str] = []
        for event in self._events:
            if event.name in self._by_name:
                if event.name not in self._duplicates:
                    self._duplicates.append(event.name)
            else:
                self._by_name[event.name] = event

    def get(self, name: str) -> ScenarioEvent:
        """Get event by name."""
        if name not in self._by_name:
            from .errors import ConfigError

            raise ConfigError(f"Event '{name}' not found in registry")
        return self._by_name[name]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def names(self) -> list[str]:
        """Unique event names in declared order."""
        return list(self._by_name.keys())

    def iter_events(self) -> Iterator[ScenarioEvent]:
        """Iterate over all events in declared order (duplicates included)."""
        return iter(self._events)

    def duplicates(self) -> list[str]:
        return list(self._duplicates)

    def references(self, name: str) -> list[str]:
        """All event names referenced by an event's conditions, resolved or not."""
        out: list[str] = []
        for condition in self.get(name).unlocked_by:
            ref = referenced_event(condition)
            if ref is not None and ref not in out:
                out.append(ref)
        return out

    def dependencies(self, name: str) -> list[str]:
        """Referenced event names that exist in the registry."""
        return [ref for ref in self.references(name) if ref in self._by_name]

    def unknown_references(self) -> dict[str, list[str]]:
        """Map event name -> referenced names that match no event."""
        dangling: dict[str, list[str]] = {}
        for name in self._by_name:
            missing = [ref for ref in self.references(name) if ref not in self._by_name]
            if missing:
                dangling[name] = missing
        return dangling

    def dependents_of(self, name: str) -> list[str]:
        """
        All events that transitively depend on ``name``, in declared order.

        Walks reverse dependency edges breadth-first with a visited set, so
        cyclic graphs terminate. ``name`` itself is never included.
        """
        reverse: dict[str, list[str]] = defaultdict(list)
        for event_name in self._by_name:
            for dep in self.dependencies(event_name):
                reverse[dep].append(event_name)

        visited: set[str] = {name}
        queue = deque([name])
        while queue:
            current = queue.popleft()
            for dependent in reverse.get(current, []):
                if dependent not in visited:
                    visited.add(dependent)
                    queue.append(dependent)
        visited.discard(name)
        return [n for n in self._by_name if n in visited]

    def find_cycles(self) -> list[list[str]]:
        """
        Detect dependency cycles.

        Kahn's algorithm strips every event that can be ordered; whatever
        remains sits on, or behind, a cycle. Each cycle is then reported once
        as the path found by following dependencies from its first-declared
        member.
        """
        in_degree: dict[str, int] = {name: 0 for name in self._by_name}
        dependents: dict[str, list[str]] = defaultdict(list)
        for name in self._by_name:
            for dep in self.dependencies(name):
                in_degree[name] += 1
                dependents[dep].append(name)

        queue = deque(name for name, deg in in_degree.items() if deg == 0)
        while queue:
            current = queue.popleft()
            for dependent in dependents[current]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        remaining = [name for name, deg in in_degree.items() if deg > 0]
        cycles: list[list[str]] = []
        on_cycle: set[str] = set()
        for start in remaining:
            if start in on_cycle:
                continue
            path: list[str] = []
            seen: dict[str, int] = {}
            current = start
            while current not in seen:
                seen[current] = len(path)
                path.append(current)
                current = next(d for d in self.dependencies(current) if d in remaining)
            cycle = path[seen[current]:]
            if not on_cycle.intersection(cycle):
                cycles.append(cycle)
                on_cycle.update(cycle)
        return cycles

    def validate(self) -> ValidationReport:
        """
        Validate the event graph and return a structured report.

        Checks:
        - Event names are unique
        - No cycles through event-happened / income-is-above references
        - Every referenced event exists (warning only)
        """
        from .validation import ValidationReport

        return ValidationReport(
            duplicate_names=self.duplicates(),
            cycles=self.find_cycles(),
            unknown_references=self.unknown_references(),
        )

    def __len__(self) -> int:
        return len(self._events)

    def __str__(self) -> str:
        return f"EventRegistry(events={len(self._events)})"

    def __repr__(self) -> str:
        return f"EventRegistry(events={self.names()})"
