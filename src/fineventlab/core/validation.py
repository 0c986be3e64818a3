"""
Validation and reporting utilities for FinEventLab.

Provides a structured validation report for scenario event graphs.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .exceptions import render_cycle


@dataclass
class ValidationReport:
    """
    Structured validation report for a scenario's events.

    Duplicate names and dependency cycles are errors. References to events
    that do not exist are warnings: such conditions are simply never
    satisfied during simulation.
    """

    duplicate_names: list[str] = None
    cycles: list[list[str]] = None
    unknown_references: dict[str, list[str]] = None

    def __post_init__(self):
        """Replace missing fields with empty containers."""
        if self.duplicate_names is None:
            self.duplicate_names = []
        if self.cycles is None:
            self.cycles = []
        if self.unknown_references is None:
            self.unknown_references = {}

    def has_errors(self) -> bool:
        """Duplicate names or dependency cycles present."""
        return bool(self.duplicate_names or self.cycles)

    def has_warnings(self) -> bool:
        """Some conditions reference events that do not exist."""
        return bool(self.unknown_references)

    def is_valid(self) -> bool:
        """True when the scenario can be built; unknown references do not count."""
        return not self.has_errors()

    def get_exit_code(self) -> int:
        """
        Exit code for `finevent validate`.

        Returns:
            0: Clean graph
            1: Duplicate names or cycles
            2: Only unknown references
        """
        if self.has_errors():
            return 1
        elif self.has_warnings():
            return 2
        else:
            return 0

    def problem_names(self) -> list[str]:
        """Event names involved in errors, in first-seen order."""
        names: list[str] = list(self.duplicate_names)
        for cycle in self.cycles:
            names.extend(n for n in cycle if n not in names)
        return names

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form used by the JSON output of the CLI."""
        return {
            "duplicate_names": self.duplicate_names,
            "cycles": self.cycles,
            "unknown_references": self.unknown_references,
            "has_errors": self.has_errors(),
            "has_warnings": self.has_warnings(),
            "is_valid": self.is_valid(),
            "exit_code": self.get_exit_code(),
        }

    def __str__(self) -> str:
        """One line per finding, headed by a pass/fail marker."""
        lines = []

        if self.is_valid():
            lines.append("✅ Validation passed")
        else:
            lines.append("❌ Validation failed")

        if self.duplicate_names:
            lines.append(f"Duplicate event names: {', '.join(self.duplicate_names)}")

        if self.cycles:
            for cycle in self.cycles:
                lines.append(f"Cycle detected: {render_cycle(cycle)}")

        if self.unknown_references:
            for event_name, refs in self.unknown_references.items():
                lines.append(
                    f"Event '{event_name}' references unknown events: {', '.join(refs)}"
                )

        return "\n".join(lines)
