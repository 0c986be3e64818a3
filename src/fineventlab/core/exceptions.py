"""
Scenario-level exception for FinEventLab.

A scenario is rejected for one of three reasons: two events share a name,
events reference each other in a loop, or synthesized dividend events reuse
a declared event name. Each reason has its own constructor so the message,
the ``reason`` tag and the offending names always agree.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .validation import ValidationReport

# Names listed in a message before the rest is summarized as a count
_MAX_LISTED = 10


def _quote_names(names: Sequence[str]) -> str:
    listed = ", ".join(f'"{n}"' for n in names[:_MAX_LISTED])
    hidden = len(names) - _MAX_LISTED
    if hidden > 0:
        listed += f" and {hidden} more"
    return listed


def render_cycle(cycle: Sequence[str]) -> str:
    """Render a dependency cycle as a closed path, e.g. ``A → B → A``."""
    return " → ".join([*cycle, cycle[0]])


class ScenarioValidationError(Exception):
    """
    Raised when a set of events cannot form a scenario.

    Attributes:
        scenario_name: Name of the rejected scenario
        reason: One of ``DUPLICATE_NAMES``, ``DEPENDENCY_CYCLE``,
            ``DIVIDEND_CLASH`` (or ``INVALID`` for ad-hoc errors)
        report: ValidationReport behind the rejection, when one was built
        problem_names: Offending event names, in declared order
        cycles: Dependency cycles, each a list of event names (may be empty)

    Message format::

        Scenario 'Plan' rejected (dependency-cycle): A → B → A; events "A", "B"
    """

    INVALID = "invalid"
    DUPLICATE_NAMES = "duplicate-names"
    DEPENDENCY_CYCLE = "dependency-cycle"
    DIVIDEND_CLASH = "dividend-clash"

    def __init__(
        self,
        scenario_name: str,
        message: str,
        *,
        reason: str = INVALID,
        report: ValidationReport | None = None,
        problem_names: Sequence[str] | None = None,
    ):
        self.scenario_name = scenario_name
        self.reason = reason
        self.report = report
        self.problem_names = list(problem_names or [])
        self.cycles = [list(c) for c in report.cycles] if report is not None else []
        text = f"Scenario '{scenario_name}' rejected ({reason}): {message}"
        if self.problem_names:
            text += f"; events {_quote_names(self.problem_names)}"
        super().__init__(text)

    @classmethod
    def duplicate_names(
        cls, scenario_name: str, report: ValidationReport
    ) -> ScenarioValidationError:
        return cls(
            scenario_name,
            "Event names must be unique",
            reason=cls.DUPLICATE_NAMES,
            report=report,
            problem_names=report.duplicate_names,
        )

    @classmethod
    def dependency_cycle(
        cls, scenario_name: str, report: ValidationReport
    ) -> ScenarioValidationError:
        paths = "; ".join(render_cycle(c) for c in report.cycles)
        return cls(
            scenario_name,
            f"Dependency cycle between events: {paths}",
            reason=cls.DEPENDENCY_CYCLE,
            report=report,
            problem_names=report.problem_names(),
        )

    @classmethod
    def dividend_clash(
        cls, scenario_name: str, names: Sequence[str]
    ) -> ScenarioValidationError:
        return cls(
            scenario_name,
            "Dividend events collide with declared events",
            reason=cls.DIVIDEND_CLASH,
            problem_names=names,
        )
