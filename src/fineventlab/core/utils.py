"""
Utility functions for FinEventLab.
"""

from __future__ import annotations

from .errors import ConfigError
from .local_date import LocalDate

# Horizons offered by the planner front end, in years
HORIZON_YEARS = (2, 5, 10, 30)


def monthly_rate(annual_rate: float) -> float:
    """
    Convert an annual growth rate to its compounding monthly equivalent.

    ``(1 + annual_rate) ** (1 / 12) - 1``, so twelve monthly steps reproduce
    the annual rate exactly.

    **Example:**
        ```python
        r_m = monthly_rate(0.07)       # ~0.005654
        (1 + r_m) ** 12 - 1            # 0.07
        ```
    """
    if annual_rate <= -1:
        raise ConfigError(f"annual rate must be greater than -100%, got {annual_rate}")
    return (1 + annual_rate) ** (1 / 12) - 1


def horizon_end(start: LocalDate, years: int) -> LocalDate:
    """
    Resolve a horizon in years to the inclusive end date of a run.

    A 2-year horizon from 2025-01-15 ends on 2027-01-15: the run covers
    ``years * 12 + 1`` month-keys, matching how the planner front end builds
    its ranges.
    """
    if years < 0:
        raise ConfigError(f"horizon must be non-negative, got {years} years")
    return start.add_months(12 * years)
