"""
Dividend synthesis: turns non-cash holdings into monthly income events.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .events import EventType, ScenarioEvent, make_recurring
from .local_date import LocalDate
from .portfolio import PortfolioAsset

logger = logging.getLogger(__name__)

# Holdings paying less than this per month are left out
MIN_MONTHLY_DIVIDEND = 1.0


def dividend_event_name(asset: PortfolioAsset) -> str:
    return f"Dividends from {asset.name}"


def generate_dividend_events(
    assets: Iterable[PortfolioAsset],
    annual_yield: float,
    start_date: LocalDate,
    end_date: LocalDate | None = None,
    *,
    threshold: float = MIN_MONTHLY_DIVIDEND,
) -> list[ScenarioEvent]:
    """
    Synthesize one monthly income event per dividend-paying holding.

    The monthly amount is ``initial_value * annual_yield / 12``. Cash holdings
    and holdings whose monthly amount is below ``threshold`` are omitted. The
    result only constructs events; nothing is evaluated here.

    Args:
        assets: Portfolio holdings in the order events should be emitted
        annual_yield: Annual dividend yield, e.g. 0.02 for 2%
        start_date: First month the dividends are paid
        end_date: Last month the dividends are paid (open-ended when None)
        threshold: Materiality floor for the monthly amount

    Returns:
        List of monthly income events named ``Dividends from <asset name>``
    """
    events: list[ScenarioEvent] = []
    for asset in assets:
        if asset.is_cash:
            continue
        monthly = asset.initial_value * annual_yield / 12
        if monthly < threshold:
            logger.debug(
                "Skipping dividends for %s: %.2f/month below %.2f",
                asset.name,
                monthly,
                threshold,
            )
            continue
        events.append(
            make_recurring(
                dividend_event_name(asset),
                monthly,
                EventType.INCOME,
                "monthly",
                start_date,
                end_date,
            )
        )
    return events
