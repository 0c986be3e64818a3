"""
Walk through the starter catalog: run it, explain it, and print a yearly timeline.
"""

from __future__ import annotations

import json
from pathlib import Path

from fineventlab import (
    analyze_event_dependencies,
    load_catalog,
    transform_to_timeline_data,
)
from fineventlab.kpi import balance_analytics, income_expense_analytics

CATALOG = Path(__file__).resolve().parent / "catalogs" / "starter.yaml"


def pretty(data: dict) -> str:
    """Return JSON formatted output."""
    return json.dumps(data, indent=2, sort_keys=True, default=str)


def main() -> None:
    catalog = load_catalog(CATALOG)
    start = catalog.run.start
    end = catalog.run.resolve_end(start)
    assets = catalog.portfolio.portfolio_assets

    # Dividend events join the scenario so the analysis below sees them too
    scenario = catalog.scenario.with_dividends(assets, start, end)
    result = scenario.run(
        start,
        end,
        initial_balance=catalog.portfolio.initial_cash_balance,
        portfolio_assets=assets,
    )

    print(f"== {scenario.name}: {start.month_key} → {end.month_key} ==")
    print(result.yearly().round(2).to_string())

    print("\n== KPIs ==")
    print(pretty(balance_analytics(result, start, end).to_dict()))
    print(pretty(income_expense_analytics(result).to_dict()))

    # Explain the plan with the full scenario
    analysis = analyze_event_dependencies(scenario, result)
    print("\n== Triggered events ==")
    for item in analysis.triggered_events:
        print(f"{item.event.name} after {item.trigger_event} (first: {item.fired_at})")

    print("\n== Timeline ==")
    for year in transform_to_timeline_data(analysis):
        print(f"{year.year}: net {year.net_cashflow:,.2f}")
        for node in year.iter_events():
            indent = "  " if node.triggered_by else ""
            print(f"  {indent}{node.event.name}: {node.total:,.2f}")


if __name__ == "__main__":
    main()
