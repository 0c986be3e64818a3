"""
Command-line interface for FinEventLab.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from fineventlab import kpi
from fineventlab.core.analyzer import analyze_event_dependencies, frequency_label
from fineventlab.core.catalog_loader import CatalogError, load_catalog
from fineventlab.core.errors import ConfigError
from fineventlab.core.exceptions import ScenarioValidationError
from fineventlab.core.local_date import LocalDate
from fineventlab.core.timeline import TimelineEvent, transform_to_timeline_data
from fineventlab.core.utils import HORIZON_YEARS, horizon_end

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_YEARS = 5

_USER_ERRORS = (CatalogError, ConfigError, ScenarioValidationError, FileNotFoundError)


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy scalars and pandas Series/Periods."""

    def default(self, obj):
        import numpy as np
        import pandas as pd

        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, pd.Series):
            return obj.to_dict()
        elif isinstance(obj, pd.Period):
            return str(obj)
        return super().default(obj)


def _save_json(path: str, data: dict) -> None:
    """Save data as JSON to file path."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, cls=NumpyEncoder)


def _dump_json(data: dict) -> None:
    json.dump(data, sys.stdout, indent=2, cls=NumpyEncoder)
    sys.stdout.write("\n")


def _money(value: float) -> str:
    return f"{value:,.2f}"


def _prepare(args):
    """
    Load the catalog and resolve the run window, balance and portfolio.

    Dividend events are merged into the full scenario before anything is
    disabled, so they can be disabled and are classified like declared events.
    """
    catalog = load_catalog(args.input)

    start = (
        LocalDate.parse(args.start)
        if args.start
        else catalog.run.start or LocalDate.today()
    )
    if args.end:
        end = LocalDate.parse(args.end)
    elif args.years is not None:
        end = horizon_end(start, args.years)
    else:
        end = catalog.run.resolve_end(start) or horizon_end(
            start, DEFAULT_HORIZON_YEARS
        )

    assets = None
    initial_balance = catalog.run.initial_balance or 0.0
    if catalog.portfolio is not None:
        assets = list(catalog.portfolio.portfolio_assets)
        if catalog.run.initial_balance is None:
            initial_balance = catalog.portfolio.initial_cash_balance
    if args.initial_balance is not None:
        initial_balance = args.initial_balance

    full = catalog.scenario
    if assets:
        full = full.with_dividends(assets, start, end)
    scenario = full.without(args.disable or [], cascade=True)
    disabled = sorted(set(full.event_names()) - set(scenario.event_names()))
    if disabled:
        logger.info("Disabled events: %s", ", ".join(disabled))

    result = scenario.run(
        start, end, initial_balance=initial_balance, portfolio_assets=assets
    )
    return full, scenario, result, start, end


def cmd_example(_) -> int:
    """Print a minimal working scenario catalog as JSON."""
    example = {
        "version": 1,
        "scenario": {"name": "CLI Demo"},
        "config": {"growth_rate": 0.07, "dividend_yield": 0.02},
        "run": {"start": "2026-01-01", "years": 5},
        "portfolio": {
            "cash_balance": 10000.0,
            "assets": [
                {
                    "id": "etf",
                    "name": "World ETF",
                    "category": "etf",
                    "initial_value": 25000.0,
                }
            ],
        },
        "events": [
            {
                "name": "Salary",
                "type": "income",
                "amount": 4200,
                "recurrence": {"frequency": "monthly", "start_date": "2026-01-01"},
            },
            {
                "name": "Cost of Life",
                "type": "expense",
                "amount": 2600,
                "recurrence": {"frequency": "monthly", "start_date": "2026-01-01"},
            },
            {
                "name": "Buy Car",
                "type": "expense",
                "amount": 18000,
                "recurrence": {"frequency": "once", "date": "2027-04-01"},
                "unlocked_by": [{"type": "networth-is-above", "amount": 30000}],
            },
            {
                "name": "Car Insurance",
                "type": "expense",
                "amount": 95,
                "recurrence": {"frequency": "monthly", "start_date": "2026-01-01"},
                "unlocked_by": [{"type": "event-happened", "event": "Buy Car"}],
            },
            {
                "name": "Summer Holiday",
                "type": "expense",
                "amount": 2500,
                "recurrence": {"frequency": "yearly", "start_date": "2026-07-01"},
            },
        ],
    }
    _dump_json(example)
    return 0


def cmd_run(args) -> int:
    """Run a scenario catalog and print or export the results."""
    try:
        _, scenario, result, start, end = _prepare(args)
    except _USER_ERRORS as e:
        print(f"Error running scenario: {e}", file=sys.stderr)
        return 1

    analytics = {
        "balance": kpi.balance_analytics(result, start, end).to_dict(),
        "income_expense": kpi.income_expense_analytics(result).to_dict(),
        "cash_investments": kpi.cash_investment_analytics(result, start, end).to_dict(),
    }
    payload = {
        "scenario": scenario.name,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "result": result.to_dict(),
        "analytics": analytics,
    }

    if args.output:
        _save_json(args.output, payload)
        print(f"Wrote {len(result.months)} months to {args.output}")
    elif args.format == "json":
        _dump_json(payload)
    else:
        print(f"Scenario: {scenario.name} ({start.month_key} → {end.month_key})")
        for month, record in result.cashflow.items():
            names = ", ".join(record.fired_names())
            print(
                f"  {month}  net {record.net_amount:>+12,.2f}  "
                f"balance {result.balance[month]:>14,.2f}  {names}"
            )
        growth = analytics["balance"]
        flows = analytics["income_expense"]
        print()
        print(f"Net worth growth: {_money(growth['growth_amount'])}")
        print(f"Savings rate: {flows['savings_rate_pct']:.1f}%")
        print(f"Cashflow trend: {flows['cashflow_trend']}")
    return 0


def cmd_validate(args) -> int:
    """Validate a scenario catalog's event graph."""
    try:
        catalog = load_catalog(args.input, validate_triggers=False)
    except _USER_ERRORS as e:
        if args.format == "json":
            _dump_json(
                {
                    "has_errors": True,
                    "has_warnings": False,
                    "is_valid": False,
                    "exit_code": 1,
                    "error": str(e),
                }
            )
        else:
            print(f"❌ Validation failed: {e}")
        return 1

    report = catalog.scenario.validate()
    if args.format == "json":
        _dump_json(report.to_dict())
    else:
        print(str(report))
    return report.get_exit_code()


def cmd_analyze(args) -> int:
    """Classify events and print the month-by-month event flow."""
    try:
        full, _, result, _, _ = _prepare(args)
    except _USER_ERRORS as e:
        print(f"Error analyzing scenario: {e}", file=sys.stderr)
        return 1

    analysis = analyze_event_dependencies(full, result)
    if args.format == "json":
        _dump_json(analysis.to_dict())
        return 0

    print("Independent events:")
    for event in analysis.independent_events:
        print(f"  {event.name}: {_money(event.amount)} {frequency_label(event)}")
    print("Conditional events:")
    for item in analysis.conditional_events:
        print(f"  {item.event.name}: {'; '.join(item.conditions)}")
    print("Triggered events:")
    for item in analysis.triggered_events:
        fired = item.fired_at or "never"
        note = "" if item.resolved else " (unknown trigger)"
        print(f"  {item.event.name} ← {item.trigger_event}{note}, first fired {fired}")
    print("Event flow:")
    for month in analysis.event_flow:
        starting = ", ".join(i.event.name for i in month.starting_events)
        triggered = ", ".join(
            f"{i.event.name} (after {i.trigger_event})" for i in month.triggered_by
        )
        suffix = f" | {triggered}" if triggered else ""
        print(f"  {month.month_key}: {starting}{suffix}")
    return 0


def _print_node(node: TimelineEvent, depth: int) -> None:
    months = ",".join(str(o.month) for o in node.occurrences)
    print(f"{'  ' * depth}- {node.event.name}: {_money(node.total)} [months {months}]")
    for child in node.children:
        _print_node(child, depth + 1)


def cmd_timeline(args) -> int:
    """Print the yearly timeline with trigger hierarchies."""
    try:
        full, _, result, _, _ = _prepare(args)
    except _USER_ERRORS as e:
        print(f"Error building timeline: {e}", file=sys.stderr)
        return 1

    years = transform_to_timeline_data(analyze_event_dependencies(full, result))
    if args.format == "json":
        _dump_json({"years": [y.to_dict() for y in years]})
        return 0

    for year in years:
        print(
            f"{year.year}: income {_money(year.total_income)}, "
            f"expense {_money(year.total_expense)}, net {_money(year.net_cashflow)}"
        )
        for node in year.events:
            _print_node(node, 1)
    return 0


def _add_run_window(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-i", "--input", required=True, help="Input scenario catalog (YAML or JSON)"
    )
    parser.add_argument("--start", help="Start date (YYYY-MM-DD), default: today")
    window = parser.add_mutually_exclusive_group()
    window.add_argument("--end", help="End date (YYYY-MM-DD), inclusive")
    window.add_argument(
        "--years",
        type=int,
        help=f"Horizon in years (typical: {', '.join(map(str, HORIZON_YEARS))})",
    )
    parser.add_argument(
        "--initial-balance", type=float, help="Override the starting cash balance"
    )
    parser.add_argument(
        "--disable",
        nargs="*",
        metavar="EVENT",
        help="Disable events (and everything that depends on them)",
    )
    parser.add_argument(
        "--format", choices=["human", "json"], default="human", help="Output format"
    )


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="finevent", description="FinEventLab - Event-driven personal finance scenarios"
    )

    # Version argument
    parser.add_argument("--version", action="version", version="FinEventLab 0.1.0")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(
        dest="cmd", required=True, help="Available commands"
    )

    # Example command
    example_parser = subparsers.add_parser(
        "example", help="Print a minimal working scenario catalog"
    )
    example_parser.set_defaults(func=cmd_example)

    # Run command
    run_parser = subparsers.add_parser(
        "run", help="Run a scenario catalog and print or export results"
    )
    _add_run_window(run_parser)
    run_parser.add_argument("-o", "--output", help="Output results JSON file")
    run_parser.epilog = """
Evaluation Semantics:
  • Months are simulated in order; conditions only see balances and firings
    from earlier months (income-is-above looks at the current month)
  • Disabled events take every event that depends on them along
    """
    run_parser.set_defaults(func=cmd_run)

    # Validate command
    validate_parser = subparsers.add_parser(
        "validate", help="Validate a scenario catalog"
    )
    validate_parser.add_argument(
        "-i", "--input", required=True, help="Input scenario catalog (YAML or JSON)"
    )
    validate_parser.add_argument(
        "--format", choices=["human", "json"], default="human", help="Output format"
    )
    validate_parser.set_defaults(func=cmd_validate)

    # Analyze command
    analyze_parser = subparsers.add_parser(
        "analyze", help="Classify event dependencies and show the event flow"
    )
    _add_run_window(analyze_parser)
    analyze_parser.set_defaults(func=cmd_analyze)

    # Timeline command
    timeline_parser = subparsers.add_parser(
        "timeline", help="Show the yearly event timeline"
    )
    _add_run_window(timeline_parser)
    timeline_parser.set_defaults(func=cmd_timeline)

    # Parse arguments and execute
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
