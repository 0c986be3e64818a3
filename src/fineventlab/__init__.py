"""
FinEventLab - Event-Driven Scenario Engine for Personal Finances

FinEventLab models a person's finances over time as a list of income and
expense events. Some events are unconditional; others are gated by conditions
that read the simulation's own running state (net worth reached, another
event happened, an income above a threshold). The engine steps month by month
and produces balance and cash-flow series plus two explanatory views.

Key Features:
- **Deterministic**: Each run is a pure function of its inputs
- **Temporal Conditions**: Conditions only observe state finalized in earlier months
- **Portfolio Tracking**: Optional per-asset growth at a fixed rate, with dividends
- **Dependency Analysis**: Independent, conditional and triggered events plus event flow
- **Yearly Timeline**: Per-year trees of events and the events they triggered
- **Catalogs**: Scenarios described in YAML or JSON

Architecture Overview:
- **LocalDate**: Calendar value with month-keys ("YYYY-MM") and month arithmetic
- **ScenarioEvent**: Income/expense with a recurrence and unlock conditions
- **Scenario**: Ordered, name-unique events validated on construction
- **run_scenario**: The month-stepping simulation engine
- **analyze_event_dependencies / transform_to_timeline_data**: Derived views
- **kpi**: Analytics over the monthly DataFrame of a result

Quick Start:
    ```python
    from fineventlab import (
        EventHappened, NetworthIsAbove, Scenario, analyze_event_dependencies,
        ld, make_event, make_one_off, make_recurring,
    )

    scenario = Scenario(
        name="Demo",
        events=[
            make_recurring("Salary", 2000, "income", "monthly", ld(2025, 1, 1)),
            make_event("Holidays", 4000, "expense", [NetworthIsAbove(6000)]),
        ],
    )
    result = scenario.run(ld(2025, 1, 1), ld(2025, 5, 1))
    result.balance  # {"2025-01": 2000.0, ..., "2025-04": 4000.0, "2025-05": 6000.0}

    analysis = analyze_event_dependencies(scenario, result)
    ```

License:
    This is a proof-of-concept for educational and research purposes.
"""

# Version information
__version__ = "0.1.0"
__author__ = "FinEventLab Team"
__description__ = "Event-Driven Scenario Engine for Personal Finances"

# Import core components for easy access
from .core import (
    CashflowRecord,
    CatalogError,
    ConditionalEvent,
    ConfigError,
    DateInRange,
    DateIs,
    EventDependencyAnalysis,
    EventFlowMonth,
    EventHappened,
    EventRegistry,
    EventType,
    FiredEvent,
    Frequency,
    IncomeIsAbove,
    K,
    LocalDate,
    Monthly,
    NetworthIsAbove,
    Occurrence,
    Once,
    PortfolioAsset,
    PortfolioSnapshot,
    Scenario,
    ScenarioConfig,
    ScenarioEvent,
    ScenarioResult,
    ScenarioResultExtended,
    ScenarioValidationError,
    TimelineEvent,
    TimelineYear,
    TriggeredEvent,
    ValidationReport,
    Yearly,
    analyze_event_dependencies,
    describe_condition,
    frequency_label,
    generate_dividend_events,
    horizon_end,
    is_event_active_in_month,
    ld,
    load_catalog,
    make_event,
    make_one_off,
    make_recurring,
    run_scenario,
    split_positions,
    transform_to_timeline_data,
)

__all__ = [
    # Version
    "__version__",
    # Errors
    "ConfigError",
    "ScenarioValidationError",
    "CatalogError",
    # Calendar
    "LocalDate",
    "ld",
    "horizon_end",
    # Model
    "K",
    "EventType",
    "Frequency",
    "Once",
    "Monthly",
    "Yearly",
    "DateIs",
    "DateInRange",
    "NetworthIsAbove",
    "EventHappened",
    "IncomeIsAbove",
    "ScenarioEvent",
    "make_event",
    "make_one_off",
    "make_recurring",
    "is_event_active_in_month",
    # Scenario and engine
    "EventRegistry",
    "ValidationReport",
    "Scenario",
    "ScenarioConfig",
    "run_scenario",
    "FiredEvent",
    "CashflowRecord",
    "ScenarioResult",
    "ScenarioResultExtended",
    # Portfolio
    "PortfolioAsset",
    "PortfolioSnapshot",
    "split_positions",
    "generate_dividend_events",
    # Views
    "ConditionalEvent",
    "TriggeredEvent",
    "EventFlowMonth",
    "EventDependencyAnalysis",
    "analyze_event_dependencies",
    "describe_condition",
    "frequency_label",
    "Occurrence",
    "TimelineEvent",
    "TimelineYear",
    "transform_to_timeline_data",
    # Catalogs
    "load_catalog",
]
