"""
Core module for FinEventLab.

This module contains the event model, the month-stepping simulation engine and
the views derived from a run (dependency analysis, yearly timeline).
"""

from .analyzer import (
    ConditionalEvent,
    EventDependencyAnalysis,
    EventFlowMonth,
    FlowItem,
    TriggeredEvent,
    TriggeredFlowItem,
    analyze_event_dependencies,
    describe_condition,
    frequency_label,
)
from .catalog_loader import CatalogDefinition, CatalogError, load_catalog
from .conditions import (
    Condition,
    ConditionTag,
    DateInRange,
    DateIs,
    EventHappened,
    IncomeIsAbove,
    NetworthIsAbove,
)
from .dividends import generate_dividend_events
from .errors import ConfigError
from .events import (
    EventType,
    Frequency,
    Monthly,
    Once,
    ScenarioEvent,
    Yearly,
    is_event_active_in_month,
    make_event,
    make_one_off,
    make_recurring,
)
from .exceptions import ScenarioValidationError
from .kinds import K
from .local_date import LocalDate, ld, month_range
from .portfolio import PortfolioAsset, PortfolioSnapshot, split_positions
from .registry import EventRegistry
from .results import (
    CashflowRecord,
    FiredEvent,
    ScenarioResult,
    ScenarioResultExtended,
    aggregate_totals,
)
from .scenario import Scenario, ScenarioConfig, run_scenario
from .timeline import Occurrence, TimelineEvent, TimelineYear, transform_to_timeline_data
from .utils import HORIZON_YEARS, horizon_end, monthly_rate
from .validation import ValidationReport

__all__ = [
    # Errors
    "ConfigError",
    "ScenarioValidationError",
    "CatalogError",
    # Calendar
    "LocalDate",
    "ld",
    "month_range",
    # Kinds
    "K",
    # Conditions
    "Condition",
    "ConditionTag",
    "DateIs",
    "DateInRange",
    "NetworthIsAbove",
    "EventHappened",
    "IncomeIsAbove",
    # Events
    "EventType",
    "Frequency",
    "Once",
    "Monthly",
    "Yearly",
    "ScenarioEvent",
    "is_event_active_in_month",
    "make_event",
    "make_one_off",
    "make_recurring",
    # Registry and validation
    "EventRegistry",
    "ValidationReport",
    # Portfolio
    "PortfolioAsset",
    "PortfolioSnapshot",
    "split_positions",
    "generate_dividend_events",
    # Engine and results
    "Scenario",
    "ScenarioConfig",
    "run_scenario",
    "FiredEvent",
    "CashflowRecord",
    "ScenarioResult",
    "ScenarioResultExtended",
    "aggregate_totals",
    # Analysis
    "ConditionalEvent",
    "TriggeredEvent",
    "FlowItem",
    "TriggeredFlowItem",
    "EventFlowMonth",
    "EventDependencyAnalysis",
    "analyze_event_dependencies",
    "describe_condition",
    "frequency_label",
    # Timeline
    "Occurrence",
    "TimelineEvent",
    "TimelineYear",
    "transform_to_timeline_data",
    # Catalogs
    "CatalogDefinition",
    "load_catalog",
    # Utilities
    "HORIZON_YEARS",
    "horizon_end",
    "monthly_rate",
]
