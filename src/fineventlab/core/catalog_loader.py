"""Utilities for loading scenario catalogs from YAML/JSON sources."""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .events import ScenarioEvent, event_from_dict
from .exceptions import ScenarioValidationError
from .local_date import LocalDate
from .portfolio import PortfolioAsset, PortfolioSnapshot, split_positions
from .scenario import Scenario, ScenarioConfig
from .utils import horizon_end

__all__ = [
    "CatalogError",
    "CatalogDefinition",
    "RunSettings",
    "load_catalog",
    "scenario_to_dict",
    "dump_catalog",
]


class CatalogError(ValueError):
    """Raised when a catalog file cannot be parsed or validated."""


@dataclass(slots=True)
class RunSettings:
    """Optional ``run:`` section: date range and starting balance."""

    start: LocalDate | None = None
    end: LocalDate | None = None
    years: int | None = None
    initial_balance: float | None = None

    def resolve_end(self, start: LocalDate) -> LocalDate | None:
        if self.end is not None:
            return self.end
        if self.years is not None:
            return horizon_end(start, self.years)
        return None


@dataclass(slots=True)
class CatalogDefinition:
    """Structured representation of a scenario catalog."""

    scenario: Scenario
    portfolio: PortfolioSnapshot | None = None
    run: RunSettings = field(default_factory=RunSettings)
    metadata: dict[str, Any] = field(default_factory=dict)
    source: str = "<memory>"


def load_catalog(
    source: str | Path | dict[str, Any],
    *,
    format: str | None = None,
    validate_triggers: bool = True,
) -> CatalogDefinition:
    """Parse a scenario catalog from YAML/JSON/dict into a ready-to-run scenario."""

    mapping, label = _read_source(source, format=format)
    name = _scenario_name(mapping, label)
    config = _normalize_config(mapping.get("config"), label)
    events = _normalize_events(mapping.get("events"), label)
    try:
        scenario = Scenario(
            name=name,
            events=tuple(events),
            config=config,
            validate_triggers=validate_triggers,
        )
    except ScenarioValidationError as exc:
        raise CatalogError(f"{label}: {exc}") from exc
    return CatalogDefinition(
        scenario=scenario,
        portfolio=_normalize_portfolio(mapping.get("portfolio"), label),
        run=_normalize_run(mapping.get("run"), label),
        metadata={"version": mapping.get("version", 1)},
        source=label,
    )


def scenario_to_dict(
    scenario: Scenario, portfolio: PortfolioSnapshot | None = None
) -> dict[str, Any]:
    """Serialize a scenario (and optional portfolio) to the catalog layout."""
    data: dict[str, Any] = {
        "version": 1,
        "scenario": {"name": scenario.name},
        "config": {
            "growth_rate": scenario.config.growth_rate,
            "dividend_yield": scenario.config.dividend_yield,
        },
        "events": [e.to_dict() for e in scenario.events],
    }
    if portfolio is not None:
        data["portfolio"] = {
            "cash_balance": portfolio.initial_cash_balance,
            "assets": [a.to_dict() for a in portfolio.portfolio_assets],
        }
    return data


def dump_catalog(
    scenario: Scenario,
    path: str | Path,
    portfolio: PortfolioSnapshot | None = None,
) -> None:
    """Write a scenario catalog as YAML (``.yaml``/``.yml``) or JSON."""
    path = Path(path)
    data = scenario_to_dict(scenario, portfolio)
    if path.suffix.lower() in {".yaml", ".yml"}:
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    else:
        text = json.dumps(data, indent=2, ensure_ascii=False)
    path.write_text(text, encoding="utf-8")


def _read_source(
    source: str | Path | dict[str, Any], *, format: str | None
) -> tuple[dict[str, Any], str]:
    if isinstance(source, dict):
        return deepcopy(source), "<mapping>"

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(path)

    fmt = (format or path.suffix.lstrip(".")).lower()
    text = path.read_text(encoding="utf-8")
    try:
        if fmt in {"yaml", "yml", ""}:
            data = yaml.safe_load(text)
        elif fmt == "json":
            data = json.loads(text)
        else:
            raise CatalogError(f"Unsupported catalog format '{fmt}' for {path}")
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise CatalogError(f"{path}: could not parse catalog: {exc}") from exc

    if not isinstance(data, dict):
        raise CatalogError(f"Catalog root must be a mapping (source={path})")
    return data, str(path)


def _scenario_name(mapping: dict[str, Any], label: str) -> str:
    section = _ensure_dict(mapping.get("scenario"), f"{label}::scenario")
    name = section.get("name", mapping.get("name", "scenario"))
    return _coerce_str(name, f"{label}::scenario.name")


def _normalize_config(raw: Any, label: str) -> ScenarioConfig:
    data = _ensure_dict(raw, f"{label}::config")
    try:
        return ScenarioConfig.from_dict(data)
    except (TypeError, ValueError) as exc:
        raise CatalogError(f"{label}::config: {exc}") from exc


def _normalize_events(raw: Any, label: str) -> list[ScenarioEvent]:
    entries = _ensure_list(raw, f"{label}::events")
    events: list[ScenarioEvent] = []
    for idx, entry in enumerate(entries):
        ctx = f"{label}::events[{idx}]"
        data = _ensure_dict(entry, ctx)
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise CatalogError(f"{ctx}: 'name' is required")
        if "unlocked_by" in data:
            _ensure_list(data["unlocked_by"], f"{ctx}.unlocked_by")
        try:
            events.append(event_from_dict(data))
        except (ConfigError, TypeError, ValueError) as exc:
            raise CatalogError(f"{ctx} ({name}): {exc}") from exc
    return events


def _normalize_portfolio(raw: Any, label: str) -> PortfolioSnapshot | None:
    if raw is None:
        return None
    ctx = f"{label}::portfolio"
    data = _ensure_dict(raw, ctx)
    try:
        if "positions" in data:
            return split_positions(_ensure_list(data["positions"], f"{ctx}.positions"))
        assets = [
            PortfolioAsset.from_dict(_ensure_dict(item, f"{ctx}.assets[{idx}]"))
            for idx, item in enumerate(
                _ensure_list(data.get("assets"), f"{ctx}.assets", allow_none=True)
                or []
            )
        ]
        cash = float(data.get("cash_balance", 0.0))
    except CatalogError:
        raise
    except (ConfigError, TypeError, ValueError) as exc:
        raise CatalogError(f"{ctx}: {exc}") from exc
    return PortfolioSnapshot(initial_cash_balance=cash, portfolio_assets=tuple(assets))


def _normalize_run(raw: Any, label: str) -> RunSettings:
    ctx = f"{label}::run"
    data = _ensure_dict(raw, ctx)
    years = data.get("years")
    if years is not None and (isinstance(years, bool) or not isinstance(years, int)):
        raise CatalogError(f"{ctx}.years must be an integer")
    balance = data.get("initial_balance")
    return RunSettings(
        start=_coerce_date(data.get("start"), f"{ctx}.start"),
        end=_coerce_date(data.get("end"), f"{ctx}.end"),
        years=years,
        initial_balance=float(balance) if balance is not None else None,
    )


def _coerce_date(value: Any, ctx: str) -> LocalDate | None:
    if value is None:
        return None
    try:
        return LocalDate.coerce(value)
    except ConfigError as exc:
        raise CatalogError(f"{ctx}: {exc}") from exc


def _coerce_str(value: Any, ctx: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise CatalogError(f"{ctx}: expected non-empty string")
    return value


def _ensure_dict(value: Any, ctx: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise CatalogError(f"{ctx}: expected a mapping")
    return deepcopy(value)


def _ensure_list(value: Any, ctx: str, *, allow_none: bool = False) -> list[Any] | None:
    if value is None:
        if allow_none:
            return None
        raise CatalogError(f"{ctx}: expected a list")
    if not isinstance(value, list):
        raise CatalogError(f"{ctx}: expected a list")
    return list(value)
