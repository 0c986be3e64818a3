"""
Portfolio inputs: non-cash holdings and the cash/asset split of raw positions.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import ConfigError
from .kinds import K


@dataclass(frozen=True)
class PortfolioAsset:
    """One holding tracked by the engine and used for dividend synthesis."""

    id: str
    name: str
    category: str
    initial_value: float
    currency: str = "EUR"

    @property
    def is_cash(self) -> bool:
        return self.category == K.CASH_CATEGORY

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "initial_value": self.initial_value,
            "currency": self.currency,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PortfolioAsset:
        try:
            return cls(
                id=str(data["id"]),
                name=str(data.get("name", data["id"])),
                category=str(data.get("category", "other")),
                initial_value=float(data["initial_value"]),
                currency=str(data.get("currency", "EUR")),
            )
        except KeyError as exc:
            raise ConfigError(f"Portfolio asset is missing field {exc}") from exc


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Starting cash balance plus the non-cash holdings."""

    initial_cash_balance: float = 0.0
    portfolio_assets: tuple[PortfolioAsset, ...] = field(default_factory=tuple)

    @property
    def total_value(self) -> float:
        return self.initial_cash_balance + sum(
            a.initial_value for a in self.portfolio_assets
        )


def split_positions(positions: Iterable[Mapping[str, Any]]) -> PortfolioSnapshot:
    """
    Partition raw positions into a cash balance and non-cash assets.

    Each position is a mapping with ``id``, ``name``, ``category`` (or
    ``category_id``), ``total_value`` and optionally ``currency``. Positions
    in the ``cash`` category are summed into the starting cash balance; all
    others become :class:`PortfolioAsset` entries in input order.
    """
    cash = 0.0
    assets: list[PortfolioAsset] = []
    for idx, position in enumerate(positions):
        category = position.get("category", position.get("category_id"))
        try:
            value = float(position["total_value"])
        except KeyError as exc:
            raise ConfigError(f"positions[{idx}] is missing 'total_value'") from exc
        if category == K.CASH_CATEGORY:
            cash += value
            continue
        assets.append(
            PortfolioAsset(
                id=str(position.get("id", idx)),
                name=str(position.get("name", position.get("id", idx))),
                category=str(category or "other"),
                initial_value=value,
                currency=str(position.get("currency", "EUR")),
            )
        )
    return PortfolioSnapshot(initial_cash_balance=cash, portfolio_assets=tuple(assets))
