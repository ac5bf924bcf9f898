# BizOptima - Business Data & Analytics core for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Data model for BizOptima.

Three kinds of entities are managed by the data store:

1) Profile
   The single business-identity record (company name, industry, headline
   financials). At most one profile exists at any time.

2) FinancialRecord
   One dated snapshot of revenue / expenses / profit / cash flow. Records are
   keyed by their ISO date ("YYYY-MM-DD").

3) Indicator
   A named KPI with a current value, a target, a unit and a category.
   Indicators are keyed by their metric name.

In addition, ``DerivedMetrics`` holds values computed from the profile
(see metrics.py), and the ``*Input`` / ``*Update`` dataclasses carry partial
data where every ``None`` attribute means "not supplied".

Wire format
-----------
Entities are persisted as JSON using the camelCase field names of the
dashboard front-end (``companyName``, ``cashFlow``, ``createdAt``, ...).
``to_json_dict`` / ``from_json_dict`` convert between the two worlds.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Mapping

IndicatorCategory = Literal["financial", "operational", "customer", "growth"]
"""
Category of a KPI.

Values
------
- "financial"  : money-related indicators (MRR, margins, ...).
- "operational": efficiency and productivity indicators (default).
- "customer"   : satisfaction, acquisition cost, churn, ...
- "growth"     : market share, growth rates, ...
"""

INDICATOR_CATEGORIES: tuple[str, ...] = (
    "financial",
    "operational",
    "customer",
    "growth",
)

DEFAULT_CATEGORY: IndicatorCategory = "operational"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Profile:
    """
    Business profile (company identity and headline financials).

    Attributes
    ----------
    id:
        Opaque identifier generated when the profile is first created.
    company_name, industry:
        Free text, empty string when unknown.
    employees:
        Headcount.
    revenue, costs, assets, liabilities, cash_flow:
        Amounts in currency units.
    created_at:
        UTC timestamp of the first creation, never overwritten.
    updated_at:
        UTC timestamp of the last mutation.
    """

    id: str
    company_name: str
    industry: str
    employees: int
    revenue: float
    costs: float
    assets: float
    liabilities: float
    cash_flow: float
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class FinancialRecord:
    """One dated financial snapshot, keyed by ``date`` (YYYY-MM-DD)."""

    date: str
    revenue: float
    expenses: float
    profit: float
    cash_flow: float


@dataclass(frozen=True)
class Indicator:
    """A key performance indicator, keyed by ``metric``."""

    metric: str
    value: float
    target: float
    unit: str
    category: IndicatorCategory = DEFAULT_CATEGORY


@dataclass(frozen=True)
class DerivedMetrics:
    """
    Values derived from the profile.

    ``gross_profit``, ``net_profit`` and ``equity`` are computed; the other
    attributes are carried over from the profile so that downstream consumers
    (the AI insights layer, charts) receive a self-contained structure.
    ``expenses`` mirrors ``costs``.
    """

    revenue: float
    costs: float
    expenses: float
    gross_profit: float
    net_profit: float
    assets: float
    liabilities: float
    equity: float
    cash_flow: float


# ---------------------------------------------------------------------------
# Partial inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProfileInput:
    """
    Partial profile data passed to ``DataStore.set_profile``.

    Each attribute is optional. Missing text fields become an empty string and
    missing numbers become 0. ``id`` and ``created_at`` are only needed when
    the caller wants to force them.
    """

    id: str | None = None
    company_name: str | None = None
    industry: str | None = None
    employees: int | None = None
    revenue: float | None = None
    costs: float | None = None
    assets: float | None = None
    liabilities: float | None = None
    cash_flow: float | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class RecordInput:
    """
    Data required to add a financial record.

    When ``date`` is None, the current date is used.
    """

    revenue: float = 0.0
    expenses: float = 0.0
    profit: float = 0.0
    cash_flow: float = 0.0
    date: str | None = None


@dataclass(frozen=True)
class RecordUpdate:
    """
    Fields that can be updated on an existing financial record.

    Only non-None values are applied.
    """

    date: str | None = None
    revenue: float | None = None
    expenses: float | None = None
    profit: float | None = None
    cash_flow: float | None = None


@dataclass(frozen=True)
class IndicatorUpdate:
    """
    Fields that can be updated on an existing indicator.

    Only non-None values are applied.
    """

    metric: str | None = None
    value: float | None = None
    target: float | None = None
    unit: str | None = None
    category: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def now_utc() -> datetime:
    """Return the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return now_utc()
    # JavaScript serializes UTC timestamps with a trailing "Z".
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _as_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    return float(value)


# ---------------------------------------------------------------------------
# JSON wire mapping
# ---------------------------------------------------------------------------


def profile_to_json_dict(profile: Profile) -> dict[str, Any]:
    """Convert a Profile to its camelCase JSON representation."""
    return {
        "id": profile.id,
        "companyName": profile.company_name,
        "industry": profile.industry,
        "employees": profile.employees,
        "revenue": profile.revenue,
        "costs": profile.costs,
        "assets": profile.assets,
        "liabilities": profile.liabilities,
        "cashFlow": profile.cash_flow,
        "createdAt": profile.created_at.isoformat(),
        "updatedAt": profile.updated_at.isoformat(),
    }


def profile_from_json_dict(data: Mapping[str, Any]) -> Profile:
    """
    Build a Profile from its camelCase JSON representation.

    Raises
    ------
    KeyError
        If ``id`` is missing.
    ValueError, TypeError
        If a numeric field or a timestamp cannot be parsed.
    """
    return Profile(
        id=str(data["id"]),
        company_name=str(data.get("companyName") or ""),
        industry=str(data.get("industry") or ""),
        employees=int(_as_float(data.get("employees"))),
        revenue=_as_float(data.get("revenue")),
        costs=_as_float(data.get("costs")),
        assets=_as_float(data.get("assets")),
        liabilities=_as_float(data.get("liabilities")),
        cash_flow=_as_float(data.get("cashFlow")),
        created_at=_parse_timestamp(data.get("createdAt")),
        updated_at=_parse_timestamp(data.get("updatedAt")),
    )


def record_to_json_dict(record: FinancialRecord) -> dict[str, Any]:
    """Convert a FinancialRecord to its camelCase JSON representation."""
    return {
        "date": record.date,
        "revenue": record.revenue,
        "expenses": record.expenses,
        "profit": record.profit,
        "cashFlow": record.cash_flow,
    }


def record_from_json_dict(data: Mapping[str, Any]) -> FinancialRecord:
    """Build a FinancialRecord from its camelCase JSON representation."""
    return FinancialRecord(
        date=str(data["date"]),
        revenue=_as_float(data.get("revenue")),
        expenses=_as_float(data.get("expenses")),
        profit=_as_float(data.get("profit")),
        cash_flow=_as_float(data.get("cashFlow")),
    )


def indicator_to_json_dict(indicator: Indicator) -> dict[str, Any]:
    """Convert an Indicator to its JSON representation."""
    return {
        "metric": indicator.metric,
        "value": indicator.value,
        "target": indicator.target,
        "unit": indicator.unit,
        "category": indicator.category,
    }


def indicator_from_json_dict(data: Mapping[str, Any]) -> Indicator:
    """Build an Indicator from its JSON representation."""
    return Indicator(
        metric=str(data["metric"]),
        value=_as_float(data.get("value")),
        target=_as_float(data.get("target")),
        unit=str(data.get("unit") or ""),
        category=normalize_category(data.get("category")),
    )


def normalize_category(value: Any) -> IndicatorCategory:
    """
    Return a valid indicator category for ``value``.

    Empty values and unknown categories fall back to "operational". Matching
    is case-insensitive and ignores surrounding whitespace.
    """
    if value is None:
        return DEFAULT_CATEGORY
    text = str(value).strip().lower()
    if text in INDICATOR_CATEGORIES:
        return text  # type: ignore[return-value]
    return DEFAULT_CATEGORY
