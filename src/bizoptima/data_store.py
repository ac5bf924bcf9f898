# BizOptima - Business Data & Analytics core for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Entity store for BizOptima.

This module sits between:
- the persistence port in `db.py` (a durable key-value medium), and
- user-facing layers such as the import/export adapters, the CLI or the
  dashboard front-end.

It owns the three entity kinds of the application and is the only component
allowed to mutate them.

Responsibilities
----------------
1) Profile
   - Create or replace the single business profile from partial data.
   - Missing text fields default to "" and missing numbers to 0.
   - The profile id and creation timestamp survive replacements unless the
     caller supplies new values; the update timestamp is always refreshed.

2) Financial records
   - Add records with replace-by-date semantics (one record per date).
   - Keep the collection in ascending date order after every mutation.
   - Partial updates and deletions by date. Unknown dates are a no-op.

3) Indicators (KPIs)
   - Wholesale replacement of the collection.
   - Add with replace-by-metric semantics (one indicator per metric name).
   - Partial updates and deletions by metric name.

4) Derived metrics
   - Computed on demand from the current profile (see metrics.py).

5) Persistence
   - Every mutation writes the full state (three JSON snapshots) through the
     injected key-value store.
   - Write failures are logged and never raised; in-memory state stays
     authoritative and is not rolled back.
   - On construction, each snapshot is loaded independently; a corrupt or
     unreadable snapshot leaves its entity kind empty and is logged.

Design notes
------------
- Records and indicators are held in dicts keyed by their natural key
  (date / metric). Ordered lists are projected only when read.
- The store applies defaults rather than rejecting incomplete input;
  validation of manual entries belongs to the presentation layer.
- The store is an explicitly constructed object. Tests build isolated
  instances on top of ``MemoryKeyValueStore``.
"""

import json
import logging
from dataclasses import replace
from datetime import date
from typing import Iterable, Optional
from uuid import uuid4

from .db import (
    BUSINESS_DATA_KEY,
    FINANCIAL_RECORDS_KEY,
    KPI_DATA_KEY,
    KeyValueStore,
)
from .metrics import compute_derived_metrics
from .models import (
    DerivedMetrics,
    FinancialRecord,
    Indicator,
    IndicatorUpdate,
    Profile,
    ProfileInput,
    RecordInput,
    RecordUpdate,
    indicator_from_json_dict,
    indicator_to_json_dict,
    normalize_category,
    now_utc,
    profile_from_json_dict,
    profile_to_json_dict,
    record_from_json_dict,
    record_to_json_dict,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _generate_id() -> str:
    """Return a new opaque profile identifier."""
    return uuid4().hex


def _today_iso() -> str:
    """Return the current date as 'YYYY-MM-DD'."""
    return date.today().isoformat()


def _date_sort_key(value: str) -> tuple[int, str]:
    """
    Sort key for record dates.

    ISO dates sort chronologically as plain strings. Values that are not ISO
    dates (legacy imports) are kept after them, in string order.
    """
    try:
        date.fromisoformat(value)
    except ValueError:
        return (1, value)
    return (0, value)


def _checked_indicator(indicator: Indicator) -> Indicator:
    """Return ``indicator`` with a valid category, logging any correction."""
    category = normalize_category(indicator.category)
    if category == indicator.category:
        return indicator
    if str(indicator.category or "").strip().lower() != category:
        logger.warning(
            "Unknown category %r for indicator %r, using %r.",
            indicator.category,
            indicator.metric,
            category,
        )
    return replace(indicator, category=category)


# ---------------------------------------------------------------------------
# Data store
# ---------------------------------------------------------------------------


class DataStore:
    """
    In-memory model of the business data, written through to a key-value store.

    Parameters
    ----------
    storage:
        Persistence port. Its three keys are read once, on construction.

    Notes
    -----
    The store is synchronous and not thread-safe. ``close`` releases the
    underlying storage; the store can also be used as a context manager.
    """

    def __init__(self, storage: KeyValueStore) -> None:
        self._storage = storage
        self._profile: Optional[Profile] = None
        self._records: dict[str, FinancialRecord] = {}
        self._indicators: dict[str, Indicator] = {}
        self._load()

    def __enter__(self) -> "DataStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying storage."""
        self._storage.close()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        """Load the three snapshots, each one independently of the others."""
        try:
            raw = self._storage.load(BUSINESS_DATA_KEY)
            data = json.loads(raw) if raw else None
            self._profile = None if data is None else profile_from_json_dict(data)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to load business profile from storage.")
            self._profile = None

        try:
            raw = self._storage.load(FINANCIAL_RECORDS_KEY)
            records = [record_from_json_dict(item) for item in json.loads(raw or "[]")]
            self._records = {}
            for record in records:
                self._records[record.date] = record
            self._sort_records()
        except Exception:  # noqa: BLE001
            logger.exception("Failed to load financial records from storage.")
            self._records = {}

        try:
            raw = self._storage.load(KPI_DATA_KEY)
            indicators = [
                indicator_from_json_dict(item) for item in json.loads(raw or "[]")
            ]
            self._indicators = {i.metric: i for i in indicators}
        except Exception:  # noqa: BLE001
            logger.exception("Failed to load KPIs from storage.")
            self._indicators = {}

        logger.debug(
            "Loaded data store: profile=%s, records=%d, indicators=%d.",
            self._profile is not None,
            len(self._records),
            len(self._indicators),
        )

    def _save(self) -> None:
        """
        Write the full state to storage.

        Failures (serialization errors, full disk, closed database, ...) are
        logged and swallowed: the in-memory state is kept as is.
        """
        try:
            profile = (
                None if self._profile is None else profile_to_json_dict(self._profile)
            )
            self._storage.save(BUSINESS_DATA_KEY, json.dumps(profile))
            self._storage.save(
                FINANCIAL_RECORDS_KEY,
                json.dumps([record_to_json_dict(r) for r in self._records.values()]),
            )
            self._storage.save(
                KPI_DATA_KEY,
                json.dumps([indicator_to_json_dict(i) for i in self._indicators.values()]),
            )
        except Exception:  # noqa: BLE001
            logger.exception("Failed to save data to storage.")

    def _sort_records(self) -> None:
        self._records = dict(
            sorted(self._records.items(), key=lambda item: _date_sort_key(item[0]))
        )

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def set_profile(self, data: Optional[ProfileInput] = None) -> Profile:
        """
        Create or replace the business profile.

        Supplied fields are merged over defaults (text -> "", numbers -> 0).
        ``id`` and ``created_at`` are taken from ``data`` when supplied,
        otherwise from the existing profile, otherwise freshly generated.
        ``updated_at`` is always set to the current time.
        """
        data = data or ProfileInput()
        now = now_utc()
        current = self._profile

        if data.id:
            profile_id = data.id
        elif current is not None:
            profile_id = current.id
        else:
            profile_id = _generate_id()

        if data.created_at is not None:
            created_at = data.created_at
        elif current is not None:
            created_at = current.created_at
        else:
            created_at = now

        self._profile = Profile(
            id=profile_id,
            company_name=data.company_name or "",
            industry=data.industry or "",
            employees=int(data.employees or 0),
            revenue=float(data.revenue or 0),
            costs=float(data.costs or 0),
            assets=float(data.assets or 0),
            liabilities=float(data.liabilities or 0),
            cash_flow=float(data.cash_flow or 0),
            created_at=created_at,
            updated_at=now,
        )
        self._save()
        return self._profile

    def get_profile(self) -> Optional[Profile]:
        return self._profile

    # ------------------------------------------------------------------
    # Financial records
    # ------------------------------------------------------------------

    def add_record(self, record: RecordInput) -> FinancialRecord:
        """
        Add a financial record, replacing any record with the same date.

        When ``record.date`` is None, today's date is used.
        """
        new_record = FinancialRecord(
            date=record.date or _today_iso(),
            revenue=float(record.revenue),
            expenses=float(record.expenses),
            profit=float(record.profit),
            cash_flow=float(record.cash_flow),
        )
        self._records.pop(new_record.date, None)
        self._records[new_record.date] = new_record
        self._sort_records()
        self._save()
        return new_record

    def get_records(self) -> list[FinancialRecord]:
        """Return the financial records in ascending date order."""
        return list(self._records.values())

    def get_record(self, record_date: str) -> Optional[FinancialRecord]:
        return self._records.get(record_date)

    def update_record(self, record_date: str, update: RecordUpdate) -> None:
        """
        Apply a partial update to the record stored under ``record_date``.

        Does nothing when no record matches. If the update changes the date,
        the record moves to the new date and replaces any record found there.
        An empty date in ``update`` is ignored.
        """
        current = self._records.get(record_date)
        if current is None:
            logger.debug("No financial record for %s, update ignored.", record_date)
            return

        changes = {k: v for k, v in vars(update).items() if v is not None}
        if not changes.get("date"):
            changes.pop("date", None)
        updated = replace(current, **changes)

        del self._records[record_date]
        self._records[updated.date] = updated
        self._sort_records()
        self._save()

    def delete_record(self, record_date: str) -> None:
        """Remove the record stored under ``record_date`` (if any)."""
        self._records.pop(record_date, None)
        self._save()

    # ------------------------------------------------------------------
    # Indicators
    # ------------------------------------------------------------------

    def set_indicators(self, indicators: Iterable[Indicator]) -> None:
        """Replace the whole indicator collection. Later duplicates win."""
        self._indicators = {}
        for indicator in indicators:
            checked = _checked_indicator(indicator)
            self._indicators.pop(checked.metric, None)
            self._indicators[checked.metric] = checked
        self._save()

    def add_indicator(self, indicator: Indicator) -> Indicator:
        """Add an indicator, replacing any indicator with the same metric."""
        checked = _checked_indicator(indicator)
        self._indicators.pop(checked.metric, None)
        self._indicators[checked.metric] = checked
        self._save()
        return checked

    def get_indicators(self) -> list[Indicator]:
        return list(self._indicators.values())

    def get_indicator(self, metric: str) -> Optional[Indicator]:
        return self._indicators.get(metric)

    def update_indicator(self, metric: str, update: IndicatorUpdate) -> None:
        """
        Apply a partial update to the indicator named ``metric``.

        Does nothing when no indicator matches. Renaming the metric replaces
        any indicator already registered under the new name.
        An empty metric name in ``update`` is ignored.
        """
        current = self._indicators.get(metric)
        if current is None:
            logger.debug("No indicator named %r, update ignored.", metric)
            return

        changes = {k: v for k, v in vars(update).items() if v is not None}
        if not changes.get("metric"):
            changes.pop("metric", None)
        updated = _checked_indicator(replace(current, **changes))

        if updated.metric == metric:
            self._indicators[metric] = updated
        else:
            del self._indicators[metric]
            self._indicators.pop(updated.metric, None)
            self._indicators[updated.metric] = updated
        self._save()

    def delete_indicator(self, metric: str) -> None:
        """Remove the indicator named ``metric`` (if any)."""
        self._indicators.pop(metric, None)
        self._save()

    # ------------------------------------------------------------------
    # Whole store
    # ------------------------------------------------------------------

    def clear_all(self) -> None:
        """Remove the profile, every record and every indicator."""
        self._profile = None
        self._records = {}
        self._indicators = {}
        self._save()

    def get_derived_metrics(self) -> Optional[DerivedMetrics]:
        """Return the metrics derived from the profile, or None without one."""
        return compute_derived_metrics(self._profile)
