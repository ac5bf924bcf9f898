# BizOptima - Business Data & Analytics core for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Import module for BizOptima.

This module parses uploaded files and applies their content to a
``DataStore``. It never raises past its public functions: every outcome is
reported as an ``ImportResult`` (success flag + human-readable message).
Entities applied before a failure stay applied (no rollback).

Workbook format (.xlsx / .xls)
------------------------------
Up to three sheets are read. For each entity kind, the first sheet name found
among its aliases is used; missing sheets are skipped.

    entity       sheet aliases                    columns
    ----------   ------------------------------   ------------------------------
    profile      "Business Data", "Company"       Company Name, Industry,
                                                  Employees, Revenue, Costs,
                                                  Assets, Liabilities, Cash Flow
    records      "Financial Records",             Date, Revenue, Expenses,
                 "Financials"                     Profit, Cash Flow
    KPIs         "KPIs", "Metrics"                Metric, Value, Target, Unit,
                                                  Category

Each column is also accepted under its camelCase key (``companyName``,
``cashFlow``, ``date``, ...). The human-readable header takes precedence when
both are filled.

- profile: only the first row is read.
- records: rows without a date are skipped; each row replaces the record
  stored for the same date.
- KPIs: rows without a metric name are dropped; the category defaults to
  "operational". When at least one KPI is read, the KPI collection is
  replaced by the imported one.

CSV format
----------
A header line followed by at least one data row (a leading UTF-8 byte order
mark is ignored). Only financial records are read from CSV files:

    Date,Revenue,Expenses,Profit,Cash Flow

Lowercase / camelCase headers (``date``, ``revenue``, ``cashFlow``) are
checked before the title-case ones.

Lines are split on literal commas. Double quotes are stripped from every
field, but a comma inside a quoted field is NOT supported: it always starts a
new field. Rows with fewer fields than the header are skipped; extra trailing
fields are ignored.

Numbers
-------
Missing, empty or unparseable numeric cells become 0.
"""

import logging
import math
import os
from dataclasses import dataclass
from datetime import date, datetime
from io import BytesIO
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

import pandas as pd

from .data_store import DataStore
from .models import DEFAULT_CATEGORY, Indicator, ProfileInput, RecordInput

logger = logging.getLogger(__name__)

PROFILE_SHEET_ALIASES: tuple[str, ...] = ("Business Data", "Company")
RECORDS_SHEET_ALIASES: tuple[str, ...] = ("Financial Records", "Financials")
INDICATORS_SHEET_ALIASES: tuple[str, ...] = ("KPIs", "Metrics")

CSV_EXTENSIONS: tuple[str, ...] = (".csv",)
WORKBOOK_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xls")

CSV_MIN_LINES_MESSAGE = "CSV file must have at least a header and one data row"
UNSUPPORTED_FILE_MESSAGE = "Please upload a CSV or Excel file"


@dataclass(frozen=True)
class ImportResult:
    """
    Outcome of an import.

    Attributes
    ----------
    success:
        False if the file could not be read or parsed.
    message:
        Human-readable summary, suitable for display.
    """

    success: bool
    message: str


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------


def _is_blank(value: Any) -> bool:
    """Return True for None, NaN/NaT and empty (or whitespace) strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _pick(row: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Return the first non-blank value found under ``keys`` (or None)."""
    for key in keys:
        value = row.get(key)
        if not _is_blank(value):
            return value
    return None


def _to_number(value: Any) -> float:
    """Convert a cell to float; blank or unparseable values become 0."""
    if _is_blank(value):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
    try:
        number = pd.to_numeric(value, errors="coerce")
    except (TypeError, ValueError):
        return 0.0
    if pd.isna(number):
        return 0.0
    number = float(number)
    if not math.isfinite(number):
        return 0.0
    return number


def _to_text(value: Any) -> str:
    if _is_blank(value):
        return ""
    return str(value)


def _to_date_text(value: Any) -> str:
    """Render a date cell as 'YYYY-MM-DD' when it holds a real date."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def _find_sheet(
    sheets: Mapping[str, pd.DataFrame], aliases: Sequence[str]
) -> Optional[pd.DataFrame]:
    for name in aliases:
        if name in sheets:
            return sheets[name]
    return None


def _sheet_rows(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Return the non-empty rows of a sheet as dicts keyed by header."""
    df = df.dropna(how="all")
    df.columns = [str(c).strip() for c in df.columns]
    return df.to_dict(orient="records")


# ---------------------------------------------------------------------------
# Workbook import
# ---------------------------------------------------------------------------


def _import_profile_sheet(store: DataStore, df: pd.DataFrame) -> int:
    rows = _sheet_rows(df)
    if not rows:
        return 0

    row = rows[0]
    store.set_profile(
        ProfileInput(
            company_name=_to_text(_pick(row, ("Company Name", "companyName"))),
            industry=_to_text(_pick(row, ("Industry", "industry"))),
            employees=int(_to_number(_pick(row, ("Employees", "employees")))),
            revenue=_to_number(_pick(row, ("Revenue", "revenue"))),
            costs=_to_number(_pick(row, ("Costs", "costs"))),
            assets=_to_number(_pick(row, ("Assets", "assets"))),
            liabilities=_to_number(_pick(row, ("Liabilities", "liabilities"))),
            cash_flow=_to_number(_pick(row, ("Cash Flow", "cashFlow"))),
        )
    )
    return 1


def _import_records_sheet(store: DataStore, df: pd.DataFrame) -> int:
    imported = 0
    for row in _sheet_rows(df):
        raw_date = _pick(row, ("Date", "date"))
        if raw_date is None:
            continue
        store.add_record(
            RecordInput(
                date=_to_date_text(raw_date),
                revenue=_to_number(_pick(row, ("Revenue", "revenue"))),
                expenses=_to_number(_pick(row, ("Expenses", "expenses"))),
                profit=_to_number(_pick(row, ("Profit", "profit"))),
                cash_flow=_to_number(_pick(row, ("Cash Flow", "cashFlow"))),
            )
        )
        imported += 1
    return imported


def _import_indicators_sheet(store: DataStore, df: pd.DataFrame) -> int:
    indicators = []
    for row in _sheet_rows(df):
        metric = _to_text(_pick(row, ("Metric", "metric")))
        if not metric:
            continue
        indicators.append(
            Indicator(
                metric=metric,
                value=_to_number(_pick(row, ("Value", "value"))),
                target=_to_number(_pick(row, ("Target", "target"))),
                unit=_to_text(_pick(row, ("Unit", "unit"))),
                category=_to_text(_pick(row, ("Category", "category")))
                or DEFAULT_CATEGORY,
            )
        )

    if indicators:
        store.set_indicators(indicators)
    return len(indicators)


def import_workbook(store: DataStore, data: bytes) -> ImportResult:
    """
    Import a workbook (.xlsx / .xls content) into ``store``.

    Parameters
    ----------
    store:
        Data store receiving the imported entities.
    data:
        Raw bytes of the workbook file.

    Returns
    -------
    ImportResult
        On success, the message reports the number of imported items
        (1 for the profile, 1 per record, 1 per KPI), which may be 0 when no
        known sheet was found. On failure, the message starts with
        "Import failed:".
    """
    try:
        sheets = pd.read_excel(BytesIO(data), sheet_name=None)
        imported = 0

        profile_df = _find_sheet(sheets, PROFILE_SHEET_ALIASES)
        if profile_df is not None:
            imported += _import_profile_sheet(store, profile_df)

        records_df = _find_sheet(sheets, RECORDS_SHEET_ALIASES)
        if records_df is not None:
            imported += _import_records_sheet(store, records_df)

        indicators_df = _find_sheet(sheets, INDICATORS_SHEET_ALIASES)
        if indicators_df is not None:
            imported += _import_indicators_sheet(store, indicators_df)

    except Exception as exc:  # noqa: BLE001
        logger.exception("Workbook import failed.")
        return ImportResult(success=False, message=f"Import failed: {exc}")

    logger.info("Workbook import: %d items imported.", imported)
    return ImportResult(
        success=True,
        message=f"Successfully imported {imported} records",
    )


# ---------------------------------------------------------------------------
# CSV import
# ---------------------------------------------------------------------------


def _split_csv_line(line: str) -> list[str]:
    """Split on literal commas, then trim and strip double quotes."""
    return [field.strip().replace('"', "") for field in line.split(",")]


def import_csv(store: DataStore, text: str) -> ImportResult:
    """
    Import financial records from CSV text into ``store``.

    Returns
    -------
    ImportResult
        On success, the message reports the number of records applied.
        Fails when the text has fewer than two non-blank lines, and wraps
        any unexpected error as "CSV import failed: <reason>".
    """
    # Excel "CSV UTF-8" files start with a byte order mark.
    text = text.removeprefix("\ufeff")

    try:
        lines = [line for line in text.split("\n") if line.strip()]
        if len(lines) < 2:
            return ImportResult(success=False, message=CSV_MIN_LINES_MESSAGE)

        headers = _split_csv_line(lines[0])
        records: list[RecordInput] = []

        for line_number, line in enumerate(lines[1:], start=2):
            values = _split_csv_line(line)
            if len(values) < len(headers):
                logger.debug("CSV line %d has too few fields, skipped.", line_number)
                continue

            row = dict(zip(headers, values))
            raw_date = _pick(row, ("date", "Date"))
            if raw_date is None:
                continue

            records.append(
                RecordInput(
                    date=raw_date,
                    revenue=_to_number(_pick(row, ("revenue", "Revenue"))),
                    expenses=_to_number(_pick(row, ("expenses", "Expenses"))),
                    profit=_to_number(_pick(row, ("profit", "Profit"))),
                    cash_flow=_to_number(_pick(row, ("cashFlow", "Cash Flow"))),
                )
            )

        for record in records:
            store.add_record(record)

    except Exception as exc:  # noqa: BLE001
        logger.exception("CSV import failed.")
        return ImportResult(success=False, message=f"CSV import failed: {exc}")

    logger.info("CSV import: %d financial records imported.", len(records))
    return ImportResult(
        success=True,
        message=f"Successfully imported {len(records)} financial records",
    )


# ---------------------------------------------------------------------------
# File dispatch
# ---------------------------------------------------------------------------


def import_file(store: DataStore, path: Union[str, "os.PathLike[str]"]) -> ImportResult:
    """
    Import a file into ``store``, choosing the parser from its extension.

    The extension check is case-sensitive: ``.csv`` files are read as UTF-8
    text, ``.xlsx`` / ``.xls`` files as bytes. Any other extension is
    rejected without reading the file.
    """
    file_path = Path(path)
    name = file_path.name

    if name.endswith(CSV_EXTENSIONS):
        try:
            text = file_path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Cannot read %s: %s", file_path, exc)
            return ImportResult(success=False, message=f"CSV import failed: {exc}")
        return import_csv(store, text)

    if name.endswith(WORKBOOK_EXTENSIONS):
        try:
            data = file_path.read_bytes()
        except OSError as exc:
            logger.error("Cannot read %s: %s", file_path, exc)
            return ImportResult(success=False, message=f"Import failed: {exc}")
        return import_workbook(store, data)

    logger.warning("Unsupported file type rejected: %s", file_path)
    return ImportResult(success=False, message=UNSUPPORTED_FILE_MESSAGE)
