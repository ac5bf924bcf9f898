# BizOptima - Business Data & Analytics core for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Export module for BizOptima.

Two export formats are supported:

1) Workbook (.xlsx)
   Up to three sheets, each written only when its entity is present:

       "Business Data"      one row: Company Name, Industry, Employees,
                            Revenue, Costs, Assets, Liabilities, Cash Flow,
                            Created, Updated
       "Financial Records"  Date, Revenue, Expenses, Profit, Cash Flow
       "KPIs"               Metric, Value, Target, Unit, Category

   File name: ``<company name or "Business">_Data_<YYYY-MM-DD>.xlsx``

2) CSV (financial records only)

       Date,Revenue,Expenses,Profit,Cash Flow
       2024-01-01,125000,100000,25000,15000

   Fields are joined with commas, without quoting; lines are separated by
   "\\n" and records are written in ascending date order.

   File name: ``<company name or "Business">_Financial_<YYYY-MM-DD>.csv``

The ``build_*`` functions return the file content; the ``export_*`` functions
write it into a directory and return the path of the new file. When there is
nothing to export, ``NothingToExportError`` is raised and no file is written.
"""

import logging
import os
from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from .data_store import DataStore
from .views import (
    INDICATORS_SHEET,
    PROFILE_SHEET,
    RECORDS_SHEET,
    indicators_to_dataframe,
    profile_to_dataframe,
    records_to_dataframe,
)

logger = logging.getLogger(__name__)

CSV_HEADER = "Date,Revenue,Expenses,Profit,Cash Flow"
DEFAULT_FILE_PREFIX = "Business"


class NothingToExportError(ValueError):
    """Raised when an export is requested but the store holds nothing to write."""


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _format_number(value: float) -> str:
    """Render a number the way the dashboard does: 1500.0 -> '1500'."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def _file_prefix(store: DataStore) -> str:
    """Company name (path separators replaced) or the default prefix."""
    profile = store.get_profile()
    name = profile.company_name if profile is not None else ""
    if not name:
        return DEFAULT_FILE_PREFIX
    return name.replace("/", "_").replace("\\", "_")


def _write(path: Path, content: Union[str, bytes]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def workbook_file_name(store: DataStore, today: Optional[date] = None) -> str:
    day = today or date.today()
    return f"{_file_prefix(store)}_Data_{day.isoformat()}.xlsx"


def csv_file_name(store: DataStore, today: Optional[date] = None) -> str:
    day = today or date.today()
    return f"{_file_prefix(store)}_Financial_{day.isoformat()}.csv"


def build_csv(store: DataStore) -> str:
    """
    Serialize the financial records as CSV text.

    Raises
    ------
    NothingToExportError
        If the store holds no financial record.
    """
    records = store.get_records()
    if not records:
        raise NothingToExportError("No financial records to export")

    lines = [CSV_HEADER]
    for record in records:
        fields = [
            record.date,
            _format_number(record.revenue),
            _format_number(record.expenses),
            _format_number(record.profit),
            _format_number(record.cash_flow),
        ]
        lines.append(",".join(fields))
    return "\n".join(lines)


def build_workbook(store: DataStore) -> bytes:
    """
    Serialize the profile, records and KPIs as an .xlsx workbook.

    Raises
    ------
    NothingToExportError
        If the store is empty (a workbook needs at least one sheet).
    """
    sheets: list[tuple[str, pd.DataFrame]] = []

    profile = store.get_profile()
    if profile is not None:
        sheets.append((PROFILE_SHEET, profile_to_dataframe(profile)))

    records = store.get_records()
    if records:
        sheets.append((RECORDS_SHEET, records_to_dataframe(records)))

    indicators = store.get_indicators()
    if indicators:
        sheets.append((INDICATORS_SHEET, indicators_to_dataframe(indicators)))

    if not sheets:
        raise NothingToExportError("No data to export")

    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for sheet_name, df in sheets:
            df.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()


def export_csv(
    store: DataStore,
    output_dir: Union[str, "os.PathLike[str]"],
    today: Optional[date] = None,
) -> Path:
    """
    Write the financial records CSV into ``output_dir``.

    Raises
    ------
    NothingToExportError
        If the store holds no financial record. No file is written.
    """
    content = build_csv(store)
    path = _write(Path(output_dir) / csv_file_name(store, today), content)
    logger.info("Exported %d financial records to %s", len(store.get_records()), path)
    return path


def export_workbook(
    store: DataStore,
    output_dir: Union[str, "os.PathLike[str]"],
    today: Optional[date] = None,
) -> Path:
    """
    Write the workbook into ``output_dir``.

    Raises
    ------
    NothingToExportError
        If the store is empty. No file is written.
    """
    content = build_workbook(store)
    path = _write(Path(output_dir) / workbook_file_name(store, today), content)
    logger.info("Exported workbook to %s", path)
    return path
