# BizOptima - Business Data & Analytics core for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for BizOptima.

This module turns entities into pandas DataFrames whose columns use the
human-readable headers of the exchange files ("Company Name", "Cash Flow",
...). The same headers are recognized on import (see io.py), so a workbook
exported by BizOptima can be imported back unchanged.

The DataFrames are used for workbook export and for console display.
"""

from typing import Optional, Sequence

import pandas as pd

from .models import FinancialRecord, Indicator, Profile

# Sheet names written on export (the first alias accepted on import).
PROFILE_SHEET = "Business Data"
RECORDS_SHEET = "Financial Records"
INDICATORS_SHEET = "KPIs"

# (attribute, header) pairs, in column order.
PROFILE_COLUMNS: tuple[tuple[str, str], ...] = (
    ("company_name", "Company Name"),
    ("industry", "Industry"),
    ("employees", "Employees"),
    ("revenue", "Revenue"),
    ("costs", "Costs"),
    ("assets", "Assets"),
    ("liabilities", "Liabilities"),
    ("cash_flow", "Cash Flow"),
    ("created_at", "Created"),
    ("updated_at", "Updated"),
)

RECORD_COLUMNS: tuple[tuple[str, str], ...] = (
    ("date", "Date"),
    ("revenue", "Revenue"),
    ("expenses", "Expenses"),
    ("profit", "Profit"),
    ("cash_flow", "Cash Flow"),
)

INDICATOR_COLUMNS: tuple[tuple[str, str], ...] = (
    ("metric", "Metric"),
    ("value", "Value"),
    ("target", "Target"),
    ("unit", "Unit"),
    ("category", "Category"),
)


def _headers(columns: Sequence[tuple[str, str]]) -> list[str]:
    return [header for _, header in columns]


def profile_to_dataframe(profile: Optional[Profile]) -> pd.DataFrame:
    """
    Return a one-row DataFrame for ``profile`` (empty when None).

    Timestamps are rendered as ISO-8601 strings so that the frame can be
    written to a workbook as is.
    """
    if profile is None:
        return pd.DataFrame(columns=_headers(PROFILE_COLUMNS))

    row = {}
    for attr, header in PROFILE_COLUMNS:
        value = getattr(profile, attr)
        if attr in ("created_at", "updated_at"):
            value = value.isoformat()
        row[header] = value
    return pd.DataFrame([row], columns=_headers(PROFILE_COLUMNS))


def records_to_dataframe(records: Sequence[FinancialRecord]) -> pd.DataFrame:
    """Return one row per record, in the given order."""
    rows = [
        {header: getattr(record, attr) for attr, header in RECORD_COLUMNS}
        for record in records
    ]
    return pd.DataFrame(rows, columns=_headers(RECORD_COLUMNS))


def indicators_to_dataframe(indicators: Sequence[Indicator]) -> pd.DataFrame:
    """Return one row per indicator, in the given order."""
    rows = [
        {header: getattr(indicator, attr) for attr, header in INDICATOR_COLUMNS}
        for indicator in indicators
    ]
    return pd.DataFrame(rows, columns=_headers(INDICATOR_COLUMNS))
