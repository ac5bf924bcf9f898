# BizOptima - Business Data & Analytics core for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
BizOptima
---------

The local data-management layer of the BizOptima business analytics
dashboard. Company financial data is entered manually or imported from
spreadsheets, persisted locally, turned into derived financial metrics and
exported back to tabular files.

Main capabilities:
- a company profile, dated financial records and named KPIs (indicators),
- durable local persistence through an injectable key-value store (SQLite),
- workbook (.xlsx / .xls) and CSV import tolerant of header variants,
- workbook and CSV export using the same human-readable headers,
- derived metrics (gross profit, net profit, equity) consumed by the
  AI-powered insights layer,
- a command-line interface for scripting and inspection.

Usage:
    python -m bizoptima.cli --help
"""

__all__ = ["data_store", "db", "export", "io", "metrics", "models"]

__version__ = "0.2.0"
