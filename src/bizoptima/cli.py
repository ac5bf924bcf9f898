# BizOptima - Business Data & Analytics core for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for BizOptima.

This module wires together the main building blocks of BizOptima:

- application configuration (storage, export directory, logging),
- the persistent data store (profile, financial records, KPIs),
- workbook / CSV import and export,
- derived metrics.

The CLI is intentionally thin: it does not implement any business logic
itself. It maps subcommands onto ``DataStore`` operations and the import /
export modules, and prints the results as plain tables.


Configuration
-------------

By default, the CLI reads ``bizoptima_config.toml`` from the current working
directory when it exists (built-in defaults apply otherwise). You can point to
another file with:

    --config PATH


Commands
--------

- ``profile show`` / ``profile set``:
    Display or replace the business profile. ``profile set`` replaces the
    whole profile: omitted fields are reset to their defaults, while the
    profile id and creation date are kept.

- ``records list|add|update|delete``:
    Manage dated financial records. Adding a record for an existing date
    replaces it.

- ``indicators list|add|update|delete``:
    Manage KPIs. Adding a KPI with an existing metric name replaces it.

- ``metrics``:
    Show the metrics derived from the profile (gross profit, net profit,
    equity).

- ``import PATH``:
    Import a .csv, .xlsx or .xls file.

- ``export xlsx|csv``:
    Write a workbook or a CSV file into the export directory
    (``--output`` overrides the configured directory).

- ``clear``:
    Remove all business data (requires ``--yes``).


Logging
-------

Warnings and errors are logged to stderr. ``-v`` raises the level to INFO and
``-vv`` to DEBUG; otherwise the level from the configuration is used.
"""

import argparse
import logging
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .config import AppConfig, load_app_config
from .data_store import DataStore
from .db import open_key_value_store
from .export import NothingToExportError, export_csv, export_workbook
from .io import import_file
from .metrics import metrics_to_dataframe
from .models import (
    INDICATOR_CATEGORIES,
    Indicator,
    IndicatorUpdate,
    ProfileInput,
    RecordInput,
    RecordUpdate,
)
from .views import (
    indicators_to_dataframe,
    profile_to_dataframe,
    records_to_dataframe,
)

logger = logging.getLogger("bizoptima")

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m bizoptima.cli",
        description=(
            "BizOptima - Business Data & Analytics core for SMBs. "
            "Manages the business profile, financial records and KPIs, "
            "imports and exports workbooks / CSV files and computes "
            "derived metrics."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of bizoptima and exit.",
    )

    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. "
            "If omitted, 'bizoptima_config.toml' in the current directory is "
            "used when present."
        ),
    )

    ap.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v: INFO, -vv: DEBUG).",
    )

    subparsers = ap.add_subparsers(dest="command", metavar="command")

    # ------------------------------------------------------------------
    # profile
    # ------------------------------------------------------------------
    profile_parser = subparsers.add_parser(
        "profile", help="Show or replace the business profile."
    )
    profile_subparsers = profile_parser.add_subparsers(
        dest="profile_command", metavar="profile-command"
    )
    profile_subparsers.add_parser("show", help="Show the business profile.")

    profile_set = profile_subparsers.add_parser(
        "set",
        help=(
            "Replace the business profile. Omitted fields are reset to their "
            "defaults (empty text, 0)."
        ),
    )
    profile_set.add_argument("--company-name", dest="company_name")
    profile_set.add_argument("--industry")
    profile_set.add_argument("--employees", type=int)
    profile_set.add_argument("--revenue", type=float)
    profile_set.add_argument("--costs", type=float)
    profile_set.add_argument("--assets", type=float)
    profile_set.add_argument("--liabilities", type=float)
    profile_set.add_argument("--cash-flow", dest="cash_flow", type=float)

    # ------------------------------------------------------------------
    # records
    # ------------------------------------------------------------------
    records_parser = subparsers.add_parser(
        "records", help="Manage dated financial records."
    )
    records_subparsers = records_parser.add_subparsers(
        dest="records_command", metavar="records-command"
    )
    records_subparsers.add_parser("list", help="List records by ascending date.")

    records_add = records_subparsers.add_parser(
        "add", help="Add a record (replaces any record with the same date)."
    )
    records_add.add_argument(
        "--date", help="Record date (YYYY-MM-DD). Defaults to today."
    )
    records_add.add_argument("--revenue", type=float, default=0.0)
    records_add.add_argument("--expenses", type=float, default=0.0)
    records_add.add_argument("--profit", type=float, default=0.0)
    records_add.add_argument("--cash-flow", dest="cash_flow", type=float, default=0.0)

    records_update = records_subparsers.add_parser(
        "update", help="Update some fields of an existing record."
    )
    records_update.add_argument("record_date", help="Date of the record to update.")
    records_update.add_argument("--date", dest="new_date", help="New record date.")
    records_update.add_argument("--revenue", type=float)
    records_update.add_argument("--expenses", type=float)
    records_update.add_argument("--profit", type=float)
    records_update.add_argument("--cash-flow", dest="cash_flow", type=float)

    records_delete = records_subparsers.add_parser(
        "delete", help="Delete the record stored for a date."
    )
    records_delete.add_argument("record_date", help="Date of the record to delete.")

    # ------------------------------------------------------------------
    # indicators
    # ------------------------------------------------------------------
    indicators_parser = subparsers.add_parser("indicators", help="Manage KPIs.")
    indicators_subparsers = indicators_parser.add_subparsers(
        dest="indicators_command", metavar="indicators-command"
    )
    indicators_subparsers.add_parser("list", help="List KPIs.")

    indicators_add = indicators_subparsers.add_parser(
        "add", help="Add a KPI (replaces any KPI with the same metric name)."
    )
    indicators_add.add_argument("metric", help="Metric name.")
    indicators_add.add_argument("--value", type=float, default=0.0)
    indicators_add.add_argument("--target", type=float, default=0.0)
    indicators_add.add_argument("--unit", default="")
    indicators_add.add_argument(
        "--category", choices=INDICATOR_CATEGORIES, default="operational"
    )

    indicators_update = indicators_subparsers.add_parser(
        "update", help="Update some fields of an existing KPI."
    )
    indicators_update.add_argument("metric", help="Metric name of the KPI.")
    indicators_update.add_argument("--rename", dest="new_metric")
    indicators_update.add_argument("--value", type=float)
    indicators_update.add_argument("--target", type=float)
    indicators_update.add_argument("--unit")
    indicators_update.add_argument("--category", choices=INDICATOR_CATEGORIES)

    indicators_delete = indicators_subparsers.add_parser(
        "delete", help="Delete a KPI."
    )
    indicators_delete.add_argument("metric", help="Metric name of the KPI.")

    # ------------------------------------------------------------------
    # metrics / import / export / clear
    # ------------------------------------------------------------------
    subparsers.add_parser("metrics", help="Show metrics derived from the profile.")

    import_parser = subparsers.add_parser(
        "import", help="Import a .csv, .xlsx or .xls file."
    )
    import_parser.add_argument("path", help="File to import.")

    export_parser = subparsers.add_parser(
        "export", help="Export the data as a workbook or a CSV file."
    )
    export_parser.add_argument("format", choices=["xlsx", "csv"])
    export_parser.add_argument(
        "--output",
        dest="output_dir",
        help="Output directory. If omitted, the configured directory is used.",
    )

    clear_parser = subparsers.add_parser("clear", help="Remove all business data.")
    clear_parser.add_argument(
        "--yes", action="store_true", help="Confirm the removal of all data."
    )

    return ap


def _parse_iso_date(value: Optional[str]) -> Optional[str]:
    """
    Validate an optional CLI date argument (YYYY-MM-DD).

    Raises
    ------
    SystemExit
        If the date format is invalid.
    """
    if value is None:
        return None

    try:
        return date.fromisoformat(value).isoformat()
    except ValueError as exc:
        msg = f"Invalid date format: {value!r}. Expected YYYY-MM-DD."
        raise SystemExit(msg) from exc


def _configure_logging(verbose: int, config: Optional[AppConfig]) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    elif config is not None:
        level = logging.getLevelNamesMapping()[config.log_level]
    else:
        level = logging.WARNING
    logging.basicConfig(format=LOG_FORMAT)
    logger.setLevel(level)


def _print_table(df, empty_message: str) -> None:
    if df.empty:
        print(empty_message)
        return
    print(df.to_string(index=False))


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_profile(args: argparse.Namespace, store: DataStore) -> None:
    if args.profile_command == "set":
        profile = store.set_profile(
            ProfileInput(
                company_name=args.company_name,
                industry=args.industry,
                employees=args.employees,
                revenue=args.revenue,
                costs=args.costs,
                assets=args.assets,
                liabilities=args.liabilities,
                cash_flow=args.cash_flow,
            )
        )
        print(f"Profile saved (id: {profile.id}).")

    profile = store.get_profile()
    if profile is None:
        print("No business profile defined.")
        return
    print(profile_to_dataframe(profile).T.to_string(header=False))


def _handle_records(args: argparse.Namespace, store: DataStore) -> None:
    command = args.records_command or "list"

    if command == "add":
        record = store.add_record(
            RecordInput(
                date=_parse_iso_date(args.date),
                revenue=args.revenue,
                expenses=args.expenses,
                profit=args.profit,
                cash_flow=args.cash_flow,
            )
        )
        print(f"Financial record saved for {record.date}.")
        return

    if command == "update":
        if store.get_record(args.record_date) is None:
            print(f"No financial record for {args.record_date}.")
            return
        store.update_record(
            args.record_date,
            RecordUpdate(
                date=_parse_iso_date(args.new_date),
                revenue=args.revenue,
                expenses=args.expenses,
                profit=args.profit,
                cash_flow=args.cash_flow,
            ),
        )
        print(f"Financial record {args.record_date} updated.")
        return

    if command == "delete":
        existed = store.get_record(args.record_date) is not None
        store.delete_record(args.record_date)
        if existed:
            print(f"Financial record {args.record_date} deleted.")
        else:
            print(f"No financial record for {args.record_date}.")
        return

    records = store.get_records()
    _print_table(records_to_dataframe(records), "No financial records found.")
    if records:
        print()
        print(f"Total records: {len(records)}")


def _handle_indicators(args: argparse.Namespace, store: DataStore) -> None:
    command = args.indicators_command or "list"

    if command == "add":
        indicator = store.add_indicator(
            Indicator(
                metric=args.metric,
                value=args.value,
                target=args.target,
                unit=args.unit,
                category=args.category,
            )
        )
        print(f"KPI {indicator.metric!r} saved.")
        return

    if command == "update":
        if store.get_indicator(args.metric) is None:
            print(f"No KPI named {args.metric!r}.")
            return
        store.update_indicator(
            args.metric,
            IndicatorUpdate(
                metric=args.new_metric,
                value=args.value,
                target=args.target,
                unit=args.unit,
                category=args.category,
            ),
        )
        print(f"KPI {args.metric!r} updated.")
        return

    if command == "delete":
        existed = store.get_indicator(args.metric) is not None
        store.delete_indicator(args.metric)
        if existed:
            print(f"KPI {args.metric!r} deleted.")
        else:
            print(f"No KPI named {args.metric!r}.")
        return

    _print_table(indicators_to_dataframe(store.get_indicators()), "No KPIs found.")


def _handle_metrics(store: DataStore) -> None:
    metrics = store.get_derived_metrics()
    if metrics is None:
        print("No business profile defined: derived metrics are not available.")
        return
    print(metrics_to_dataframe(metrics).to_string(index=False))


def _handle_import(args: argparse.Namespace, store: DataStore) -> None:
    path = Path(args.path)
    print(f"Importing {path}...")
    result = import_file(store, path)
    print(result.message)
    if not result.success:
        raise SystemExit(1)


def _handle_export(
    args: argparse.Namespace, store: DataStore, config: AppConfig
) -> None:
    output_dir = Path(args.output_dir) if args.output_dir else config.output_dir
    try:
        if args.format == "csv":
            path = export_csv(store, output_dir)
        else:
            path = export_workbook(store, output_dir)
    except NothingToExportError as exc:
        print(f"Warning: {exc}")
        raise SystemExit(1) from exc
    print(f"Exported to {path}")


def _handle_clear(args: argparse.Namespace, store: DataStore) -> None:
    if not args.yes:
        raise SystemExit("Refusing to clear all data without --yes.")
    store.clear_all()
    print("All business data cleared.")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for the BizOptima CLI.

    This function parses command-line arguments, loads the configuration,
    opens the data store on the configured storage, dispatches the requested
    subcommand and closes the store.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"bizoptima version {__version__}")
        return

    if args.command is None:
        parser.print_help()
        return

    # 1) Load configuration and configure logging
    _configure_logging(args.verbose, None)
    try:
        config = load_app_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        raise SystemExit(f"Configuration error: {exc}") from exc
    _configure_logging(args.verbose, config)

    # 2) Open the data store
    store = DataStore(open_key_value_store(config.database))
    logger.debug("Data store opened (%s).", config.database.engine)

    # 3) Dispatch
    with store:
        if args.command == "profile":
            _handle_profile(args, store)
        elif args.command == "records":
            _handle_records(args, store)
        elif args.command == "indicators":
            _handle_indicators(args, store)
        elif args.command == "metrics":
            _handle_metrics(store)
        elif args.command == "import":
            _handle_import(args, store)
        elif args.command == "export":
            _handle_export(args, store, config)
        elif args.command == "clear":
            _handle_clear(args, store)


if __name__ == "__main__":
    main()
