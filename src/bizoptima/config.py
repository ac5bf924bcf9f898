# BizOptima - Business Data & Analytics core for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for BizOptima.

This module is responsible for:
- loading the application configuration from a TOML file,
- exposing typed dataclasses used by the rest of the application.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import tomllib  # Python 3.11+

from .db import DatabaseConfig

DEFAULT_CONFIG_FILE = "bizoptima_config.toml"
DEFAULT_DB_PATH = "data/db/bizoptima.sqlite"
DEFAULT_OUTPUT_DIR = "data/output"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for BizOptima.

    This aggregates:
    - the storage configuration (where the business data is persisted),
    - the directory where exported files are written,
    - the logging level.
    """

    database: DatabaseConfig
    output_dir: Path
    log_level: str


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Return a TOML table, or an empty mapping when missing or malformed."""
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        return {}
    return section


def _parse_log_level(value: Any) -> str:
    """
    Validate a logging level name (e.g. "INFO").

    Raises:
        ValueError: if the name is not a standard logging level.
    """
    level = str(value).strip().upper()
    if level not in logging.getLevelNamesMapping():
        raise ValueError(
            f"Invalid value for 'logging.level' in the configuration: {value!r}."
        )
    return level


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the BizOptima application configuration from a TOML file.

    Expected sections in the TOML file (all optional)
    -------------------------------------------------
    [storage]
        engine: "sqlite" (default) or "memory".
        path:   SQLite file, default "data/db/bizoptima.sqlite".

    [export]
        output_dir: directory for exported files, default "data/output".

    [logging]
        level: standard logging level name, default "WARNING".

    Notes
    -----
    - When ``config_path`` is None, ``bizoptima_config.toml`` in the current
      directory is used if it exists; otherwise the defaults apply.
    - An explicit ``config_path`` must exist.
    - All file paths in the TOML are resolved relative to the directory of
      the TOML file itself.

    Raises
    ------
    FileNotFoundError
        If an explicit ``config_path`` does not exist.
    ValueError
        If the file cannot be parsed or holds invalid values.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
        raw = _load_toml(config_file) if config_file.is_file() else {}
    else:
        config_file = Path(config_path).resolve()
        raw = _load_toml(config_file)

    base_dir = config_file.parent

    # 1) Storage section
    storage_section = _section(raw, "storage")
    engine = str(storage_section.get("engine") or "sqlite").strip().lower()
    if engine not in ("sqlite", "memory"):
        raise ValueError(
            f"Invalid value for 'storage.engine' in the configuration: {engine!r}. "
            "Expected 'sqlite' or 'memory'."
        )
    db_path_raw = storage_section.get("path") or DEFAULT_DB_PATH
    db_path = (base_dir / str(db_path_raw)).resolve()

    # 2) Export section
    export_section = _section(raw, "export")
    output_dir_raw = export_section.get("output_dir") or DEFAULT_OUTPUT_DIR
    output_dir = (base_dir / str(output_dir_raw)).resolve()

    # 3) Logging section
    logging_section = _section(raw, "logging")
    log_level = _parse_log_level(logging_section.get("level") or DEFAULT_LOG_LEVEL)

    return AppConfig(
        database=DatabaseConfig(engine=engine, path=db_path),
        output_dir=output_dir,
        log_level=log_level,
    )
