"""
Configuration - Resolves CLI arguments and environment into a PurgeConfig
"""

import argparse
import os
from datetime import date
from pathlib import Path
from typing import Optional

from gmail_purge.errors import ConfigError
from gmail_purge.models import ARCHIVE_FORMATS, PurgeConfig


DEFAULT_CUTOFF_DATE = '2022-01-01'
DEFAULT_ARCHIVE_DIRECTORY = 'email_archive'

TRUE_VALUES = {'1', 'true', 'yes', 'y', 'on'}
FALSE_VALUES = {'0', 'false', 'no', 'n', 'off'}


def parse_cutoff_date(value: str) -> date:
    """Parse an ISO 8601 calendar date (YYYY-MM-DD)"""
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise ConfigError(f"Invalid cutoff date {value!r}, expected YYYY-MM-DD") from None


def parse_bool(value: str, name: str) -> bool:
    """Parse a yes/no style environment value"""
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid value for {name}: {value!r}, expected true or false")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return parse_bool(value, name)


def load_config(args: argparse.Namespace) -> PurgeConfig:
    """Build the run configuration; CLI args override environment variables"""
    cutoff = args.before if args.before is not None else os.getenv('PURGE_BEFORE', DEFAULT_CUTOFF_DATE)

    archive_enabled: Optional[bool] = args.archive
    if archive_enabled is None:
        archive_enabled = _env_bool('ARCHIVE_ENABLED', True)

    dry_run: Optional[bool] = args.dry_run
    if dry_run is None:
        dry_run = _env_bool('DRY_RUN', False)

    archive_dir = args.archive_dir or os.getenv('ARCHIVE_DIR', DEFAULT_ARCHIVE_DIRECTORY)
    if not str(archive_dir).strip():
        raise ConfigError("Archive directory must not be empty")

    archive_format = (args.archive_format or os.getenv('ARCHIVE_FORMAT', 'json')).lower()
    if archive_format not in ARCHIVE_FORMATS:
        raise ConfigError(f"Invalid archive format {archive_format!r}, expected one of {', '.join(ARCHIVE_FORMATS)}")

    return PurgeConfig(
        cutoff_date=parse_cutoff_date(cutoff),
        archive_enabled=archive_enabled,
        archive_directory=Path(archive_dir),
        archive_format=archive_format,
        dry_run=dry_run
    )
