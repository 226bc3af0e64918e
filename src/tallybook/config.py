"""Environment-driven settings."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from tallybook.domain.entities import TaxMode

DB_PATH_ENV = "TALLYBOOK_DB_PATH"
TAX_MODE_ENV = "TALLYBOOK_TAX_MODE"
LOG_LEVEL_ENV = "TALLYBOOK_LOG_LEVEL"
LOG_JSON_ENV = "TALLYBOOK_LOG_JSON"


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment."""

    database_path: Optional[str] = None
    tax_mode: Optional[TaxMode] = None
    log_level: str = "WARNING"
    log_json: bool = False


def default_database_path() -> str:
    """Return ~/.tallybook/tallybook.db, creating the directory."""
    db_dir = Path.home() / ".tallybook"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "tallybook.db")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from ``environ`` (defaults to ``os.environ``).

    Raises:
        ValueError: If TALLYBOOK_TAX_MODE is not a known mode
    """
    if environ is None:
        environ = os.environ

    tax_mode = None
    raw_mode = environ.get(TAX_MODE_ENV)
    if raw_mode:
        try:
            tax_mode = TaxMode(raw_mode.strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown tax mode '{raw_mode}'. Supported: corporate, passthrough"
            )

    return Settings(
        database_path=environ.get(DB_PATH_ENV) or None,
        tax_mode=tax_mode,
        log_level=environ.get(LOG_LEVEL_ENV, "WARNING"),
        log_json=environ.get(LOG_JSON_ENV, "") in ("1", "true", "yes"),
    )
