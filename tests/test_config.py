"""Tests for environment settings and logging setup."""

import logging
import pytest
import structlog

from tallybook.config import Settings, load_settings
from tallybook.domain.entities import TaxMode
from tallybook.logging_config import configure_logging


def test_defaults():
    assert load_settings({}) == Settings()


def test_reads_environment():
    settings = load_settings(
        {
            "TALLYBOOK_DB_PATH": "/tmp/books.db",
            "TALLYBOOK_TAX_MODE": " Passthrough ",
            "TALLYBOOK_LOG_LEVEL": "debug",
            "TALLYBOOK_LOG_JSON": "1",
        }
    )

    assert settings.database_path == "/tmp/books.db"
    assert settings.tax_mode == TaxMode.PASSTHROUGH
    assert settings.log_level == "debug"
    assert settings.log_json is True


def test_empty_db_path_is_unset():
    assert load_settings({"TALLYBOOK_DB_PATH": ""}).database_path is None


def test_unknown_tax_mode():
    with pytest.raises(ValueError, match="Unknown tax mode"):
        load_settings({"TALLYBOOK_TAX_MODE": "flat"})


@pytest.mark.parametrize("level,expected", [("debug", logging.DEBUG), ("nonsense", logging.WARNING)])
def test_configure_logging_sets_level(level, expected):
    configure_logging(level)

    assert logging.getLogger().level == expected
    assert structlog.is_configured()


def test_configure_logging_json():
    configure_logging("INFO", json=True)

    processors = structlog.get_config()["processors"]
    assert isinstance(processors[-1], structlog.processors.JSONRenderer)
