"""
Test fixtures and utilities for the tabular exchange tests.

This module provides shared fixtures including temporary directories,
in-memory database cursors, sample rows, adapters and service instances.
"""

import sqlite3
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from tabular_exchange.adapters.delimited_adapter import DelimitedAdapter
from tabular_exchange.adapters.xls_adapter import XlsAdapter
from tabular_exchange.adapters.xlsx_adapter import XlsxAdapter
from tabular_exchange.config import Settings
from tabular_exchange.services.exchange_service import ExchangeService
from tabular_exchange.sources import BufferedSource, MappingListSource


@pytest.fixture
def settings() -> Settings:
    """
    Create settings independent of the environment.

    Returns:
        Settings instance with defaults.
    """
    return Settings(_env_file=None)


@pytest.fixture
def exchange_service(settings: Settings) -> ExchangeService:
    """
    Create an ExchangeService instance for testing.

    Returns:
        ExchangeService instance.
    """
    return ExchangeService(settings=settings)


@pytest.fixture
def xls_adapter() -> XlsAdapter:
    """Create an XlsAdapter instance for testing."""
    return XlsAdapter()


@pytest.fixture
def xlsx_adapter() -> XlsxAdapter:
    """Create an XlsxAdapter instance for testing."""
    return XlsxAdapter()


@pytest.fixture
def delimited_adapter() -> DelimitedAdapter:
    """Create a DelimitedAdapter instance for testing."""
    return DelimitedAdapter()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Create an in-memory database holding a small ``users`` table.

    Yields:
        Open sqlite3 connection.
    """
    conn = sqlite3.connect(":memory:")
    conn.execute("CREATE TABLE users (name TEXT, age INTEGER, note TEXT)")
    conn.executemany(
        "INSERT INTO users VALUES (?, ?, ?)",
        [
            ("Alice", 30, "team lead"),
            ("Bob", 25, None),
            ("Charlie", 35, "on leave, back soon"),
        ],
    )
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture
def user_cursor(connection: sqlite3.Connection) -> sqlite3.Cursor:
    """Return an executed cursor over the ``users`` table."""
    return connection.execute("SELECT name, age, note FROM users ORDER BY rowid")


@pytest.fixture
def sample_rows() -> list[dict]:
    """
    Return three two-column rows for round-trip tests.

    Returns:
        List of rows keyed by column name.
    """
    return [
        {"name": "Alice", "city": "Seoul"},
        {"name": "Bob", "city": "Busan"},
        {"name": "Charlie", "city": "Incheon"},
    ]


@pytest.fixture
def numeric_rows() -> list[dict]:
    """Return rows holding only numbers."""
    return [
        {"id": 1, "score": 30.5},
        {"id": 2, "score": 25},
        {"id": 3, "score": -4.25},
    ]


@pytest.fixture
def mapping_source(sample_rows: list[dict]) -> MappingListSource:
    """Return a MappingListSource over the sample rows."""
    return MappingListSource(sample_rows)


@pytest.fixture
def buffered_source() -> BufferedSource:
    """Return a BufferedSource with an absent value in the middle row."""
    return BufferedSource(
        ["NAME", "AGE"],
        [("Alice", 30), ("Bob", None), ("Charlie", 35)],
    )
