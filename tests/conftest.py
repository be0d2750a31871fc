"""Shared fixtures: an isolated environment and a SQLite Device table."""

import logging
import os
from pathlib import Path
from typing import List, Tuple

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from autobk.database import Base

SQL_VERBS = ("INSERT", "UPDATE", "DELETE", "SELECT")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Run every test in an empty directory with no AUTOBK_* variables set."""
    for key in list(os.environ):
        if key.upper().startswith("AUTOBK_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)

    root = logging.getLogger()
    saved_level = root.level
    yield tmp_path
    # drop the handlers installed by setup_logging
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)


@pytest.fixture
def database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """File-backed SQLite database with the Device table, selected via the environment."""
    url = f"sqlite:///{tmp_path / 'autobk.db'}"
    engine = create_engine(url)
    Base.metadata.create_all(engine)
    engine.dispose()
    monkeypatch.setenv("AUTOBK_DATABASE_URL", url)
    monkeypatch.setenv("AUTOBK_CONNECT_RETRY_DELAY", "0")
    return url


@pytest.fixture
def statements() -> List[Tuple[str, tuple]]:
    """Every data statement sent to a DB-API cursor, with its bound parameters."""
    captured: List[Tuple[str, tuple]] = []

    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith(SQL_VERBS) and "Device" in statement:
            captured.append((statement, tuple(parameters)))

    event.listen(Engine, "before_cursor_execute", before_cursor_execute)
    yield captured
    event.remove(Engine, "before_cursor_execute", before_cursor_execute)


@pytest.fixture
def fetch_rows(database_url: str):
    """Read the Device table directly, bypassing the gateway."""

    def fetch():
        engine = create_engine(database_url)
        try:
            with engine.connect() as conn:
                return [
                    tuple(row)
                    for row in conn.exec_driver_sql(
                        "SELECT kSelf, sName, sType, sIP, iAutoDay, iAutoHour, iAutoWeeks FROM Device ORDER BY kSelf"
                    )
                ]
        finally:
            engine.dispose()

    return fetch
