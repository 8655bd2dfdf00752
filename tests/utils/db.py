"""Test database helpers."""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Tuple

from dotenv import load_dotenv
from sqlalchemy import create_engine

load_dotenv()


def provision_test_database(prefix: str = "buildtrack_test") -> Tuple[str | None, str, bool]:
    """Create a throwaway database for a test.

    Returns a tuple of (database_name, database_uri, managed_flag).
    When managed_flag is False the caller must not attempt to remove the database.
    ``TEST_DATABASE_URL`` points the tests at an existing database instead.
    """
    override_url = os.environ.get("TEST_DATABASE_URL")
    if override_url:
        return None, override_url, False

    temp_db = tempfile.NamedTemporaryFile(prefix=f"{prefix}_", suffix=".db", delete=False)
    temp_db_path = temp_db.name
    temp_db.close()
    return f"sqlite:{temp_db_path}", f"sqlite:///{temp_db_path}", True


def cleanup_test_database(database_name: str | None) -> None:
    """Remove a previously created test database if managed."""
    if not database_name or not database_name.startswith("sqlite:"):
        return
    path = Path(database_name.split("sqlite:", 1)[1])
    if path.exists():
        path.unlink()


@contextmanager
def temporary_database(prefix: str = "buildtrack_test") -> Iterator[Tuple[str | None, str]]:
    """Context manager that provisions and cleans up a test database automatically."""
    db_name, uri, managed = provision_test_database(prefix=prefix)
    try:
        yield db_name, uri
    finally:
        if managed:
            cleanup_test_database(db_name)


def rebuild_database_engine(db, database_uri: str):
    """Ensure the SQLAlchemy engine reflects the provided database URI."""

    engines = db.engines
    engine = engines.pop(None, None)

    if engine is not None:
        engine.dispose()

    engines[None] = create_engine(database_uri)
    return engines[None]


__all__ = [
    "cleanup_test_database",
    "provision_test_database",
    "rebuild_database_engine",
    "temporary_database",
]
