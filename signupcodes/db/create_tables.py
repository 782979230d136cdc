"""Create the signup-code schema on the configured DATABASE_URL.

Usage:
  python -m signupcodes.db.create_tables
"""
from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from .session import Base, get_engine
from . import models  # noqa: F401  # ensure models are imported for metadata


def create_all() -> list[str]:
    """Create missing tables and return the names of the ones that were added."""
    engine = get_engine()
    existing = set(inspect(engine).get_table_names())
    Base.metadata.create_all(bind=engine)
    return [name for name in Base.metadata.tables if name not in existing]


if __name__ == "__main__":
    try:
        created = create_all()
    except SQLAlchemyError as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
    if created:
        print(f"Created tables: {', '.join(created)}")
    else:
        print("Schema already up to date.")
