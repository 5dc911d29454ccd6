"""Declarative base for the accounts schema.

Constraint names are fixed by convention so the unique username and email
indexes on ``users`` get the same names from ``create_all`` and from the
Alembic revisions, which batch-mode SQLite migrations rely on.
"""

from __future__ import annotations

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Shared metadata for every Meal Planner table."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
