"""
Dialect-aware column types.

Lessons, exercises, tag/concept arrays and the photo-group reference list
are stored as JSON documents: JSONB on PostgreSQL, plain JSON elsewhere.
"""

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import TypeDecorator
from sqlalchemy.engine import Dialect


class UniversalJSON(TypeDecorator):
    """
    Uses JSONB for PostgreSQL.
    Uses JSON for SQLite and others.
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


class JSONList(UniversalJSON):
    """
    JSON array column that never hands ``None`` back to callers.

    Rows written before a column existed (or with an explicit NULL) read as
    an empty list, so merge code can concatenate without guards.
    """
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return []
        return list(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return []
        return list(value)
