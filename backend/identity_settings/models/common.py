"""Server-side timestamp expressions shared by the models and the store.

`now()` is second-resolution on SQLite and frozen at transaction start on
PostgreSQL, so neither can order two writes made close together.
"""

from __future__ import annotations

from sqlalchemy import DateTime
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement

_SQLITE_FORMAT = "'%Y-%m-%d %H:%M:%f'"


class utcnow(FunctionElement):
    """Wall-clock time at the best resolution the backend offers."""

    type = DateTime(timezone=True)
    inherit_cache = True


class advance_timestamp(FunctionElement):
    """Current time, but always later than the given timestamp column."""

    type = DateTime(timezone=True)
    inherit_cache = True


@compiles(utcnow)
def _utcnow_default(element, compiler, **kw):
    return "CURRENT_TIMESTAMP"


@compiles(utcnow, "postgresql")
def _utcnow_postgresql(element, compiler, **kw):
    return "clock_timestamp()"


@compiles(utcnow, "sqlite")
def _utcnow_sqlite(element, compiler, **kw):
    return f"strftime({_SQLITE_FORMAT}, 'now')"


@compiles(advance_timestamp)
def _advance_default(element, compiler, **kw):
    return "CURRENT_TIMESTAMP"


@compiles(advance_timestamp, "postgresql")
def _advance_postgresql(element, compiler, **kw):
    column = compiler.process(list(element.clauses)[0], **kw)
    return f"GREATEST(clock_timestamp(), {column} + interval '1 millisecond')"


@compiles(advance_timestamp, "sqlite")
def _advance_sqlite(element, compiler, **kw):
    column = compiler.process(list(element.clauses)[0], **kw)
    # Same format on both sides, so max() compares them as text
    return (
        f"max(strftime({_SQLITE_FORMAT}, 'now'), "
        f"strftime({_SQLITE_FORMAT}, {column}, '+0.001 seconds'))"
    )
