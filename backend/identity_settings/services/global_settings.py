from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection, Engine, Row
from pydantic import ValidationError
from sqlalchemy.exc import CompileError, NoResultFound, SQLAlchemyError

from identity_settings.core.cache import GLOBAL_SETTINGS_CACHE_KEY, CacheClient
from identity_settings.core.context import OperationContext
from identity_settings.domain.enums import InsertOutcome
from identity_settings.domain.errors import OperationCancelled, SettingsError, SettingsStoreError
from identity_settings.models import GlobalSettings as GlobalSettingsModel
from identity_settings.models import advance_timestamp
from identity_settings.schemas import GlobalSettings, default_global_settings

logger = logging.getLogger(__name__)

POLICY_FIELDS = (
    "maintenance_mode",
    "maintenance_message",
    "max_users_per_organization",
    "max_session_duration",
    "password_min_length",
    "require_mfa",
    "allow_registration",
    "email_verification_required",
    "token_expiration_minutes",
    "audit_log_retention_days",
    "settings",
)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

_table = GlobalSettingsModel.__table__

# Wrapped as SettingsStoreError; anything else propagates unchanged
_STORE_ERRORS = (SQLAlchemyError, ValidationError, OperationCancelled)


class GlobalSettingsService:
    """Read and write the global settings record.

    Rules:
    - Get: newest row by created_at; an empty table gets the default row.
    - Update: rewrites every policy field of the current row; id and
      created_at always come from the store, never from the caller.
    - Create default: insert-if-absent keyed on id; idempotent.

    Without a bound transaction every statement runs in its own short
    transaction on the engine. With one (see `with_tx`) statements run on
    that connection and commit/rollback stays with the caller.
    """

    __slots__ = ("_engine", "_cache", "_tx", "_ctx")

    def __init__(
        self,
        engine: Engine,
        cache: Optional[CacheClient] = None,
        *,
        tx: Optional[Connection] = None,
        ctx: Optional[OperationContext] = None,
    ) -> None:
        self._engine = engine
        self._cache = cache
        self._tx = tx
        self._ctx = ctx or OperationContext.background()

    # Read-only; use with_tx / with_context to get a differently bound instance
    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def cache(self) -> Optional[CacheClient]:
        return self._cache

    @property
    def tx(self) -> Optional[Connection]:
        return self._tx

    @property
    def ctx(self) -> OperationContext:
        return self._ctx

    @classmethod
    def from_env(cls) -> "GlobalSettingsService":
        """Wire the engine and cache from DATABASE_URL / REDIS_URL."""
        from identity_settings.core.cache import get_cache_client
        from identity_settings.core.db import get_engine

        return cls(get_engine(), get_cache_client())

    # Rebinding; both return a new instance and leave this one untouched
    def with_tx(self, tx: Connection) -> "GlobalSettingsService":
        """Run statements on `tx`, a Connection with a transaction begun by the caller."""
        return GlobalSettingsService(self.engine, self.cache, tx=tx, ctx=self.ctx)

    def with_context(self, ctx: OperationContext) -> "GlobalSettingsService":
        return GlobalSettingsService(self.engine, self.cache, tx=self.tx, ctx=ctx)

    # Operations
    def get_global_settings(self) -> GlobalSettings:
        try:
            current = self._select_current()
        except _STORE_ERRORS as exc:
            raise SettingsStoreError("failed to get global settings", exc) from exc

        if current is None:
            logger.info("No global settings found; creating defaults")
            return self.create_default_global_settings()
        return current

    def update_global_settings(self, settings: GlobalSettings) -> GlobalSettings:
        # The caller's id/created_at are not trusted; recover them from the store
        try:
            current = self.get_global_settings()
        except SettingsError as exc:
            raise SettingsStoreError("failed to get current settings", exc) from exc

        values = settings.model_dump(include=set(POLICY_FIELDS))
        stmt = (
            sa.update(_table)
            .where(_table.c.id == current.id)
            .values(**values, updated_at=advance_timestamp(_table.c.updated_at))
            .returning(_table.c.updated_at)
        )
        try:
            row = self._first(stmt)
            if row is None:
                raise NoResultFound(f"no global settings row with id {current.id!r}")
        except _STORE_ERRORS as exc:
            raise SettingsStoreError("failed to update global settings", exc) from exc

        logger.info(
            "Global settings updated | id=%s maintenance_mode=%s",
            current.id,
            settings.maintenance_mode,
        )
        self._invalidate_cache()

        return settings.model_copy(
            update={
                "id": current.id,
                "created_at": current.created_at,
                "updated_at": row.updated_at,
            }
        )

    def create_default_global_settings(self) -> GlobalSettings:
        settings = default_global_settings()
        try:
            outcome, row = self._insert_if_absent(settings)
        except _STORE_ERRORS as exc:
            raise SettingsStoreError("failed to create default global settings", exc) from exc

        if outcome is InsertOutcome.ALREADY_EXISTS:
            logger.debug("Global settings %r already exist; loading them", settings.id)
            return self.get_global_settings()

        logger.info("Default global settings created | id=%s", settings.id)
        return settings.model_copy(
            update={"created_at": row.created_at, "updated_at": row.updated_at}
        )

    # Statement helpers
    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        if self.tx is not None:
            yield self.tx
        else:
            with self.engine.begin() as conn:
                yield conn

    def _first(self, stmt: sa.Executable) -> Optional[Row]:
        self.ctx.check()
        with self._connection() as conn:
            return conn.execute(stmt).first()

    def _select_current(self) -> Optional[GlobalSettings]:
        stmt = sa.select(*_table.c).order_by(_table.c.created_at.desc()).limit(1)
        row = self._first(stmt)
        if row is None:
            return None
        return GlobalSettings.model_validate(dict(row._mapping))

    def _insert_if_absent(self, settings: GlobalSettings) -> Tuple[InsertOutcome, Optional[Row]]:
        dialect = (self.tx if self.tx is not None else self.engine).dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise CompileError(f"insert-if-absent is not supported for dialect '{dialect}'")

        stmt = (
            insert(_table)
            .values(**settings.model_dump(include={"id", *POLICY_FIELDS}))
            .on_conflict_do_nothing(index_elements=[_table.c.id])
            .returning(_table.c.created_at, _table.c.updated_at)
        )
        row = self._first(stmt)
        # DO NOTHING returns no row when the id is already taken
        if row is None:
            return InsertOutcome.ALREADY_EXISTS, None
        return InsertOutcome.INSERTED, row

    def _invalidate_cache(self) -> None:
        if self.cache is None:
            return
        try:
            self.cache.delete(GLOBAL_SETTINGS_CACHE_KEY)
        except Exception:
            # Intentionally ignore to not fail the update
            logger.debug("Cache invalidation failed | key=%s", GLOBAL_SETTINGS_CACHE_KEY, exc_info=True)
