"""Root conftest for tests directory."""

from __future__ import annotations

from typing import Generator, List

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from identity_settings.core.db import Base
from identity_settings.services import GlobalSettingsService


class FakeCache:
    """Records deleted keys; optionally fails like an unreachable Redis."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.deleted: List[str] = []

    def delete(self, *names: str) -> int:
        if self.fail:
            raise ConnectionError("cache unavailable")
        self.deleted.extend(names)
        return len(names)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    """Provide an in-memory SQLite engine with the schema created."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # Ensure models are imported
    import identity_settings.models  # noqa: F401
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(bind=eng)
        eng.dispose()


@pytest.fixture()
def cache() -> FakeCache:
    return FakeCache()


@pytest.fixture()
def service(engine: Engine, cache: FakeCache) -> GlobalSettingsService:
    return GlobalSettingsService(engine, cache)


@pytest.fixture()
def failing_cache() -> FakeCache:
    return FakeCache(fail=True)
