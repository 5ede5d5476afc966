"""SQLAlchemy models package."""

from .common import advance_timestamp, utcnow  # noqa: F401
from .global_settings import GlobalSettings  # noqa: F401
