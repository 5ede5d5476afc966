"""Global settings model (singleton-by-convention)."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from identity_settings.core.db import Base
from .common import utcnow


class GlobalSettings(Base):
    """One row per settings snapshot; the most recently created row is authoritative.

    In practice the table holds a single row with id='default'.
    """

    __tablename__ = "global_settings"

    id = Column(String(64), primary_key=True)
    maintenance_mode = Column(Boolean, nullable=False, default=False)
    maintenance_message = Column(Text, nullable=False, default="")
    max_users_per_organization = Column(Integer, nullable=False)
    max_session_duration = Column(Integer, nullable=False)  # minutes
    password_min_length = Column(Integer, nullable=False)
    require_mfa = Column(Boolean, nullable=False, default=False)
    allow_registration = Column(Boolean, nullable=False, default=True)
    email_verification_required = Column(Boolean, nullable=False, default=True)
    token_expiration_minutes = Column(Integer, nullable=False)
    audit_log_retention_days = Column(Integer, nullable=False)
    settings = Column(Text, nullable=False, default="{}")  # Opaque JSON extension blob
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=utcnow(), index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=utcnow())

    def __repr__(self) -> str:
        return f"<GlobalSettings(id='{self.id}', maintenance_mode={self.maintenance_mode})>"
