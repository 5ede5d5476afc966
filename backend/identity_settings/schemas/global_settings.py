"""Schemas for global settings (system-wide policy record)."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional
from datetime import datetime

from pydantic import BaseModel, Field, ConfigDict

DEFAULT_SETTINGS_ID = "default"

logger = logging.getLogger(__name__)


class GlobalSettings(BaseModel):
    """System-wide policy values.

    Field defaults are the values a fresh installation starts with. `id`,
    `created_at` and `updated_at` are owned by the store; values supplied by
    callers for them are ignored on update.
    """

    id: str = Field("", description="Settings identifier (conventionally 'default')")
    maintenance_mode: bool = Field(False, description="Reject non-admin traffic while enabled")
    maintenance_message: str = Field("", description="Message shown while in maintenance mode")
    max_users_per_organization: int = Field(1000, description="User cap per organization")
    max_session_duration: int = Field(480, description="Session lifetime in minutes")
    password_min_length: int = Field(8, description="Minimum accepted password length")
    require_mfa: bool = Field(False, description="Require multi-factor authentication")
    allow_registration: bool = Field(True, description="Allow self-service sign-up")
    email_verification_required: bool = Field(True, description="Require verified email before login")
    token_expiration_minutes: int = Field(60, description="Access token lifetime in minutes")
    audit_log_retention_days: int = Field(90, description="Audit log retention in days")
    settings: str = Field("{}", description="Opaque JSON blob for settings without a typed field")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    def extension(self) -> Dict[str, Any]:
        """Decode the extension blob; anything but a JSON object yields {}."""
        raw = (self.settings or "").strip()
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("global settings %r: extension blob is not valid JSON", self.id)
            return {}
        return data if isinstance(data, dict) else {}


def default_global_settings() -> GlobalSettings:
    """The record synthesized when the store holds no settings yet."""
    return GlobalSettings(id=DEFAULT_SETTINGS_ID)
