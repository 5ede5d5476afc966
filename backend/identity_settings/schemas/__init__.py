"""Pydantic schemas package."""

from .global_settings import (
    DEFAULT_SETTINGS_ID,
    GlobalSettings,
    default_global_settings,
)  # noqa: F401
