"""Service layer.

Exposes:
- GlobalSettingsService
"""

from .global_settings import GlobalSettingsService

__all__ = [
    "GlobalSettingsService",
]
