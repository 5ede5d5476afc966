"""Persistence access for the global settings record."""

__version__ = "0.1.0"
