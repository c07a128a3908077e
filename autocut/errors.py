from __future__ import annotations


class AutocutError(Exception):
    """Base class for pipeline failures surfaced to callers."""


class ExtractionError(AutocutError, RuntimeError):
    """Raised when signal extraction fails; no partial signal bundle exists."""


class ConfigurationError(AutocutError, ValueError):
    """Raised for invalid pipeline configuration, before any work runs."""
