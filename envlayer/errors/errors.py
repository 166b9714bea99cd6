"""
Custom exceptions for envlayer.

Exception hierarchy:
- EnvLayerError (base)
  - ConfigurationError: invalid environment rules
  - CollectError: collection failure (reserved, not raised by the environment source)
  - ConfigResolutionError: layering or model validation failure on the host side

Per-entry anomalies in the environment (non-Unicode text, foreign prefixes,
rejected suffixes, unparseable values) are not errors and never surface here.
"""

from __future__ import annotations

from typing import Any, Optional


class EnvLayerError(Exception):
    """Base exception for all envlayer errors."""

    def __init__(
        self,
        message: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.component = component
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.component:
            parts.append(f"[component={self.component}]")
        if self.details:
            parts.append(f"[details={self.details}]")
        return " ".join(parts)


class ConfigurationError(EnvLayerError):
    """Raised when environment rules are invalid."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.field = field
        self.value = value
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)
        super().__init__(message, component=component, details=details)


class CollectError(EnvLayerError):
    """Raised when a source cannot produce its mapping."""

    def __init__(
        self,
        message: str,
        *,
        origin: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.origin = origin
        details = details or {}
        if origin:
            details["origin"] = origin
        super().__init__(message, component=component, details=details)


class ConfigResolutionError(EnvLayerError):
    """Raised when layered sources cannot be combined or validated."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        errors: Optional[list[dict[str, str]]] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.path = path
        self.errors = errors or []
        details = details or {}
        if path:
            details["path"] = path
        if errors:
            details["error_count"] = len(errors)
        super().__init__(message, component=component, details=details)
