# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""Exception hierarchy for Q# telemetry.

Telemetry is best-effort, so very little in this package raises. The errors
below cover programmer mistakes: initializing the dispatcher twice, and
explicitly validating a payload that does not match its event schema.
"""

from __future__ import annotations

from typing import Any


class QsharpTelemetryError(Exception):
    """Base exception for all Q# telemetry errors.

    Provides structured error information including details and suggestions
    for resolution.
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        suggestions: list[str] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message
            details: Additional context about the error
            suggestions: Actionable suggestions for resolving the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.suggestions = suggestions or []

    def __str__(self) -> str:
        """Return descriptive error message with context details."""
        parts = [self.message]
        if self.details:
            parts.append(f"({', '.join(f'{k}: {v}' for k, v in self.details.items())})")
        return " ".join(parts)


class InitializationError(QsharpTelemetryError):
    """Errors raised while bringing the telemetry dispatcher up."""


class TelemetryAlreadyInitializedError(InitializationError):
    """Raised when `initialize` is called on a dispatcher that already left the uninitialized state."""


class TelemetryPayloadError(QsharpTelemetryError):
    """A properties or measurements payload does not match its event's schema."""


__all__ = (
    "InitializationError",
    "QsharpTelemetryError",
    "TelemetryAlreadyInitializedError",
    "TelemetryPayloadError",
)
