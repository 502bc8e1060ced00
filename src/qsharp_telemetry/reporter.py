# sourcery skip: name-type-suffix
# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""
Reporting backends for Q# telemetry.

The dispatcher only needs something it can hand a finished event to. That
seam is `TelemetryReporter`; `PostHogReporter` is the production
implementation, wrapping the PostHog Python client with:
- An anonymous, per-process session id (no user identity is ever sent)
- Error handling (telemetry never crashes the application)

Transport, batching and retry are left entirely to PostHog.
"""

from __future__ import annotations

import logging

from collections.abc import Callable, Mapping
from typing import Protocol, runtime_checkable

from posthog import Posthog

from qsharp_telemetry._utils import uuid7_hex


SESSION_ID = uuid7_hex()

DEFAULT_POSTHOG_HOST = "https://us.i.posthog.com"

logger = logging.getLogger(__name__)


@runtime_checkable
class TelemetryReporter(Protocol):
    """Sink for finished telemetry events."""

    def send(
        self, event: str, properties: Mapping[str, str], measurements: Mapping[str, float]
    ) -> None:
        """Hand one event to the backend. The return value is never inspected."""
        ...


type ReporterFactory = Callable[[str], TelemetryReporter]
"""Builds a reporter from an instrumentation key."""


class PostHogReporter:
    """
    PostHog-backed telemetry reporter.

    Properties and measurements are merged into the PostHog event's
    properties; the catalogue keeps their key names disjoint.

    Example:
        >>> reporter = PostHogReporter("phc_example")
        >>> reporter.send("Qsharp.InitializePlugin", {}, {})
    """

    def __init__(
        self, key: str, host: str = DEFAULT_POSTHOG_HOST, *, distinct_id: str = SESSION_ID
    ) -> None:
        """
        Initialize the PostHog client.

        Args:
            key: PostHog project key
            host: PostHog host URL
            distinct_id: Identifier attached to every event; an anonymous session id by default
        """
        self.distinct_id = distinct_id
        self._client = Posthog(
            project_api_key=key,
            host=host,
            # Disable debug mode in production
            debug=False,
        )
        logger.info("PostHog telemetry client initialized")

    def send(
        self, event: str, properties: Mapping[str, str], measurements: Mapping[str, float]
    ) -> None:
        """
        Send event to PostHog.

        Note:
            This method never raises exceptions. All errors are logged
            but do not affect application execution.
        """
        try:
            _ = self._client.capture(
                distinct_id=self.distinct_id,
                event=event,
                properties={**properties, **measurements},
            )
        except Exception:
            # Never fail application due to telemetry
            logger.exception("Failed to send telemetry event '%s'", event)


def posthog_reporter_factory(host: str = DEFAULT_POSTHOG_HOST) -> ReporterFactory:
    """Return a factory building `PostHogReporter`s that talk to `host`."""

    def factory(key: str) -> TelemetryReporter:
        return PostHogReporter(key, host)

    return factory


__all__ = (
    "DEFAULT_POSTHOG_HOST",
    "SESSION_ID",
    "PostHogReporter",
    "ReporterFactory",
    "TelemetryReporter",
    "posthog_reporter_factory",
)
