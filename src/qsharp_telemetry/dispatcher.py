# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""
Telemetry dispatcher: the single entry point for emitting Q# telemetry.

A `TelemetryDispatcher` owns at most one reporter. It starts uninitialized,
and `initialize` either binds a reporter (and announces the plugin start) or,
when no instrumentation key is available, leaves telemetry disabled for the
rest of the process. `emit` is safe in every state: without a reporter the
event is logged at TRACE level and dropped.

`emit` is overloaded per event group, so a type checker rejects payloads that
do not match the event catalogue.

Example:
    >>> from qsharp_telemetry import EventType, init_telemetry, send_telemetry_event
    >>> init_telemetry({"aiKey": "phc_example"})
    >>> send_telemetry_event(EventType.OPENED_DOCUMENT, {"documentType": "Qsharp"}, {"linesOfCode": 42})
"""

from __future__ import annotations

import logging

from collections.abc import Mapping
from enum import Enum, unique
from functools import cache
from typing import TYPE_CHECKING, Any, Literal, overload

from pydantic import SecretStr
from pydantic_core import to_json

from qsharp_telemetry.config import get_telemetry_settings
from qsharp_telemetry.events import EventType, validate_event_payload
from qsharp_telemetry.exceptions import TelemetryAlreadyInitializedError, TelemetryPayloadError
from qsharp_telemetry.logging import TRACE
from qsharp_telemetry.reporter import PostHogReporter, posthog_reporter_factory


if TYPE_CHECKING:
    from qsharp_telemetry.config import TelemetrySettings
    from qsharp_telemetry.events import (
        AssociationEvent,
        AssociationProperties,
        CompletionListMeasurements,
        DebugSessionProperties,
        EmptyEvent,
        EmptyPayload,
        FlowEndEvent,
        FlowEndProperties,
        GenerateQirMeasurements,
        LoadLanguageServiceMeasurements,
        OpenedDocumentMeasurements,
        OpenedDocumentProperties,
        RequestFailedEvent,
        RequestFailedProperties,
    )
    from qsharp_telemetry.reporter import ReporterFactory, TelemetryReporter


logger = logging.getLogger(__name__)


@unique
class DispatcherState(Enum):
    """Lifecycle of a dispatcher. `ACTIVE` and `DISABLED` are terminal."""

    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    DISABLED = "disabled"


def read_instrumentation_key(key_source: object) -> str | None:
    """
    Pull the instrumentation key out of a key source.

    A key source is either an object with an `ai_key` (or `aiKey`) attribute,
    such as `TelemetrySettings`, or a mapping with an `aiKey` (or `ai_key`)
    entry, such as parsed package metadata.

    Returns:
        The stripped key, or None if the source has no usable key
    """
    if key_source is None:
        return None
    if isinstance(key_source, Mapping):
        raw = key_source.get("aiKey", key_source.get("ai_key"))
    else:
        raw = getattr(key_source, "ai_key", None)
        if raw is None:
            raw = getattr(key_source, "aiKey", None)
    if isinstance(raw, SecretStr):
        raw = raw.get_secret_value()
    if not isinstance(raw, str) or not raw.strip():
        return None
    return raw.strip()


class TelemetryDispatcher:
    """
    Gate between the host application and the reporting backend.

    Args:
        reporter_factory: Builds the reporter from the instrumentation key
        validate_payloads: Check payloads against the catalogue at runtime and drop mismatches
    """

    def __init__(
        self,
        reporter_factory: ReporterFactory | None = None,
        *,
        validate_payloads: bool = False,
    ) -> None:
        self._reporter_factory: ReporterFactory = reporter_factory or PostHogReporter
        self._reporter: TelemetryReporter | None = None
        self._state = DispatcherState.UNINITIALIZED
        self.validate_payloads = validate_payloads

    @classmethod
    def from_settings(cls, settings: TelemetrySettings | None = None) -> TelemetryDispatcher:
        """Create a dispatcher reporting to the PostHog host from telemetry settings."""
        settings = settings or get_telemetry_settings()
        host = str(settings.posthog_host).rstrip("/")
        return cls(posthog_reporter_factory(host), validate_payloads=settings.validate_payloads)

    @property
    def state(self) -> DispatcherState:
        return self._state

    @property
    def reporter(self) -> TelemetryReporter | None:
        return self._reporter

    @property
    def enabled(self) -> bool:
        """Whether events are currently forwarded to a reporter."""
        return self._reporter is not None

    def initialize(self, key_source: object) -> bool:
        """
        Bind a reporter and announce the plugin start.

        Without a usable key in `key_source`, telemetry stays disabled for
        the lifetime of this dispatcher. A dispatcher can only be initialized
        once.

        Returns:
            True if a reporter is now bound

        Raises:
            TelemetryAlreadyInitializedError: If `initialize` was already called
        """
        if self._state is not DispatcherState.UNINITIALIZED:
            raise TelemetryAlreadyInitializedError(
                "Telemetry has already been initialized",
                details={"state": self._state.value},
                suggestions=["Call initialize exactly once, at application startup."],
            )
        if (key := read_instrumentation_key(key_source)) is None:
            logger.debug("No instrumentation key available, telemetry disabled")
            self._state = DispatcherState.DISABLED
            return False
        try:
            self._reporter = self._reporter_factory(key)
        except Exception:
            logger.exception("Failed to create telemetry reporter, telemetry disabled")
            self._state = DispatcherState.DISABLED
            return False
        self._state = DispatcherState.ACTIVE
        self.emit(EventType.INITIALIZE_PLUGIN, {}, {})
        return True

    @overload
    def emit(
        self,
        event: EmptyEvent,
        properties: EmptyPayload = ...,
        measurements: EmptyPayload = ...,
    ) -> None: ...
    @overload
    def emit(
        self,
        event: Literal[EventType.LOAD_LANGUAGE_SERVICE],
        properties: EmptyPayload,
        measurements: LoadLanguageServiceMeasurements,
    ) -> None: ...
    @overload
    def emit(
        self,
        event: Literal[EventType.RETURN_COMPLETION_LIST],
        properties: EmptyPayload,
        measurements: CompletionListMeasurements,
    ) -> None: ...
    @overload
    def emit(
        self,
        event: AssociationEvent,
        properties: AssociationProperties,
        measurements: EmptyPayload = ...,
    ) -> None: ...
    @overload
    def emit(
        self,
        event: Literal[EventType.GENERATE_QIR_END],
        properties: AssociationProperties,
        measurements: GenerateQirMeasurements,
    ) -> None: ...
    @overload
    def emit(
        self,
        event: FlowEndEvent,
        properties: FlowEndProperties,
        measurements: EmptyPayload = ...,
    ) -> None: ...
    @overload
    def emit(
        self,
        event: RequestFailedEvent,
        properties: RequestFailedProperties,
        measurements: EmptyPayload = ...,
    ) -> None: ...
    @overload
    def emit(
        self,
        event: Literal[EventType.DEBUG_SESSION_EVENT],
        properties: DebugSessionProperties,
        measurements: EmptyPayload = ...,
    ) -> None: ...
    @overload
    def emit(
        self,
        event: Literal[EventType.OPENED_DOCUMENT],
        properties: OpenedDocumentProperties,
        measurements: OpenedDocumentMeasurements,
    ) -> None: ...
    def emit(
        self,
        event: EventType | str,
        properties: Mapping[str, Any] | None = None,
        measurements: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Send one telemetry event, or drop it if no reporter is bound.

        `event` may also be the wire identifier (`"Qsharp.InitializePlugin"`);
        an identifier outside the catalogue is logged and dropped.

        Note:
            This method never raises for a payload matching the event's
            schema. Reporter failures are logged and swallowed.
        """
        if not isinstance(event, EventType):
            try:
                event = EventType(event)
            except ValueError:
                logger.warning("Dropping unknown telemetry event %r", event)
                return
        if self._reporter is None:
            logger.log(TRACE, "No telemetry reporter. Omitting telemetry event %s", event.value)
            return
        # copies, so neither the reporter nor the caller can mutate the other's mapping
        props = dict(properties or {})
        measures = dict(measurements or {})
        if self.validate_payloads:
            try:
                validate_event_payload(event, props, measures)
            except TelemetryPayloadError as e:
                logger.warning("Dropping telemetry event %s: %s", event.value, e)
                return
        try:
            self._reporter.send(event.value, props, measures)
        except Exception:
            # Never fail application due to telemetry
            logger.exception("Telemetry reporter failed to send event %s", event.value)
            return
        if logger.isEnabledFor(logging.DEBUG):
            # payloads that skipped the type checker can hold anything
            logger.debug(
                "Sent telemetry: %s %s %s",
                event.value,
                to_json(props, fallback=str).decode("utf-8"),
                to_json(measures, fallback=str).decode("utf-8"),
            )

    def reset(self) -> None:
        """Return to the uninitialized state. Intended for tests."""
        self._reporter = None
        self._state = DispatcherState.UNINITIALIZED


# ================================================
# *          Process-wide default dispatcher
# ================================================


@cache
def get_dispatcher() -> TelemetryDispatcher:
    """
    Get the process-wide dispatcher.

    Returns:
        Cached dispatcher configured from telemetry settings
    """
    return TelemetryDispatcher.from_settings()


def init_telemetry(key_source: object = None) -> bool:
    """
    Initialize the process-wide dispatcher. Call once, at startup.

    Args:
        key_source: Where to read the instrumentation key; telemetry settings by default

    Returns:
        True if telemetry is active
    """
    return get_dispatcher().initialize(
        get_telemetry_settings() if key_source is None else key_source
    )


@overload
def send_telemetry_event(
    event: EmptyEvent, properties: EmptyPayload = ..., measurements: EmptyPayload = ...
) -> None: ...
@overload
def send_telemetry_event(
    event: Literal[EventType.LOAD_LANGUAGE_SERVICE],
    properties: EmptyPayload,
    measurements: LoadLanguageServiceMeasurements,
) -> None: ...
@overload
def send_telemetry_event(
    event: Literal[EventType.RETURN_COMPLETION_LIST],
    properties: EmptyPayload,
    measurements: CompletionListMeasurements,
) -> None: ...
@overload
def send_telemetry_event(
    event: AssociationEvent,
    properties: AssociationProperties,
    measurements: EmptyPayload = ...,
) -> None: ...
@overload
def send_telemetry_event(
    event: Literal[EventType.GENERATE_QIR_END],
    properties: AssociationProperties,
    measurements: GenerateQirMeasurements,
) -> None: ...
@overload
def send_telemetry_event(
    event: FlowEndEvent, properties: FlowEndProperties, measurements: EmptyPayload = ...
) -> None: ...
@overload
def send_telemetry_event(
    event: RequestFailedEvent,
    properties: RequestFailedProperties,
    measurements: EmptyPayload = ...,
) -> None: ...
@overload
def send_telemetry_event(
    event: Literal[EventType.DEBUG_SESSION_EVENT],
    properties: DebugSessionProperties,
    measurements: EmptyPayload = ...,
) -> None: ...
@overload
def send_telemetry_event(
    event: Literal[EventType.OPENED_DOCUMENT],
    properties: OpenedDocumentProperties,
    measurements: OpenedDocumentMeasurements,
) -> None: ...
def send_telemetry_event(
    event: EventType | str,
    properties: Mapping[str, Any] | None = None,
    measurements: Mapping[str, Any] | None = None,
) -> None:
    """Send one telemetry event through the process-wide dispatcher."""
    get_dispatcher().emit(event, properties, measurements)  # type: ignore[arg-type]


def reset_telemetry() -> None:
    """Drop the process-wide dispatcher so the next access builds a fresh one."""
    get_dispatcher.cache_clear()


__all__ = (
    "DispatcherState",
    "TelemetryDispatcher",
    "get_dispatcher",
    "init_telemetry",
    "read_instrumentation_key",
    "reset_telemetry",
    "send_telemetry_event",
)
