# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""
Typed telemetry for the Q# developer tooling.

This package defines the closed catalogue of Q# telemetry events, the exact
properties and measurements shape of each, and a single emission entry point
that forwards to a reporting backend when one is configured.

Key Principles:
- Payload shapes are checked by the type checker at every call site
- Fire-and-forget: no buffering, retry or persistence here
- Fail-safe (telemetry errors never affect the application)

Example:
    >>> from qsharp_telemetry import EventType, init_telemetry, send_telemetry_event
    >>> init_telemetry()
    >>> send_telemetry_event(EventType.GENERATE_QIR_START, {"associationId": "abc-123"})
"""

from __future__ import annotations

from qsharp_telemetry.config import TelemetrySettings, get_telemetry_settings
from qsharp_telemetry.dispatcher import (
    DispatcherState,
    TelemetryDispatcher,
    get_dispatcher,
    init_telemetry,
    reset_telemetry,
    send_telemetry_event,
)
from qsharp_telemetry.events import (
    EVENT_SCHEMAS,
    DebugEvent,
    EventSchema,
    EventType,
    QsharpDocumentType,
    UserFlowStatus,
    classify_document,
    get_event_schema,
    validate_event_payload,
)
from qsharp_telemetry.exceptions import (
    QsharpTelemetryError,
    TelemetryAlreadyInitializedError,
    TelemetryPayloadError,
)
from qsharp_telemetry.flows import FLOW_EVENTS, UserFlow, track_user_flow
from qsharp_telemetry.reporter import PostHogReporter, TelemetryReporter


__all__ = (
    "EVENT_SCHEMAS",
    "FLOW_EVENTS",
    "DebugEvent",
    "DispatcherState",
    "EventSchema",
    "EventType",
    "PostHogReporter",
    "QsharpDocumentType",
    "QsharpTelemetryError",
    "TelemetryAlreadyInitializedError",
    "TelemetryDispatcher",
    "TelemetryPayloadError",
    "TelemetryReporter",
    "TelemetrySettings",
    "UserFlow",
    "UserFlowStatus",
    "classify_document",
    "get_dispatcher",
    "get_event_schema",
    "get_telemetry_settings",
    "init_telemetry",
    "reset_telemetry",
    "send_telemetry_event",
    "track_user_flow",
    "validate_event_payload",
)
