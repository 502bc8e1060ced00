# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""
Telemetry event catalogue.

Defines the closed set of Q# telemetry events and, for each one, the exact
shape of its properties (string or enumerated tags) and measurements
(numbers). Shapes are `TypedDict`s, so a type checker rejects a payload with
missing, extra, or mistyped fields at the call site of
`send_telemetry_event`. `validate_event_payload` performs the same check at
runtime for callers without a type checker.

Paired `*Start`/`*End` events share an `associationId`, which lets analysis
join them to compute duration and outcome. `*End` events of user flows carry a
`UserFlowStatus`; the two `*RequestFailed` events stand alone.
"""

# No postponed annotations here: TypedDict needs real `NotRequired` objects to
# compute `__required_keys__`.

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, StrEnum, unique
from functools import cache
from types import MappingProxyType
from typing import Any, Literal, NotRequired, TypedDict

from pydantic import ConfigDict, TypeAdapter, ValidationError, with_config

from qsharp_telemetry.exceptions import TelemetryPayloadError


# ================================================
# *          Event identifiers
# ================================================


@unique
class EventType(Enum):
    """Identifiers of every telemetry event the Q# tooling can emit."""

    INITIALIZE_PLUGIN = "Qsharp.InitializePlugin"
    LOAD_LANGUAGE_SERVICE = "Qsharp.LoadLanguageService"
    RETURN_COMPLETION_LIST = "Qsharp.ReturnCompletionList"
    GENERATE_QIR_START = "Qsharp.GenerateQirStart"
    GENERATE_QIR_END = "Qsharp.GenerateQirEnd"
    RENDER_QUANTUM_STATE_START = "Qsharp.RenderQuantumStateStart"
    RENDER_QUANTUM_STATE_END = "Qsharp.RenderQuantumStateEnd"
    SUBMIT_TO_AZURE_START = "Qsharp.SubmitToAzureStart"
    SUBMIT_TO_AZURE_END = "Qsharp.SubmitToAzureEnd"
    AUTH_SESSION_START = "Qsharp.AuthSessionStart"
    AUTH_SESSION_END = "Qsharp.AuthSessionEnd"
    QUERY_WORKSPACES_START = "Qsharp.QueryWorkspacesStart"
    QUERY_WORKSPACES_END = "Qsharp.QueryWorkspacesEnd"
    AZURE_REQUEST_FAILED = "Qsharp.AzureRequestFailed"
    STORAGE_REQUEST_FAILED = "Qsharp.StorageRequestFailed"
    GET_JOB_FILES_START = "Qsharp.GetJobFilesStart"
    GET_JOB_FILES_END = "Qsharp.GetJobFilesEnd"
    QUERY_WORKSPACE_START = "Qsharp.QueryWorkspaceStart"
    QUERY_WORKSPACE_END = "Qsharp.QueryWorkspaceEnd"
    CHECK_CORS_START = "Qsharp.CheckCorsStart"
    CHECK_CORS_END = "Qsharp.CheckCorsEnd"
    INITIALIZE_RUNTIME_START = "Qsharp.InitializeRuntimeStart"
    INITIALIZE_RUNTIME_END = "Qsharp.InitializeRuntimeEnd"
    DEBUG_SESSION_EVENT = "Qsharp.DebugSessionEvent"
    LAUNCH = "Qsharp.Launch"
    OPENED_DOCUMENT = "Qsharp.OpenedDocument"


# ================================================
# *          Property value enums
# ================================================


@unique
class UserFlowStatus(StrEnum):
    """Outcome of a multi-step, user-initiated flow."""

    ABORTED = "Aborted"
    """The flow was intentionally canceled or left, either by us or the user. Not an error."""
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    """Something we can action: a service request failure, an exception, etc."""


@unique
class QsharpDocumentType(StrEnum):
    """Kind of document opened in the editor."""

    JUPYTER_CELL = "JupyterCell"
    QSHARP = "Qsharp"
    OTHER = "Other"


@unique
class DebugEvent(StrEnum):
    """Debugger stepping action."""

    STEP_IN = "StepIn"
    CONTINUE = "Continue"


def classify_document(language_id: str, *, is_notebook_cell: bool = False) -> QsharpDocumentType:
    """Classify an editor document for the `OpenedDocument` event.

    Args:
        language_id: The editor's language identifier for the document
        is_notebook_cell: Whether the document is a cell inside a notebook
    """
    if language_id.strip().lower() != "qsharp":
        return QsharpDocumentType.OTHER
    return QsharpDocumentType.JUPYTER_CELL if is_notebook_cell else QsharpDocumentType.QSHARP


# ================================================
# *          Payload shapes
# ================================================

_FORBID_EXTRA = ConfigDict(extra="forbid")


@with_config(_FORBID_EXTRA)
class EmptyPayload(TypedDict):
    """A payload that must not carry any field."""


@with_config(_FORBID_EXTRA)
class AssociationProperties(TypedDict):
    """Properties of an event that only correlates with its pair."""

    associationId: str


@with_config(_FORBID_EXTRA)
class FlowEndProperties(TypedDict):
    """Properties closing a user flow."""

    associationId: str
    flowStatus: UserFlowStatus
    reason: NotRequired[str]


@with_config(_FORBID_EXTRA)
class RequestFailedProperties(TypedDict):
    """Properties of a standalone request failure."""

    associationId: str
    reason: NotRequired[str]


@with_config(_FORBID_EXTRA)
class DebugSessionProperties(TypedDict):
    associationId: str
    event: DebugEvent


@with_config(_FORBID_EXTRA)
class OpenedDocumentProperties(TypedDict):
    documentType: QsharpDocumentType


@with_config(_FORBID_EXTRA)
class LoadLanguageServiceMeasurements(TypedDict):
    timeToStartMs: float


@with_config(_FORBID_EXTRA)
class CompletionListMeasurements(TypedDict):
    timeToCompletionMs: float
    completionListLength: int


@with_config(_FORBID_EXTRA)
class GenerateQirMeasurements(TypedDict):
    qirLength: int


@with_config(_FORBID_EXTRA)
class OpenedDocumentMeasurements(TypedDict):
    linesOfCode: int


# Identifier groups sharing one shape, used to key the typed overloads of
# `send_telemetry_event`.

type EmptyEvent = Literal[EventType.INITIALIZE_PLUGIN]

type AssociationEvent = Literal[
    EventType.GENERATE_QIR_START,
    EventType.RENDER_QUANTUM_STATE_START,
    EventType.RENDER_QUANTUM_STATE_END,
    EventType.SUBMIT_TO_AZURE_START,
    EventType.AUTH_SESSION_START,
    EventType.QUERY_WORKSPACES_START,
    EventType.GET_JOB_FILES_START,
    EventType.QUERY_WORKSPACE_START,
    EventType.CHECK_CORS_START,
    EventType.INITIALIZE_RUNTIME_START,
    EventType.LAUNCH,
]

type FlowEndEvent = Literal[
    EventType.SUBMIT_TO_AZURE_END,
    EventType.AUTH_SESSION_END,
    EventType.QUERY_WORKSPACES_END,
    EventType.GET_JOB_FILES_END,
    EventType.QUERY_WORKSPACE_END,
    EventType.CHECK_CORS_END,
    EventType.INITIALIZE_RUNTIME_END,
]

type RequestFailedEvent = Literal[
    EventType.AZURE_REQUEST_FAILED, EventType.STORAGE_REQUEST_FAILED
]


# ================================================
# *          Schema registry
# ================================================


@dataclass(frozen=True, slots=True)
class EventSchema:
    """The properties and measurements shape bound to one event."""

    event: EventType
    properties: type[Any]
    measurements: type[Any]

    @property
    def required_properties(self) -> frozenset[str]:
        return frozenset(self.properties.__required_keys__)

    @property
    def required_measurements(self) -> frozenset[str]:
        return frozenset(self.measurements.__required_keys__)

    @property
    def allows_empty_payload(self) -> bool:
        """Whether the event may be sent with the default empty properties and measurements."""
        return not self.required_properties and not self.required_measurements

    def validate(
        self, properties: Mapping[str, Any], measurements: Mapping[str, Any]
    ) -> None:
        """Validate a payload against this schema.

        Raises:
            TelemetryPayloadError: If either mapping does not match its shape.
        """
        for part, shape, payload in (
            ("properties", self.properties, properties),
            ("measurements", self.measurements, measurements),
        ):
            try:
                _ = _adapter_for(shape).validate_python(dict(payload))
            except ValidationError as e:
                raise TelemetryPayloadError(
                    f"Invalid {part} for telemetry event {self.event.value}",
                    details={"event": self.event.value, "errors": e.error_count()},
                    suggestions=[f"Match the {shape.__name__} shape for this event."],
                ) from e


@cache
def _adapter_for(shape: type[Any]) -> TypeAdapter[Any]:
    return TypeAdapter(shape)


def _schema(event: EventType, properties: type[Any], measurements: type[Any]) -> tuple[EventType, EventSchema]:
    return event, EventSchema(event=event, properties=properties, measurements=measurements)


EVENT_SCHEMAS: MappingProxyType[EventType, EventSchema] = MappingProxyType(
    dict((
        _schema(EventType.INITIALIZE_PLUGIN, EmptyPayload, EmptyPayload),
        _schema(EventType.LOAD_LANGUAGE_SERVICE, EmptyPayload, LoadLanguageServiceMeasurements),
        _schema(EventType.RETURN_COMPLETION_LIST, EmptyPayload, CompletionListMeasurements),
        _schema(EventType.GENERATE_QIR_START, AssociationProperties, EmptyPayload),
        _schema(EventType.GENERATE_QIR_END, AssociationProperties, GenerateQirMeasurements),
        _schema(EventType.RENDER_QUANTUM_STATE_START, AssociationProperties, EmptyPayload),
        _schema(EventType.RENDER_QUANTUM_STATE_END, AssociationProperties, EmptyPayload),
        _schema(EventType.SUBMIT_TO_AZURE_START, AssociationProperties, EmptyPayload),
        _schema(EventType.SUBMIT_TO_AZURE_END, FlowEndProperties, EmptyPayload),
        _schema(EventType.AUTH_SESSION_START, AssociationProperties, EmptyPayload),
        _schema(EventType.AUTH_SESSION_END, FlowEndProperties, EmptyPayload),
        _schema(EventType.QUERY_WORKSPACES_START, AssociationProperties, EmptyPayload),
        _schema(EventType.QUERY_WORKSPACES_END, FlowEndProperties, EmptyPayload),
        _schema(EventType.AZURE_REQUEST_FAILED, RequestFailedProperties, EmptyPayload),
        _schema(EventType.STORAGE_REQUEST_FAILED, RequestFailedProperties, EmptyPayload),
        _schema(EventType.GET_JOB_FILES_START, AssociationProperties, EmptyPayload),
        _schema(EventType.GET_JOB_FILES_END, FlowEndProperties, EmptyPayload),
        _schema(EventType.QUERY_WORKSPACE_START, AssociationProperties, EmptyPayload),
        _schema(EventType.QUERY_WORKSPACE_END, FlowEndProperties, EmptyPayload),
        _schema(EventType.CHECK_CORS_START, AssociationProperties, EmptyPayload),
        _schema(EventType.CHECK_CORS_END, FlowEndProperties, EmptyPayload),
        _schema(EventType.INITIALIZE_RUNTIME_START, AssociationProperties, EmptyPayload),
        _schema(EventType.INITIALIZE_RUNTIME_END, FlowEndProperties, EmptyPayload),
        _schema(EventType.DEBUG_SESSION_EVENT, DebugSessionProperties, EmptyPayload),
        _schema(EventType.LAUNCH, AssociationProperties, EmptyPayload),
        _schema(EventType.OPENED_DOCUMENT, OpenedDocumentProperties, OpenedDocumentMeasurements),
    ))
)


def get_event_schema(event: EventType) -> EventSchema:
    """Return the schema bound to `event`."""
    return EVENT_SCHEMAS[event]


def validate_event_payload(
    event: EventType,
    properties: Mapping[str, Any] | None = None,
    measurements: Mapping[str, Any] | None = None,
) -> None:
    """Check a payload against the event catalogue at runtime.

    Raises:
        TelemetryPayloadError: If the payload does not match `event`'s schema.
    """
    get_event_schema(event).validate(properties or {}, measurements or {})


__all__ = (
    "EVENT_SCHEMAS",
    "AssociationEvent",
    "AssociationProperties",
    "CompletionListMeasurements",
    "DebugEvent",
    "DebugSessionProperties",
    "EmptyEvent",
    "EmptyPayload",
    "EventSchema",
    "EventType",
    "FlowEndEvent",
    "FlowEndProperties",
    "GenerateQirMeasurements",
    "LoadLanguageServiceMeasurements",
    "OpenedDocumentMeasurements",
    "OpenedDocumentProperties",
    "QsharpDocumentType",
    "RequestFailedEvent",
    "RequestFailedProperties",
    "UserFlowStatus",
    "classify_document",
    "get_event_schema",
    "validate_event_payload",
)
