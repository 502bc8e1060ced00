# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0

"""Unit test fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from qsharp_telemetry.events import DebugEvent, EventType, QsharpDocumentType, UserFlowStatus


# One conforming (properties, measurements) payload per event in the catalogue.
SAMPLE_PAYLOADS: dict[EventType, tuple[dict[str, Any], dict[str, Any]]] = {
    EventType.INITIALIZE_PLUGIN: ({}, {}),
    EventType.LOAD_LANGUAGE_SERVICE: ({}, {"timeToStartMs": 12.5}),
    EventType.RETURN_COMPLETION_LIST: ({}, {"timeToCompletionMs": 3, "completionListLength": 17}),
    EventType.GENERATE_QIR_START: ({"associationId": "qir-1"}, {}),
    EventType.GENERATE_QIR_END: ({"associationId": "qir-1"}, {"qirLength": 2048}),
    EventType.RENDER_QUANTUM_STATE_START: ({"associationId": "state-1"}, {}),
    EventType.RENDER_QUANTUM_STATE_END: ({"associationId": "state-1"}, {}),
    EventType.SUBMIT_TO_AZURE_START: ({"associationId": "abc-123"}, {}),
    EventType.SUBMIT_TO_AZURE_END: (
        {"associationId": "abc-123", "flowStatus": UserFlowStatus.SUCCEEDED},
        {},
    ),
    EventType.AUTH_SESSION_START: ({"associationId": "auth-1"}, {}),
    EventType.AUTH_SESSION_END: (
        {"associationId": "auth-1", "flowStatus": UserFlowStatus.ABORTED, "reason": "closed"},
        {},
    ),
    EventType.QUERY_WORKSPACES_START: ({"associationId": "ws-1"}, {}),
    EventType.QUERY_WORKSPACES_END: (
        {"associationId": "ws-1", "flowStatus": UserFlowStatus.FAILED, "reason": "403"},
        {},
    ),
    EventType.AZURE_REQUEST_FAILED: ({"associationId": "req-1", "reason": "timeout"}, {}),
    EventType.STORAGE_REQUEST_FAILED: ({"associationId": "req-2"}, {}),
    EventType.GET_JOB_FILES_START: ({"associationId": "files-1"}, {}),
    EventType.GET_JOB_FILES_END: (
        {"associationId": "files-1", "flowStatus": UserFlowStatus.SUCCEEDED},
        {},
    ),
    EventType.QUERY_WORKSPACE_START: ({"associationId": "ws-2"}, {}),
    EventType.QUERY_WORKSPACE_END: (
        {"associationId": "ws-2", "flowStatus": UserFlowStatus.SUCCEEDED},
        {},
    ),
    EventType.CHECK_CORS_START: ({"associationId": "cors-1"}, {}),
    EventType.CHECK_CORS_END: (
        {"associationId": "cors-1", "flowStatus": UserFlowStatus.FAILED},
        {},
    ),
    EventType.INITIALIZE_RUNTIME_START: ({"associationId": "rt-1"}, {}),
    EventType.INITIALIZE_RUNTIME_END: (
        {"associationId": "rt-1", "flowStatus": UserFlowStatus.SUCCEEDED},
        {},
    ),
    EventType.DEBUG_SESSION_EVENT: ({"associationId": "dbg-1", "event": DebugEvent.STEP_IN}, {}),
    EventType.LAUNCH: ({"associationId": "launch-1"}, {}),
    EventType.OPENED_DOCUMENT: ({"documentType": QsharpDocumentType.QSHARP}, {"linesOfCode": 42}),
}


@pytest.fixture(params=list(EventType), ids=lambda event: event.name)
def event_with_payload(
    request: pytest.FixtureRequest,
) -> tuple[EventType, dict[str, Any], dict[str, Any]]:
    """Each catalogue event with a conforming payload."""
    event: EventType = request.param
    properties, measurements = SAMPLE_PAYLOADS[event]
    return event, properties, measurements


@pytest.fixture
def sample_payloads() -> dict[EventType, tuple[dict[str, Any], dict[str, Any]]]:
    return SAMPLE_PAYLOADS
