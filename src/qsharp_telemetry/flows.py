# SPDX-FileCopyrightText: 2025 Knitli Inc.
# SPDX-FileContributor: Adam Poulemanos <adam@knit.li>
#
# SPDX-License-Identifier: MIT OR Apache-2.0
"""
User flow tracking.

A user flow is a multi-step operation the user started, such as submitting a
job or signing in. Its `*Start` and `*End` events share an association id,
and the `*End` event reports how the flow finished.

Example:
    >>> with track_user_flow(EventType.SUBMIT_TO_AZURE_START) as flow:
    ...     if not user_confirmed:
    ...         flow.abort("user declined")
    ...     else:
    ...         submit_job()
"""

from __future__ import annotations

import asyncio

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Literal

from qsharp_telemetry._utils import uuid7_hex
from qsharp_telemetry.dispatcher import TelemetryDispatcher, get_dispatcher
from qsharp_telemetry.events import EventType, UserFlowStatus


if TYPE_CHECKING:
    from qsharp_telemetry.events import FlowEndProperties


type FlowStartEvent = Literal[
    EventType.SUBMIT_TO_AZURE_START,
    EventType.AUTH_SESSION_START,
    EventType.QUERY_WORKSPACES_START,
    EventType.GET_JOB_FILES_START,
    EventType.QUERY_WORKSPACE_START,
    EventType.CHECK_CORS_START,
    EventType.INITIALIZE_RUNTIME_START,
]

FLOW_EVENTS: MappingProxyType[EventType, EventType] = MappingProxyType({
    EventType.SUBMIT_TO_AZURE_START: EventType.SUBMIT_TO_AZURE_END,
    EventType.AUTH_SESSION_START: EventType.AUTH_SESSION_END,
    EventType.QUERY_WORKSPACES_START: EventType.QUERY_WORKSPACES_END,
    EventType.GET_JOB_FILES_START: EventType.GET_JOB_FILES_END,
    EventType.QUERY_WORKSPACE_START: EventType.QUERY_WORKSPACE_END,
    EventType.CHECK_CORS_START: EventType.CHECK_CORS_END,
    EventType.INITIALIZE_RUNTIME_START: EventType.INITIALIZE_RUNTIME_END,
})
"""Start events of user flows, mapped to the End event reporting their outcome."""


# The flow was left rather than broken: the user interrupted it, the task was
# cancelled, or the process or generator is shutting down.
_ABORTING_EXCEPTIONS = (KeyboardInterrupt, SystemExit, GeneratorExit, asyncio.CancelledError)


@dataclass
class UserFlow:
    """Handle for one running user flow."""

    start: EventType
    end: EventType
    association_id: str
    status: UserFlowStatus = UserFlowStatus.SUCCEEDED
    reason: str | None = None

    def abort(self, reason: str | None = None) -> None:
        """Mark the flow as deliberately canceled or left."""
        self.status = UserFlowStatus.ABORTED
        self.reason = reason

    def fail(self, reason: str | None = None) -> None:
        """Mark the flow as finished with an actionable failure."""
        self.status = UserFlowStatus.FAILED
        self.reason = reason

    def end_properties(self) -> FlowEndProperties:
        properties: FlowEndProperties = {
            "associationId": self.association_id,
            "flowStatus": self.status,
        }
        if self.reason is not None:
            properties["reason"] = self.reason
        return properties


@contextmanager
def track_user_flow(
    start: FlowStartEvent,
    *,
    dispatcher: TelemetryDispatcher | None = None,
    association_id: str | None = None,
) -> Iterator[UserFlow]:
    """
    Emit a flow's Start event on entry and its End event on exit.

    The End event reports `SUCCEEDED` unless the body called `abort` or
    `fail`, was cancelled, interrupted or exited (`ABORTED`), or raised
    anything else (`FAILED`). The exception type name becomes the reason.
    Exceptions are re-raised.

    Args:
        start: The flow's Start event
        dispatcher: Where to emit; the process-wide dispatcher by default
        association_id: Correlation id for the pair; a fresh UUID7 by default

    Raises:
        ValueError: If `start` does not open a user flow
    """
    if (end := FLOW_EVENTS.get(start)) is None:
        raise ValueError(f"{start} is not the start of a user flow")
    if dispatcher is None:
        dispatcher = get_dispatcher()
    flow = UserFlow(start=start, end=end, association_id=association_id or uuid7_hex())
    dispatcher.emit(start, {"associationId": flow.association_id})
    try:
        yield flow
    except _ABORTING_EXCEPTIONS as e:
        flow.abort(type(e).__name__)
        raise
    except BaseException as e:
        flow.fail(type(e).__name__)
        raise
    finally:
        dispatcher.emit(end, flow.end_properties())  # type: ignore[call-overload]


__all__ = ("FLOW_EVENTS", "FlowStartEvent", "UserFlow", "track_user_flow")
