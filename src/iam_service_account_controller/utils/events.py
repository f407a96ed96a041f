"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any, Mapping, Protocol

import kopf

from ..constants import (
    EVENT_REASON_SYNC_FAILED,
    EVENT_REASON_SYNC_WARNING,
    EVENT_REASON_SYNCED,
    EVENT_TYPE_NORMAL,
    EVENT_TYPE_WARNING,
    MESSAGE_RESOURCE_SYNCED,
    MESSAGE_ROLE_CREATION_FAILED,
    MESSAGE_UNMANAGED_ROLE,
)
from .errors import sanitize_exception


class EventRecorder(Protocol):
    """Records an outcome event against a Kubernetes object."""

    def record(self, obj: Mapping[str, Any], type_: str, reason: str, message: str) -> None:
        ...


class KopfEventRecorder:
    """Event recorder posting through kopf's event queue.

    Must be called from a thread whose context was copied from a kopf
    handler, which is where kopf keeps its posting queue.
    """

    def record(self, obj: Mapping[str, Any], type_: str, reason: str, message: str) -> None:
        kopf.event(
            dict(obj),
            reason=reason,
            message=message,
            type=type_,
        )


def emit_synced(recorder: EventRecorder, obj: Mapping[str, Any]) -> None:
    """Emit the event for a ServiceAccount whose role is in place."""
    recorder.record(obj, EVENT_TYPE_NORMAL, EVENT_REASON_SYNCED, MESSAGE_RESOURCE_SYNCED)


def emit_sync_failed(recorder: EventRecorder, obj: Mapping[str, Any], error: BaseException) -> None:
    """Emit the event for a failed role creation."""
    message = MESSAGE_ROLE_CREATION_FAILED.format(error=sanitize_exception(error))
    recorder.record(obj, EVENT_TYPE_WARNING, EVENT_REASON_SYNC_FAILED, message)


def emit_sync_warning(recorder: EventRecorder, obj: Mapping[str, Any]) -> None:
    """Emit the event for a role name already taken by a foreign role."""
    recorder.record(obj, EVENT_TYPE_WARNING, EVENT_REASON_SYNC_WARNING, MESSAGE_UNMANAGED_ROLE)
