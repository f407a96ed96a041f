"""Watch-event handler feeding ServiceAccount notifications to the controller.

Raw watch events are used instead of kopf's change-detecting handlers, since
those keep their progress in annotations on the watched object and the
controller must never modify ServiceAccounts.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import kopf

from ..constants import SERVICE_ACCOUNT_PLURAL
from ..controller import Controller
from ..utils.cache import ObjectCache
from ..utils.errors import InvalidKeyError

logger = logging.getLogger(__name__)

# Watch event types; kopf reports objects from the initial listing with type None
EVENT_ADDED = "ADDED"
EVENT_MODIFIED = "MODIFIED"
EVENT_DELETED = "DELETED"


def dispatch_event(
    event_type: str | None,
    obj: Mapping[str, Any],
    cache: ObjectCache,
    controller: Controller,
) -> bool:
    """Update the cache from one watch event and notify the controller.

    Returns:
        True if the controller queued the object
    """
    try:
        if event_type == EVENT_DELETED:
            cache.remove(obj)
            return controller.on_delete(obj)

        meta = obj.get("metadata") or {}
        old = cache.get(meta.get("namespace") or "", meta.get("name") or "")
        cache.upsert(obj)
        if old is None:
            return controller.on_add(obj)
        return controller.on_update(old, obj)
    except InvalidKeyError as e:
        logger.warning(f"Ignoring {event_type} event for object without namespace/name: {e}")
        return False


@kopf.on.event("v1", SERVICE_ACCOUNT_PLURAL)
def handle_service_account_event(
    event: dict[str, Any],
    body: kopf.Body,
    memo: kopf.Memo,
    **_: Any,
) -> None:
    """Handle a raw ServiceAccount watch event."""
    controller = getattr(memo, "controller", None)
    if controller is None:
        logger.warning("Controller is not running, ignoring ServiceAccount event")
        return

    dispatch_event(event.get("type"), dict(body), memo.cache, controller)
