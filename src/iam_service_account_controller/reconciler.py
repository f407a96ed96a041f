"""Reconciliation of one ServiceAccount with its IAM role.

Every call re-derives the action from the two observed states, the cached
ServiceAccount and the IAM role:

    ServiceAccount  IAM role  action
    --------------  --------  --------------------------
    absent          absent    nothing to delete
    absent          owned     delete the role
    absent          foreign   refuse to delete
    present         absent    create the role
    present         owned     in sync
    present         foreign   warn, leave the role alone

Transient IAM failures propagate as :class:`IAMError` so the caller can
requeue the key with backoff.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from .admission import should_manage_object
from .builders.role import RoleNamer
from .logging import log_resource_event
from .services.aws.models import Role
from .services.iam.base import RoleStore
from .tracing import add_span_attribute, trace_span
from .utils.cache import ObjectCache, split_key
from .utils.errors import IAMError, RoleNotManagedError, is_not_found, is_not_managed
from .utils.events import EventRecorder, emit_sync_failed, emit_sync_warning, emit_synced

logger = logging.getLogger(__name__)


class SyncResult(str, Enum):
    """Terminal outcome of a successful reconciliation."""

    CREATED = "created"
    IN_SYNC = "in_sync"
    UNMANAGED = "unmanaged"
    DELETED = "deleted"
    NOTHING_TO_DELETE = "nothing_to_delete"
    DELETE_REFUSED = "delete_refused"
    NOT_ADMITTED = "not_admitted"


class Reconciler:
    """Converges IAM roles towards the cached ServiceAccounts."""

    def __init__(
        self,
        cache: ObjectCache,
        role_store: RoleStore,
        namer: RoleNamer,
        recorder: EventRecorder,
    ) -> None:
        self.cache = cache
        self.role_store = role_store
        self.namer = namer
        self.recorder = recorder

    def sync(self, key: str) -> SyncResult:
        """Reconcile the ServiceAccount stored under ``key``.

        Raises:
            InvalidKeyError: If the key is not ``namespace/name``
            IAMError: On a transient IAM failure
        """
        namespace, name = split_key(key)
        role_name = self.namer.role_name(name, namespace)

        with trace_span(
            "reconcile_service_account",
            attributes={"k8s.namespace": namespace, "k8s.name": name, "iam.role_name": role_name},
        ):
            service_account = self.cache.get(namespace, name)
            if service_account is None:
                result = self._sync_absent(namespace, name, role_name)
            else:
                result = self._sync_present(service_account, namespace, name, role_name)
            add_span_attribute("sync.result", result.value)
            return result

    def _get_role(self, role_name: str) -> Role | None:
        try:
            return self.role_store.get_role(role_name)
        except IAMError as e:
            if is_not_found(e):
                return None
            raise

    def _delete_owned_role(self, role: Role) -> None:
        """Delete ``role`` if this controller owns it.

        Raises:
            RoleNotManagedError: If the role lacks our ownership tag
            IAMError: On a transient IAM failure
        """
        if not self.namer.is_owned(role.tags):
            raise RoleNotManagedError(f"IAM role {role.name} is not managed by controller")
        self.role_store.delete_role(role.name)

    def _sync_absent(self, namespace: str, name: str, role_name: str) -> SyncResult:
        log_resource_event(
            logger, namespace, name, "delete", "ServiceAccountGone",
            f"ServiceAccount no longer exists, checking IAM role {role_name}",
        )

        role = self._get_role(role_name)
        if role is None:
            return SyncResult.NOTHING_TO_DELETE

        try:
            self._delete_owned_role(role)
        except IAMError as e:
            if not is_not_managed(e):
                raise
            log_resource_event(
                logger, namespace, name, "delete", "RoleNotManaged",
                f"{e.message}, not deleting it",
                level=logging.WARNING,
            )
            return SyncResult.DELETE_REFUSED

        log_resource_event(
            logger, namespace, name, "delete", "RoleDeleted", f"Deleted IAM role {role_name}",
        )
        return SyncResult.DELETED

    def _sync_present(
        self,
        service_account: dict[str, Any],
        namespace: str,
        name: str,
        role_name: str,
    ) -> SyncResult:
        # The binding may have been removed after the key was queued
        if not should_manage_object(service_account, self.namer):
            log_resource_event(
                logger, namespace, name, "sync", "NotAdmitted",
                "ServiceAccount is no longer bound to its IAM role, skipping",
            )
            return SyncResult.NOT_ADMITTED

        role = self._get_role(role_name)
        if role is None:
            log_resource_event(
                logger, namespace, name, "create", "RoleMissing",
                f"No IAM role {role_name}, creating it",
            )
            try:
                self.role_store.create_role(
                    role_name,
                    self.namer.trust_policy(name, namespace),
                    self.namer.role_tags(name, namespace),
                )
            except IAMError as e:
                emit_sync_failed(self.recorder, service_account, e)
                raise
            emit_synced(self.recorder, service_account)
            return SyncResult.CREATED

        if self.namer.is_owned(role.tags):
            emit_synced(self.recorder, service_account)
            return SyncResult.IN_SYNC

        log_resource_event(
            logger, namespace, name, "sync", "RoleNotManaged",
            f"IAM role {role_name} exists but is not managed by controller",
            level=logging.WARNING,
        )
        emit_sync_warning(self.recorder, service_account)
        return SyncResult.UNMANAGED
