"""Admission filter deciding which ServiceAccounts the controller manages."""

from __future__ import annotations

from typing import Any, Mapping

from .builders.role import RoleNamer, is_valid_resource_name
from .constants import ANNOTATION_ROLE_ARN


def should_manage(
    namespace: str,
    name: str,
    annotations: Mapping[str, str] | None,
    namer: RoleNamer,
) -> bool:
    """Check whether a ServiceAccount is bound to the role the controller would create.

    The declared role ARN is only ever compared against the ARN recomputed from
    the ServiceAccount's own namespace and name. A ServiceAccount cannot claim
    a role belonging to another namespace, because that role's ARN would not
    match its own.

    Args:
        namespace: ServiceAccount namespace
        name: ServiceAccount name
        annotations: ServiceAccount annotations, possibly None
        namer: Role naming for this deployment

    Returns:
        True if the ServiceAccount should be reconciled
    """
    if not is_valid_resource_name(namespace) or not is_valid_resource_name(name):
        return False

    declared = (annotations or {}).get(ANNOTATION_ROLE_ARN)
    if declared is None:
        return False

    return declared == namer.role_arn(name, namespace)


def should_manage_object(obj: Mapping[str, Any], namer: RoleNamer) -> bool:
    """Apply :func:`should_manage` to a ServiceAccount object."""
    meta = obj.get("metadata") or {}
    return should_manage(
        meta.get("namespace") or "",
        meta.get("name") or "",
        meta.get("annotations"),
        namer,
    )
