"""Builders for IAM role names, ARNs, trust policies and tags.

Everything here is a pure function of its inputs: a ServiceAccount's
namespace/name always maps to the same role, which lets the controller find
(and safely delete) a role without storing any state of its own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from ..constants import (
    POLICY_VERSION,
    SUBJECT_PREFIX,
    TAG_CLUSTER,
    TAG_MANAGED_BY,
    TAG_STACK,
)

# Kubernetes names the controller accepts: lowercase alphanumerics and '-'
VALID_RESOURCE_NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")


def is_valid_resource_name(value: str) -> bool:
    """Check that a namespace or name is safe to embed in a role name."""
    return bool(value) and VALID_RESOURCE_NAME_PATTERN.match(value) is not None


def make_role_name(name: str, namespace: str, prefix: str = "") -> str:
    """Return the role name ``(prefix_)namespace_name``."""
    if not prefix:
        return f"{namespace}_{name}"
    return f"{prefix}_{namespace}_{name}"


def make_role_arn(name: str, namespace: str, account_id: str, prefix: str = "") -> str:
    """Return the ARN of the role for a ServiceAccount.

    The ARN is composed locally; the role may or may not exist in AWS.
    """
    return f"arn:aws:iam::{account_id}:role/{make_role_name(name, namespace, prefix)}"


def make_trust_policy(
    name: str,
    namespace: str,
    account_id: str,
    oidc_provider: str,
) -> dict[str, Any]:
    """Build the assume-role policy for a ServiceAccount.

    Only the cluster's OIDC provider may assume the role, and only for tokens
    whose subject is exactly this ServiceAccount.
    """
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {
                    "Federated": f"arn:aws:iam::{account_id}:oidc-provider/{oidc_provider}",
                },
                "Action": "sts:AssumeRoleWithWebIdentity",
                "Condition": {
                    "StringEquals": {
                        f"{oidc_provider}:sub": f"{SUBJECT_PREFIX}:{namespace}:{name}",
                    }
                },
            }
        ],
    }


def make_role_tags(
    name: str,
    namespace: str,
    controller_name: str,
    cluster_name: str,
) -> dict[str, str]:
    """Build the tags stamped on every role the controller creates."""
    return {
        TAG_MANAGED_BY: controller_name,
        TAG_STACK: f"{namespace}/{name}",
        TAG_CLUSTER: cluster_name,
    }


def is_owned(tags: Mapping[str, str] | None, controller_name: str) -> bool:
    """Return True if the role tags mark it as managed by this controller."""
    if not tags:
        return False
    return tags.get(TAG_MANAGED_BY) == controller_name


@dataclass(frozen=True)
class RoleNamer:
    """Role naming bound to one deployment's constants.

    Attributes:
        account_id: AWS account the roles live in
        oidc_provider: Federation provider trusted by the roles
        controller_name: Value of the managed-by tag
        cluster_name: Value of the cluster tag
        prefix: Role name prefix, possibly empty
    """

    account_id: str
    oidc_provider: str
    controller_name: str
    cluster_name: str
    prefix: str = ""

    def role_name(self, name: str, namespace: str) -> str:
        return make_role_name(name, namespace, self.prefix)

    def role_arn(self, name: str, namespace: str) -> str:
        return make_role_arn(name, namespace, self.account_id, self.prefix)

    def trust_policy(self, name: str, namespace: str) -> dict[str, Any]:
        return make_trust_policy(name, namespace, self.account_id, self.oidc_provider)

    def role_tags(self, name: str, namespace: str) -> dict[str, str]:
        return make_role_tags(name, namespace, self.controller_name, self.cluster_name)

    def is_owned(self, tags: Mapping[str, str] | None) -> bool:
        return is_owned(tags, self.controller_name)
