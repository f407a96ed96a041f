"""Builders for IAM roles and role store clients."""

from .role import (
    RoleNamer,
    is_owned,
    is_valid_resource_name,
    make_role_arn,
    make_role_name,
    make_role_tags,
    make_trust_policy,
)

__all__ = [
    "RoleNamer",
    "is_owned",
    "is_valid_resource_name",
    "make_role_arn",
    "make_role_name",
    "make_role_tags",
    "make_trust_policy",
]
