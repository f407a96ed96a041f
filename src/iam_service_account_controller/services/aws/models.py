"""Models for AWS IAM operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Role:
    """An IAM role as seen by the controller."""

    name: str
    arn: str = ""
    tags: dict[str, str] = field(default_factory=dict)
    assume_role_policy: dict[str, Any] | None = None

    @classmethod
    def from_response(cls, role: dict[str, Any]) -> "Role":
        """Build a Role from the ``Role`` member of an IAM API response."""
        tags = {tag["Key"]: tag["Value"] for tag in role.get("Tags", [])}
        return cls(
            name=role["RoleName"],
            arn=role.get("Arn", ""),
            tags=tags,
            assume_role_policy=role.get("AssumeRolePolicyDocument"),
        )
