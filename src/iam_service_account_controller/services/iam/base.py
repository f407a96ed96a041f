"""Base IAM role store interface."""

from __future__ import annotations

from typing import Any, Protocol

from ..aws.models import Role


class RoleStore(Protocol):
    """Protocol defining the IAM role operations the controller needs."""

    def get_role(self, role_name: str) -> Role:
        """Fetch a role.

        Raises:
            RoleNotFoundError: If the role does not exist
            IAMError: On any other failure
        """
        ...

    def create_role(self, role_name: str, trust_policy: dict[str, Any], tags: dict[str, str]) -> Role:
        """Create a role with the given trust policy and tags."""
        ...

    def delete_role(self, role_name: str) -> None:
        """Delete a role."""
        ...
