"""AWS IAM role store implementation."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ... import metrics
from ...utils.errors import OTHER_ERROR_CODE, IAMError, RoleNotFoundError
from .models import Role

logger = logging.getLogger(__name__)

NO_SUCH_ENTITY = "NoSuchEntity"


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def _error_message(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Message", str(error))


class IAMRoleStore:
    """IAM role store backed by a boto3 IAM client.

    The client carries only static configuration, so one instance can be
    shared by all reconciliation workers.
    """

    def __init__(self, client: Any) -> None:
        """Initialize the role store.

        Args:
            client: boto3 IAM client
        """
        self.client = client

    def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        """Invoke an IAM API operation with metrics."""
        start_time = time.time()
        try:
            response = getattr(self.client, operation)(**kwargs)
            metrics.role_operations_total.labels(operation=operation, result="success").inc()
            return response
        except (ClientError, BotoCoreError):
            metrics.role_operations_total.labels(operation=operation, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="iam", operation=operation).observe(duration)

    def get_role(self, role_name: str) -> Role:
        """Fetch a role with its tags.

        Raises:
            RoleNotFoundError: If IAM reports NoSuchEntity
            IAMError: On any other failure
        """
        try:
            response = self._call("get_role", RoleName=role_name)
        except ClientError as e:
            if _error_code(e) == NO_SUCH_ENTITY:
                raise RoleNotFoundError(_error_message(e)) from e
            raise IAMError(OTHER_ERROR_CODE, str(e)) from e
        except BotoCoreError as e:
            raise IAMError(OTHER_ERROR_CODE, str(e)) from e

        return Role.from_response(response["Role"])

    def create_role(self, role_name: str, trust_policy: dict[str, Any], tags: dict[str, str]) -> Role:
        """Create a role.

        Tags are sent with the CreateRole call itself so a role never exists
        without its ownership tag. An already existing role is reported as a
        plain failure; the next attempt will find it with get_role.
        """
        try:
            response = self._call(
                "create_role",
                RoleName=role_name,
                AssumeRolePolicyDocument=json.dumps(trust_policy),
                Tags=[{"Key": key, "Value": value} for key, value in tags.items()],
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to create role {role_name}: {e}")
            raise IAMError(OTHER_ERROR_CODE, str(e)) from e

        logger.info(f"Created role {role_name}")
        return Role.from_response(response["Role"])

    def delete_role(self, role_name: str) -> None:
        """Delete a role.

        Attached managed policies are detached and inline policies deleted
        first, since IAM refuses to delete a role that still has them.
        """
        try:
            paginator = self.client.get_paginator("list_attached_role_policies")
            for page in paginator.paginate(RoleName=role_name):
                for policy in page.get("AttachedPolicies", []):
                    self._call(
                        "detach_role_policy",
                        RoleName=role_name,
                        PolicyArn=policy["PolicyArn"],
                    )
                    logger.info(f"Detached policy {policy['PolicyArn']} from role {role_name}")

            paginator = self.client.get_paginator("list_role_policies")
            for page in paginator.paginate(RoleName=role_name):
                for policy_name in page.get("PolicyNames", []):
                    self._call("delete_role_policy", RoleName=role_name, PolicyName=policy_name)
                    logger.info(f"Deleted inline policy {policy_name} from role {role_name}")

            self._call("delete_role", RoleName=role_name)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete role {role_name}: {e}")
            raise IAMError(OTHER_ERROR_CODE, str(e)) from e

        logger.info(f"Deleted role {role_name}")
