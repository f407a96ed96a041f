"""Builder for IAM role store instances."""

from __future__ import annotations

import logging

import boto3
import botocore.session
from botocore.credentials import AssumeRoleWithWebIdentityProvider, CredentialResolver
from botocore.exceptions import BotoCoreError, ClientError

from ..config import ControllerConfig
from ..services.aws.client import IAMRoleStore
from ..utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Name of the in-memory profile holding the web identity settings
WEB_IDENTITY_PROFILE = "controller"


def resolve_controller_role_arn(role: str, account_id: str) -> str:
    """Return the controller role ARN, composing it from a bare role name if needed."""
    if role.startswith("arn:"):
        return role
    return f"arn:aws:iam::{account_id}:role/{role}"


def get_account_id(session: boto3.session.Session) -> str:
    """Look up the AWS account of a session with STS.

    Raises:
        ConfigurationError: If the caller identity cannot be determined
    """
    try:
        identity = session.client("sts").get_caller_identity()
    except (ClientError, BotoCoreError) as e:
        raise ConfigurationError(f"Unable to get account identifier from AWS STS: {e}") from e
    return identity["Account"]


def create_web_identity_session(
    region: str,
    role_arn: str,
    token_path: str,
    session_name: str,
) -> boto3.session.Session:
    """Create a boto3 session that assumes a role with a web identity token.

    The session's credential chain is replaced by botocore's web identity
    provider, fed from an in-memory profile instead of environment variables.
    Credentials are fetched on first use and refreshed from the token file
    shortly before they expire.
    """
    botocore_session = botocore.session.get_session()
    botocore_session.set_config_variable("region", region)

    profile = {
        "role_arn": role_arn,
        "web_identity_token_file": token_path,
        "role_session_name": session_name,
    }
    provider = AssumeRoleWithWebIdentityProvider(
        load_config=lambda: {"profiles": {WEB_IDENTITY_PROFILE: profile}},
        client_creator=botocore_session.create_client,
        profile_name=WEB_IDENTITY_PROFILE,
        disable_env_vars=True,
    )
    botocore_session.register_component("credential_provider", CredentialResolver([provider]))
    return boto3.session.Session(botocore_session=botocore_session, region_name=region)


def create_session_from_config(config: ControllerConfig) -> boto3.session.Session:
    """Create the boto3 session the controller uses for IAM.

    Args:
        config: Controller configuration

    Returns:
        Session using web identity credentials when a token path is
        configured, the default credential chain otherwise
    """
    default_session = boto3.session.Session(region_name=config.region)
    if not config.uses_web_identity:
        logger.info("Using default AWS credential chain")
        return default_session

    role = config.controller_role_arn
    if not role.startswith("arn:"):
        role = resolve_controller_role_arn(role, get_account_id(default_session))

    logger.info(f"Using web identity credentials for role {role}")
    return create_web_identity_session(
        region=config.region,
        role_arn=role,
        token_path=config.token_path,
        session_name=config.controller_name,
    )


def create_role_store_from_config(config: ControllerConfig) -> tuple[IAMRoleStore, str]:
    """Create an IAM role store and discover the account it manages.

    Args:
        config: Controller configuration

    Returns:
        Tuple of the role store and the AWS account id

    Raises:
        ConfigurationError: If the AWS account cannot be determined
    """
    session = create_session_from_config(config)
    account_id = get_account_id(session)
    return IAMRoleStore(session.client("iam")), account_id
