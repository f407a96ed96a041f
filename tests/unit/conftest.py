"""Shared fixtures for unit tests."""

from __future__ import annotations

import pytest

from fakes import FakeRecorder, FakeRoleStore, make_service_account
from iam_service_account_controller.builders.role import RoleNamer
from iam_service_account_controller.constants import ANNOTATION_ROLE_ARN
from iam_service_account_controller.reconciler import Reconciler
from iam_service_account_controller.utils.cache import ObjectCache

ACCOUNT_ID = "123456789012"
OIDC_PROVIDER = "oidc.eks.eu-west-1.amazonaws.com/id/14758F1AFD44C09B7992073CCF00B43D"
CONTROLLER = "iam-service-account-controller"


@pytest.fixture
def namer() -> RoleNamer:
    return RoleNamer(
        account_id=ACCOUNT_ID,
        oidc_provider=OIDC_PROVIDER,
        controller_name=CONTROLLER,
        cluster_name="cluster",
        prefix="k8s-sa",
    )


@pytest.fixture
def role_store() -> FakeRoleStore:
    return FakeRoleStore(ACCOUNT_ID)


@pytest.fixture
def recorder() -> FakeRecorder:
    return FakeRecorder()


@pytest.fixture
def cache() -> ObjectCache:
    return ObjectCache()


@pytest.fixture
def reconciler(cache, role_store, namer, recorder) -> Reconciler:
    return Reconciler(cache, role_store, namer, recorder)


@pytest.fixture
def bound_service_account(namer):
    """Factory for ServiceAccounts carrying their correct role binding."""

    def _make(name: str = "foo", namespace: str = "bar"):
        return make_service_account(
            name,
            namespace,
            annotations={ANNOTATION_ROLE_ARN: namer.role_arn(name, namespace)},
        )

    return _make
