"""
Shared fixtures for the System RBAC test suites.

FakeCluster keeps ServiceAccounts, ClusterRoles and ClusterRoleBindings in
memory behind Mock API handles, so tests can both drive state and assert on
the calls made. Server-side apply replaces the binding's subjects wholesale,
matching the atomic list semantics of the real API server.
"""

import copy

import pytest
from unittest.mock import Mock
from kubernetes.client.rest import ApiException

from system_rbac.libs.core.config import SystemRBACConfig
from system_rbac.libs.reconciler.apply_config import to_dict


class CommonTestConstants:
    """Constants shared across the test suites"""

    RESOURCE_NAME = "grafana-system"
    NAMESPACE = "default"
    FIELD_MANAGER = "grafana-o11y-apiserver"
    ADMIN_GROUP = "system:masters"
    EXTERNAL_GROUP = "external-auditors"
    RBAC_API_GROUP = "rbac.authorization.k8s.io"
    APPLY_CONTENT_TYPE = "application/apply-patch+yaml"


def not_found() -> ApiException:
    return ApiException(status=404, reason="Not Found")


def subject_identities(subjects):
    """Set of (kind, name, namespace) for model or dict subjects."""
    identities = set()
    for subject in subjects or []:
        subject = to_dict(subject)
        identities.add((subject.get('kind'), subject.get('name'), subject.get('namespace') or ''))
    return identities


class FakeCluster:
    """In-memory stand-in for the parts of the API server the reconciler touches"""

    def __init__(self):
        self.service_accounts = {}
        self.cluster_roles = {}
        self.cluster_role_bindings = {}

        self.core_api = Mock(name="core_api")
        self.core_api.read_namespaced_service_account.side_effect = self._read_service_account
        self.core_api.create_namespaced_service_account.side_effect = self._create_service_account

        self.rbac_api = Mock(name="rbac_api")
        self.rbac_api.read_cluster_role.side_effect = self._read_cluster_role
        self.rbac_api.create_cluster_role.side_effect = self._create_cluster_role
        self.rbac_api.read_cluster_role_binding.side_effect = self._read_cluster_role_binding
        self.rbac_api.create_cluster_role_binding.side_effect = self._create_cluster_role_binding
        self.rbac_api.patch_cluster_role_binding.side_effect = self._apply_cluster_role_binding

    @property
    def create_calls(self) -> int:
        return (self.core_api.create_namespaced_service_account.call_count
                + self.rbac_api.create_cluster_role.call_count
                + self.rbac_api.create_cluster_role_binding.call_count)

    @property
    def apply_calls(self) -> int:
        return self.rbac_api.patch_cluster_role_binding.call_count

    def binding_subjects(self, name=CommonTestConstants.RESOURCE_NAME):
        return to_dict(self.cluster_role_bindings[name]).get('subjects')

    def _read_service_account(self, name, namespace, **kwargs):
        try:
            return self.service_accounts[(namespace, name)]
        except KeyError:
            raise not_found()

    def _create_service_account(self, namespace, body, **kwargs):
        key = (namespace, body.metadata.name)
        if key in self.service_accounts:
            raise ApiException(status=409, reason="Conflict")
        self.service_accounts[key] = body
        return body

    def _read_cluster_role(self, name, **kwargs):
        try:
            return self.cluster_roles[name]
        except KeyError:
            raise not_found()

    def _create_cluster_role(self, body, **kwargs):
        if body.metadata.name in self.cluster_roles:
            raise ApiException(status=409, reason="Conflict")
        self.cluster_roles[body.metadata.name] = body
        return body

    def _read_cluster_role_binding(self, name, **kwargs):
        try:
            return self.cluster_role_bindings[name]
        except KeyError:
            raise not_found()

    def _create_cluster_role_binding(self, body, **kwargs):
        if body.metadata.name in self.cluster_role_bindings:
            raise ApiException(status=409, reason="Conflict")
        self.cluster_role_bindings[body.metadata.name] = body
        return body

    def _apply_cluster_role_binding(self, name, body, **kwargs):
        live = copy.deepcopy(to_dict(self.cluster_role_bindings[name]))
        if 'subjects' in body:
            live['subjects'] = copy.deepcopy(body['subjects'])
        self.cluster_role_bindings[name] = live
        return live


@pytest.fixture
def rbac_config():
    return SystemRBACConfig()


@pytest.fixture
def fake_cluster():
    return FakeCluster()
