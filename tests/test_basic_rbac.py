"""
End-to-end reconciliation tests for BasicRBAC against an in-memory cluster.
"""

import pytest
from unittest.mock import Mock
from kubernetes.client.rest import ApiException

from system_rbac.libs.core.config import SystemRBACConfig
from system_rbac.libs.reconciler import BasicRBAC

from conftest import CommonTestConstants, subject_identities

REQUIRED_IDENTITIES = {
    ("ServiceAccount", CommonTestConstants.RESOURCE_NAME, CommonTestConstants.NAMESPACE),
    ("Group", CommonTestConstants.ADMIN_GROUP, ""),
}


class TestBasicRBAC:
    """Full reconciliation of the three system RBAC objects"""

    def test_empty_cluster_converges_in_one_run(self, fake_cluster):
        # Arrange
        rbac = BasicRBAC(fake_cluster.core_api, fake_cluster.rbac_api)

        # Act
        rbac.ensure_all()

        # Assert
        assert fake_cluster.create_calls == 3
        assert fake_cluster.apply_calls == 0
        assert list(fake_cluster.service_accounts) == [(CommonTestConstants.NAMESPACE, CommonTestConstants.RESOURCE_NAME)]
        assert list(fake_cluster.cluster_roles) == [CommonTestConstants.RESOURCE_NAME]
        assert subject_identities(fake_cluster.binding_subjects()) == REQUIRED_IDENTITIES

    def test_second_run_only_applies_the_binding(self, fake_cluster):
        # Arrange
        rbac = BasicRBAC(fake_cluster.core_api, fake_cluster.rbac_api)
        rbac.ensure_all()

        # Act
        rbac.ensure_all()

        # Assert
        assert fake_cluster.create_calls == 3
        assert fake_cluster.apply_calls == 1
        assert subject_identities(fake_cluster.binding_subjects()) == REQUIRED_IDENTITIES

    def test_binding_can_be_ensured_before_its_dependencies(self, fake_cluster):
        """No ordering is required between the three entry points"""
        # Arrange
        rbac = BasicRBAC(fake_cluster.core_api, fake_cluster.rbac_api)

        # Act
        rbac.ensure_binding()
        rbac.ensure_privilege_definition()
        rbac.ensure_principal()

        # Assert
        assert fake_cluster.create_calls == 3
        assert subject_identities(fake_cluster.binding_subjects()) == REQUIRED_IDENTITIES

    def test_shared_config_names_every_object(self, fake_cluster):
        # Arrange
        rbac_config = SystemRBACConfig(resource_name="metrics-system", namespace="monitoring")
        rbac = BasicRBAC(fake_cluster.core_api, fake_cluster.rbac_api, rbac_config)

        # Act
        rbac.ensure_all()

        # Assert
        assert ("monitoring", "metrics-system") in fake_cluster.service_accounts
        assert "metrics-system" in fake_cluster.cluster_roles
        binding = fake_cluster.cluster_role_bindings["metrics-system"]
        assert binding.role_ref.name == "metrics-system"
        assert ("ServiceAccount", "metrics-system", "monitoring") in subject_identities(binding.subjects)

    def test_ensure_all_stops_at_first_error(self):
        # Arrange
        error = ApiException(status=403, reason="Forbidden")
        core_api = Mock()
        core_api.read_namespaced_service_account.side_effect = error
        rbac_api = Mock()
        rbac = BasicRBAC(core_api, rbac_api)

        # Act & Assert
        with pytest.raises(ApiException) as exc_info:
            rbac.ensure_all()

        assert exc_info.value is error
        assert rbac_api.method_calls == []

    def test_default_config_is_used_when_none_given(self):
        rbac = BasicRBAC(Mock(), Mock())

        assert rbac.rbac_config == SystemRBACConfig()
        assert rbac.rbac_config.field_manager == CommonTestConstants.FIELD_MANAGER
