"""
Tests for the ServiceAccount provisioner.
"""

import pytest
from unittest.mock import Mock
from kubernetes import client
from kubernetes.client.rest import ApiException

from system_rbac.libs.reconciler.principal import ServiceAccountProvisioner

from conftest import CommonTestConstants, not_found


class TestServiceAccountProvisioner:
    """Create-if-absent behaviour of the system ServiceAccount"""

    def test_creates_missing_service_account(self, rbac_config):
        """A 404 on lookup leads to exactly one labelled create"""
        # Arrange
        core_api = Mock()
        core_api.read_namespaced_service_account.side_effect = not_found()
        provisioner = ServiceAccountProvisioner(core_api, rbac_config)

        # Act
        provisioner.ensure()

        # Assert
        core_api.read_namespaced_service_account.assert_called_once_with(
            CommonTestConstants.RESOURCE_NAME, CommonTestConstants.NAMESPACE
        )
        core_api.create_namespaced_service_account.assert_called_once()
        args, kwargs = core_api.create_namespaced_service_account.call_args
        namespace, body = args
        assert namespace == CommonTestConstants.NAMESPACE
        assert kwargs == {'field_manager': CommonTestConstants.FIELD_MANAGER}
        assert isinstance(body, client.V1ServiceAccount)
        assert body.metadata.name == CommonTestConstants.RESOURCE_NAME
        assert body.metadata.namespace == CommonTestConstants.NAMESPACE
        assert body.metadata.labels == {"managed-by": CommonTestConstants.FIELD_MANAGER}

    def test_existing_service_account_is_left_alone(self, rbac_config):
        """A successful lookup makes no write calls"""
        # Arrange
        core_api = Mock()
        core_api.read_namespaced_service_account.return_value = client.V1ServiceAccount(
            metadata=client.V1ObjectMeta(name=CommonTestConstants.RESOURCE_NAME)
        )

        # Act
        ServiceAccountProvisioner(core_api, rbac_config).ensure()

        # Assert
        core_api.create_namespaced_service_account.assert_not_called()

    def test_lookup_failure_other_than_not_found_propagates(self, rbac_config):
        """A forbidden lookup is not mistaken for absence"""
        # Arrange
        error = ApiException(status=403, reason="Forbidden")
        core_api = Mock()
        core_api.read_namespaced_service_account.side_effect = error

        # Act & Assert
        with pytest.raises(ApiException) as exc_info:
            ServiceAccountProvisioner(core_api, rbac_config).ensure()

        assert exc_info.value is error
        core_api.create_namespaced_service_account.assert_not_called()

    def test_create_failure_propagates_unchanged(self, rbac_config):
        """A create conflict is surfaced verbatim"""
        # Arrange
        error = ApiException(status=409, reason="Conflict")
        core_api = Mock()
        core_api.read_namespaced_service_account.side_effect = not_found()
        core_api.create_namespaced_service_account.side_effect = error

        # Act & Assert
        with pytest.raises(ApiException) as exc_info:
            ServiceAccountProvisioner(core_api, rbac_config).ensure()

        assert exc_info.value is error

    def test_request_timeout_is_passed_through(self, rbac_config):
        # Arrange
        core_api = Mock()
        core_api.read_namespaced_service_account.side_effect = not_found()

        # Act
        ServiceAccountProvisioner(core_api, rbac_config, request_timeout=5).ensure()

        # Assert
        _, read_kwargs = core_api.read_namespaced_service_account.call_args
        _, create_kwargs = core_api.create_namespaced_service_account.call_args
        assert read_kwargs == {'_request_timeout': 5}
        assert create_kwargs['_request_timeout'] == 5

    def test_idempotent_against_stateful_cluster(self, rbac_config, fake_cluster):
        """Two runs against an empty cluster create the account once"""
        provisioner = ServiceAccountProvisioner(fake_cluster.core_api, rbac_config)

        provisioner.ensure()
        first = dict(fake_cluster.service_accounts)
        provisioner.ensure()

        assert fake_cluster.core_api.create_namespaced_service_account.call_count == 1
        assert fake_cluster.service_accounts == first
