"""
Principal Provisioner

Ensures the system ServiceAccount exists in the well-known namespace. The
account is created once and never updated afterwards.
"""

import logging
from typing import Optional

from kubernetes import client
from kubernetes.client.rest import ApiException

from ..core.config import SystemRBACConfig
from ..core.constants import KubernetesConstants
from ..core.protocols import ServiceAccountApi
from ..core.utils import is_not_found, request_kwargs

logger = logging.getLogger(__name__)


class ServiceAccountProvisioner:
    """Creates the system ServiceAccount when it is missing"""

    def __init__(self, core_api: ServiceAccountApi, rbac_config: SystemRBACConfig,
                 request_timeout: Optional[float] = None):
        """
        Args:
            core_api: CoreV1Api (or compatible) client
            rbac_config: Shared names and labels
            request_timeout: Optional per-request timeout passed to the client
        """
        self.core_api = core_api
        self.rbac_config = rbac_config
        self.request_timeout = request_timeout

    def build_service_account(self) -> client.V1ServiceAccount:
        return client.V1ServiceAccount(
            api_version=KubernetesConstants.CORE_API_VERSION,
            kind=KubernetesConstants.SERVICE_ACCOUNT_KIND,
            metadata=client.V1ObjectMeta(
                name=self.rbac_config.resource_name,
                namespace=self.rbac_config.namespace,
                labels=self.rbac_config.labels,
            ),
        )

    def ensure(self) -> None:
        """
        Ensure the ServiceAccount exists

        Raises:
            ApiException: If the lookup fails for any reason other than 404, or the create fails
        """
        name = self.rbac_config.resource_name
        namespace = self.rbac_config.namespace

        try:
            self.core_api.read_namespaced_service_account(name, namespace, **request_kwargs(self.request_timeout))
            logger.debug(f"ServiceAccount {namespace}/{name} already exists")
            return
        except ApiException as e:
            if not is_not_found(e):
                logger.error(f"Failed to read ServiceAccount {namespace}/{name}: {e.status} {e.reason}")
                raise

        logger.info(f"Creating ServiceAccount {namespace}/{name}")
        try:
            self.core_api.create_namespaced_service_account(
                namespace,
                self.build_service_account(),
                field_manager=self.rbac_config.field_manager,
                **request_kwargs(self.request_timeout)
            )
        except ApiException as e:
            logger.error(f"Failed to create ServiceAccount {namespace}/{name}: {e.status} {e.reason}")
            raise
