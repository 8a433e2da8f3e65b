"""
Privilege Definition Provisioner

Ensures the system ClusterRole exists. Its rules are only written at creation
time; an existing ClusterRole is left exactly as found.
"""

import logging
from typing import Optional

from kubernetes import client
from kubernetes.client.rest import ApiException

from ..core.config import SystemRBACConfig
from ..core.constants import KubernetesConstants
from ..core.protocols import RbacApi
from ..core.utils import is_not_found, request_kwargs

logger = logging.getLogger(__name__)


class ClusterRoleProvisioner:
    """Creates the system ClusterRole when it is missing"""

    def __init__(self, rbac_api: RbacApi, rbac_config: SystemRBACConfig,
                 request_timeout: Optional[float] = None):
        self.rbac_api = rbac_api
        self.rbac_config = rbac_config
        self.request_timeout = request_timeout

    def build_cluster_role(self) -> client.V1ClusterRole:
        return client.V1ClusterRole(
            api_version=KubernetesConstants.RBAC_API_VERSION,
            kind=KubernetesConstants.CLUSTER_ROLE_KIND,
            metadata=client.V1ObjectMeta(
                name=self.rbac_config.resource_name,
                labels=self.rbac_config.labels,
            ),
            rules=list(self.rbac_config.rules),
        )

    def ensure(self) -> None:
        """
        Ensure the ClusterRole exists

        Raises:
            ApiException: If the lookup fails for any reason other than 404, or the create fails
        """
        name = self.rbac_config.resource_name

        try:
            self.rbac_api.read_cluster_role(name, **request_kwargs(self.request_timeout))
            logger.debug(f"ClusterRole {name} already exists, rules are not reconciled")
            return
        except ApiException as e:
            if not is_not_found(e):
                logger.error(f"Failed to read ClusterRole {name}: {e.status} {e.reason}")
                raise

        logger.info(f"Creating ClusterRole {name}")
        try:
            self.rbac_api.create_cluster_role(self.build_cluster_role(), **request_kwargs(self.request_timeout))
        except ApiException as e:
            logger.error(f"Failed to create ClusterRole {name}: {e.status} {e.reason}")
            raise
