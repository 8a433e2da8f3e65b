"""
Basic RBAC

Entry points for converging the system ServiceAccount, ClusterRole and
ClusterRoleBinding. Each entry point is independent and idempotent and either
returns None or raises the underlying error unchanged; nothing is retried.
"""

import logging
from typing import Optional

from ..core.config import SystemRBACConfig
from ..core.protocols import RbacApi, ServiceAccountApi
from .binding import ClusterRoleBindingReconciler
from .principal import ServiceAccountProvisioner
from .privilege import ClusterRoleProvisioner

logger = logging.getLogger(__name__)


class BasicRBAC:
    """Keeps the system RBAC objects converged against a single cluster API handle"""

    def __init__(self, core_api: ServiceAccountApi, rbac_api: RbacApi,
                 rbac_config: Optional[SystemRBACConfig] = None,
                 request_timeout: Optional[float] = None):
        """
        Args:
            core_api: CoreV1Api (or compatible) client
            rbac_api: RbacAuthorizationV1Api (or compatible) client
            rbac_config: Shared names and labels (defaults to the well-known values)
            request_timeout: Optional per-request timeout passed to the client
        """
        self.rbac_config = rbac_config or SystemRBACConfig()
        self.principal = ServiceAccountProvisioner(core_api, self.rbac_config, request_timeout)
        self.privilege_definition = ClusterRoleProvisioner(rbac_api, self.rbac_config, request_timeout)
        self.binding = ClusterRoleBindingReconciler(rbac_api, self.rbac_config, request_timeout)

    def ensure_principal(self) -> None:
        """Ensure the system ServiceAccount exists."""
        self.principal.ensure()

    def ensure_privilege_definition(self) -> None:
        """Ensure the system ClusterRole exists; an existing one is never modified."""
        self.privilege_definition.ensure()

    def ensure_binding(self) -> None:
        """Ensure the system ClusterRoleBinding exists and holds the required subjects."""
        self.binding.ensure()

    def ensure_all(self) -> None:
        """Run all three entry points in dependency order, stopping at the first error."""
        self.ensure_principal()
        self.ensure_privilege_definition()
        self.ensure_binding()
        logger.info(f"System RBAC objects '{self.rbac_config.resource_name}' are converged")
