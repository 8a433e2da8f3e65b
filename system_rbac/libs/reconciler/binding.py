"""
Binding Reconciler

Ensures the system ClusterRoleBinding exists and binds both the system
ServiceAccount and the bootstrap admin group to the system ClusterRole.

An existing binding is converged with server-side apply on every run:
extract what this field manager owns, merge the required subjects in, and
apply with force. The ClusterRoleBinding ``subjects`` list is atomic on the
API server, so an applied list replaces the whole list; subjects added by
other actors are therefore carried over from the observed object.
"""

import logging
from typing import Any, Dict, List, Optional

from kubernetes import client
from kubernetes.client.rest import ApiException

from ..core.config import SystemRBACConfig
from ..core.constants import ApplyConstants, KubernetesConstants, SubjectKind
from ..core.exceptions import ExtractionError
from ..core.protocols import RbacApi
from ..core.utils import is_not_found, request_kwargs
from .apply_config import extract_cluster_role_binding, merge_subjects, to_dict

logger = logging.getLogger(__name__)


def required_subjects(rbac_config: SystemRBACConfig) -> List[Dict[str, str]]:
    """Subjects every reconciled binding must contain."""
    return [
        {
            'kind': SubjectKind.SERVICE_ACCOUNT.value,
            'apiGroup': KubernetesConstants.CORE_API_GROUP,
            'name': rbac_config.resource_name,
            'namespace': rbac_config.namespace,
        },
        {
            'kind': SubjectKind.GROUP.value,
            'apiGroup': KubernetesConstants.RBAC_API_GROUP,
            'name': rbac_config.admin_group,
        },
    ]


class ClusterRoleBindingReconciler:
    """Creates or converges the system ClusterRoleBinding"""

    def __init__(self, rbac_api: RbacApi, rbac_config: SystemRBACConfig,
                 request_timeout: Optional[float] = None):
        """
        Args:
            rbac_api: RbacAuthorizationV1Api (or compatible) client
            rbac_config: Shared names and labels
            request_timeout: Optional per-request timeout passed to the client
        """
        self.rbac_api = rbac_api
        self.rbac_config = rbac_config
        self.request_timeout = request_timeout

    def build_cluster_role_binding(self) -> client.V1ClusterRoleBinding:
        subjects = [
            client.RbacV1Subject(
                kind=subject['kind'],
                api_group=subject['apiGroup'],
                name=subject['name'],
                namespace=subject.get('namespace'),
            )
            for subject in required_subjects(self.rbac_config)
        ]
        return client.V1ClusterRoleBinding(
            api_version=KubernetesConstants.RBAC_API_VERSION,
            kind=KubernetesConstants.CLUSTER_ROLE_BINDING_KIND,
            metadata=client.V1ObjectMeta(
                name=self.rbac_config.resource_name,
                labels=self.rbac_config.labels,
            ),
            role_ref=client.V1RoleRef(
                api_group=KubernetesConstants.RBAC_API_GROUP,
                kind=self.rbac_config.role_ref_kind.value,
                name=self.rbac_config.resource_name,
            ),
            subjects=subjects,
        )

    def build_apply_configuration(self, existing: Any) -> Dict[str, Any]:
        """
        Extract this manager's configuration from ``existing`` and merge the required subjects into it

        Raises:
            ExtractionError: If ``existing`` is malformed
        """
        apply_config = extract_cluster_role_binding(existing, self.rbac_config.field_manager)
        observed = to_dict(existing)
        apply_config['subjects'] = merge_subjects(
            apply_config.get('subjects'),
            observed.get('subjects'),
            required_subjects(self.rbac_config),
        )
        return apply_config

    def ensure(self) -> None:
        """
        Ensure the ClusterRoleBinding exists and contains the required subjects

        Raises:
            ApiException: If the lookup fails for any reason other than 404, or the create/apply fails
            ExtractionError: If the observed binding cannot be extracted
        """
        name = self.rbac_config.resource_name

        try:
            existing = self.rbac_api.read_cluster_role_binding(name, **request_kwargs(self.request_timeout))
        except ApiException as e:
            if not is_not_found(e):
                logger.error(f"Failed to read ClusterRoleBinding {name}: {e.status} {e.reason}")
                raise
            existing = None

        if existing is None:
            self._create(name)
        else:
            self._apply(name, existing)

    def _create(self, name: str) -> None:
        logger.info(f"Creating ClusterRoleBinding {name}")
        try:
            self.rbac_api.create_cluster_role_binding(
                self.build_cluster_role_binding(),
                field_manager=self.rbac_config.field_manager,
                **request_kwargs(self.request_timeout)
            )
        except ApiException as e:
            logger.error(f"Failed to create ClusterRoleBinding {name}: {e.status} {e.reason}")
            raise

    def _apply(self, name: str, existing: Any) -> None:
        try:
            apply_config = self.build_apply_configuration(existing)
        except ExtractionError as e:
            logger.error(f"Failed to extract ClusterRoleBinding {name}: {e}")
            raise

        logger.debug(f"Applying ClusterRoleBinding {name} with {len(apply_config['subjects'])} subjects")
        try:
            self.rbac_api.patch_cluster_role_binding(
                name,
                apply_config,
                field_manager=self.rbac_config.field_manager,
                force=True,
                _content_type=ApplyConstants.APPLY_PATCH_CONTENT_TYPE,
                **request_kwargs(self.request_timeout)
            )
        except ApiException as e:
            logger.error(f"Failed to apply ClusterRoleBinding {name}: {e.status} {e.reason}")
            raise
