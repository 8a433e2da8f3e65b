"""
Constants Module

Centralized constants for the System RBAC reconciler. The literal values here
are a contract with the cluster: anything that looks these objects up by
convention depends on them matching exactly.
"""

from enum import Enum


class RoleRefKind(str, Enum):
    """Kinds accepted by the API server in a binding's roleRef"""
    CLUSTER_ROLE = "ClusterRole"
    ROLE = "Role"

    def __str__(self) -> str:
        """Return the kind value for use in roleRef"""
        return self.value


class SubjectKind(str, Enum):
    """Kinds accepted by the API server for binding subjects"""
    SERVICE_ACCOUNT = "ServiceAccount"
    USER = "User"
    GROUP = "Group"

    def __str__(self) -> str:
        """Return the kind value for use in subjects"""
        return self.value


class KubernetesConstants:
    """Kubernetes-related constants"""

    # Well-known names shared by the managed ServiceAccount, ClusterRole and ClusterRoleBinding
    SYSTEM_RESOURCE_NAME = "grafana-system"
    DEFAULT_NAMESPACE = "default"

    # Ownership label; the value doubles as the server-side apply field manager
    MANAGED_BY_LABEL = "managed-by"
    MANAGED_BY_VALUE = "grafana-o11y-apiserver"

    ADMIN_GROUP = "system:masters"

    # API groups and versions
    CORE_API_GROUP = ""  # Core API group (empty string)
    RBAC_API_GROUP = "rbac.authorization.k8s.io"
    CORE_API_VERSION = "v1"
    RBAC_API_VERSION = "rbac.authorization.k8s.io/v1"

    SERVICE_ACCOUNT_KIND = "ServiceAccount"
    CLUSTER_ROLE_KIND = "ClusterRole"
    CLUSTER_ROLE_BINDING_KIND = "ClusterRoleBinding"

    # HTTP status returned by the API server for a missing object
    NOT_FOUND_STATUS = 404


class ApplyConstants:
    """Server-side apply protocol constants"""

    APPLY_PATCH_CONTENT_TYPE = "application/apply-patch+yaml"
    APPLY_OPERATION = "Apply"
    FIELDS_V1_TYPE = "FieldsV1"

    # Path element prefixes used in managedFields.fieldsV1
    FIELD_PREFIX = "f:"
    KEY_PREFIX = "k:"
    VALUE_PREFIX = "v:"
    INDEX_PREFIX = "i:"
    SELF_MARKER = "."


class FileConstants:
    """File and environment related constants"""

    DEFAULT_CONFIG_FILE = "system-rbac.yaml"
    TOKEN_ENV_VAR = "K8S_TOKEN"


class ErrorMessages:
    """Centralized error message templates"""

    SSL_CERT_VERIFICATION_FAILED = (
        "SSL certificate verification failed. The cluster is using self-signed certificates.\n"
        "To resolve this issue, add the --skip-tls flag to your command.\n"
        "Example: python3 system_rbac_manager.py --skip-tls [other options]"
    )

    SSL_CONNECTION_ERROR = (
        "SSL connection error occurred. If using self-signed certificates, add --skip-tls flag.\n"
        "Original error: {error}"
    )

    NOT_AUTHENTICATED = "Not authenticated - no Kubernetes client available"

    INVALID_NAME = "Invalid Kubernetes {what} format: {value}"
    NAME_TOO_LONG = "{what} too long (max {limit} chars): {value}"
