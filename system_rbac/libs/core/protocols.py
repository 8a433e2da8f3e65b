"""
Protocols Module

Structural interfaces for the collaborators the reconciler consumes. The
kubernetes client's CoreV1Api and RbacAuthorizationV1Api satisfy them, and so
does any test double exposing the same methods.
"""

from typing import Any, Protocol, Tuple


class ServiceAccountApi(Protocol):
    """Subset of CoreV1Api used to manage the system ServiceAccount"""

    def read_namespaced_service_account(self, name: str, namespace: str, **kwargs) -> Any:
        ...

    def create_namespaced_service_account(self, namespace: str, body: Any, **kwargs) -> Any:
        ...


class RbacApi(Protocol):
    """Subset of RbacAuthorizationV1Api used to manage the ClusterRole and ClusterRoleBinding"""

    def read_cluster_role(self, name: str, **kwargs) -> Any:
        ...

    def create_cluster_role(self, body: Any, **kwargs) -> Any:
        ...

    def read_cluster_role_binding(self, name: str, **kwargs) -> Any:
        ...

    def create_cluster_role_binding(self, body: Any, **kwargs) -> Any:
        ...

    def patch_cluster_role_binding(self, name: str, body: Any, **kwargs) -> Any:
        ...


class AuthProvider(Protocol):
    """Builds authenticated Kubernetes API clients"""

    def configure_auth(self, api_url: str = None, token: str = None) -> bool:
        ...

    def test_connection(self) -> bool:
        ...

    def get_kubernetes_clients(self) -> Tuple[Any, ServiceAccountApi, RbacApi]:
        ...
