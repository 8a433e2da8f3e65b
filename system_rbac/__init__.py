"""
System RBAC

Reconciler for the Kubernetes RBAC objects a system component needs to run
with cluster-admin-equivalent privilege: a ServiceAccount, a ClusterRole and a
ClusterRoleBinding sharing one well-known name.
"""

__version__ = "1.0.0"

from .libs import BasicRBAC, SystemRBACConfig, SystemRBACManager, ConfigManager, ClusterAuth, main

__all__ = [
    'BasicRBAC',
    'SystemRBACConfig',
    'SystemRBACManager',
    'ConfigManager',
    'ClusterAuth',
    'main'
]
