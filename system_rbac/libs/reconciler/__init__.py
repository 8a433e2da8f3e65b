"""
Reconciler Libraries

Provisioners for the system ServiceAccount, ClusterRole and ClusterRoleBinding.
"""

from .apply_config import extract_cluster_role_binding, merge_subjects
from .basic_rbac import BasicRBAC
from .binding import ClusterRoleBindingReconciler, required_subjects
from .principal import ServiceAccountProvisioner
from .privilege import ClusterRoleProvisioner

__all__ = [
    'BasicRBAC',
    'ServiceAccountProvisioner',
    'ClusterRoleProvisioner',
    'ClusterRoleBindingReconciler',
    'extract_cluster_role_binding',
    'merge_subjects',
    'required_subjects'
]
