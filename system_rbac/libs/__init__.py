"""
System RBAC Library

Keeps the system ServiceAccount, ClusterRole and ClusterRoleBinding converged.
"""

__version__ = "1.0.0"

# Core libraries
from .core import ClusterAuth, ConfigManager, SystemRBACConfig
from .core.exceptions import SystemRBACError, AuthenticationError, ConfigurationError, ExtractionError

# Reconciler libraries
from .reconciler import (
    BasicRBAC,
    ServiceAccountProvisioner,
    ClusterRoleProvisioner,
    ClusterRoleBindingReconciler,
    extract_cluster_role_binding
)

# Main application
from .main_app import SystemRBACManager, main

__all__ = [
    # Core
    'ClusterAuth',
    'ConfigManager',
    'SystemRBACConfig',
    'SystemRBACError',
    'AuthenticationError',
    'ConfigurationError',
    'ExtractionError',
    # Reconciler
    'BasicRBAC',
    'ServiceAccountProvisioner',
    'ClusterRoleProvisioner',
    'ClusterRoleBindingReconciler',
    'extract_cluster_role_binding',
    # Main
    'SystemRBACManager',
    'main'
]
