"""
Core Libraries

Shared configuration, authentication and utilities for the System RBAC reconciler.
"""

from .auth import ClusterAuth
from .config import ConfigManager, SystemRBACConfig
from .constants import RoleRefKind, SubjectKind
from .exceptions import SystemRBACError, AuthenticationError, ConfigurationError, ExtractionError
from .utils import setup_logging, disable_ssl_warnings, is_not_found

__all__ = [
    'ClusterAuth',
    'ConfigManager',
    'SystemRBACConfig',
    'RoleRefKind',
    'SubjectKind',
    'SystemRBACError',
    'AuthenticationError',
    'ConfigurationError',
    'ExtractionError',
    'setup_logging',
    'disable_ssl_warnings',
    'is_not_found'
]
