"""
Exceptions Module

Exception hierarchy for the System RBAC reconciler. Kubernetes API failures
(``kubernetes.client.rest.ApiException``) are not wrapped: they propagate to
the caller unchanged so retry decisions stay with the caller.
"""


class SystemRBACError(Exception):
    """Base exception for all System RBAC errors"""


class ConfigurationError(SystemRBACError):
    """Raised when configuration values or files are invalid"""


class AuthenticationError(SystemRBACError):
    """Raised when an authenticated Kubernetes client cannot be built"""


class ExtractionError(SystemRBACError):
    """Raised when an observed object cannot be turned into an apply configuration"""
