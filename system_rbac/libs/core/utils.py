"""
Core Utilities

Common utility functions used across the System RBAC reconciler.
"""

import logging
import re
from typing import Any, Dict, Optional, Type
from urllib.parse import urlparse

import urllib3
from kubernetes.client.rest import ApiException

from .exceptions import ConfigurationError, SystemRBACError, AuthenticationError
from .constants import ErrorMessages, KubernetesConstants

# RFC 1123 label (namespaces) and subdomain (cluster-scoped object names)
_DNS_LABEL_PATTERN = re.compile(r'^[a-z0-9]([-a-z0-9]*[a-z0-9])?$')
_DNS_SUBDOMAIN_PATTERN = re.compile(r'^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$')


def setup_logging(debug: bool = False) -> None:
    """
    Set up logging configuration for the application.

    Args:
        debug: Enable debug logging level
    """
    level = logging.DEBUG if debug else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # The kubernetes client logs every request body at debug level
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    if debug:
        logger = logging.getLogger(__name__)
        logger.debug("Debug mode enabled")


def disable_ssl_warnings() -> None:
    """Disable SSL warnings when --skip-tls is used"""
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


def is_not_found(error: Exception) -> bool:
    """Return True only for an API error that reports a missing object."""
    return isinstance(error, ApiException) and error.status == KubernetesConstants.NOT_FOUND_STATUS


def mask_sensitive_info(text: str, url: str = None, token: str = None) -> str:
    """
    Mask sensitive information in text for logging and debug output.

    Args:
        text: Text to mask
        url: URL to mask (optional)
        token: Token to mask (optional)

    Returns:
        Text with sensitive information masked
    """
    if not text:
        return text

    masked_text = text

    if token and token in masked_text:
        # Keep a recognizable prefix such as "sha256~"
        if '~' in token:
            prefix = token.split('~')[0] + '~'
            masked_token = prefix + "***MASKED***"
        else:
            masked_token = "***MASKED***"
        masked_text = masked_text.replace(token, masked_token)

    if url and url in masked_text:
        parsed = urlparse(url)
        if parsed.hostname:
            hostname_parts = parsed.hostname.split('.')
            if len(hostname_parts) >= 3:
                # api.cluster.example.com -> api.****.com
                first_part = hostname_parts[0][:3]
                masked_hostname = f"{first_part}.****.{hostname_parts[-1]}"
            elif len(hostname_parts) == 2:
                masked_hostname = f"****.{hostname_parts[-1]}"
            else:
                masked_hostname = "****"
            masked_text = masked_text.replace(url, f"{parsed.scheme}://{masked_hostname}:***")
        else:
            masked_text = masked_text.replace(url, "https://****:***")

    masked_text = re.sub(r'Bearer [A-Za-z0-9+/=_.-]+', 'Bearer ***MASKED***', masked_text)
    masked_text = re.sub(r'sha256~[A-Za-z0-9_-]+', 'sha256~***MASKED***', masked_text)

    return masked_text


def validate_namespace(namespace: str) -> bool:
    """
    Validate if the provided string is a valid Kubernetes namespace.

    Args:
        namespace: Kubernetes namespace to validate

    Returns:
        bool: True if valid namespace

    Raises:
        ConfigurationError: If namespace is invalid
    """
    if not namespace or not isinstance(namespace, str):
        raise ConfigurationError("Namespace cannot be empty")

    if len(namespace) > 63:
        raise ConfigurationError(ErrorMessages.NAME_TOO_LONG.format(what="Namespace", limit=63, value=namespace))

    if not _DNS_LABEL_PATTERN.match(namespace):
        raise ConfigurationError(ErrorMessages.INVALID_NAME.format(what="namespace", value=namespace))

    return True


def validate_resource_name(name: str) -> bool:
    """
    Validate if the provided string is a valid Kubernetes object name.

    Args:
        name: Object name to validate

    Returns:
        bool: True if valid name

    Raises:
        ConfigurationError: If name is invalid
    """
    if not name or not isinstance(name, str):
        raise ConfigurationError("Resource name cannot be empty")

    if len(name) > 253:
        raise ConfigurationError(ErrorMessages.NAME_TOO_LONG.format(what="Resource name", limit=253, value=name))

    if not _DNS_SUBDOMAIN_PATTERN.match(name):
        raise ConfigurationError(ErrorMessages.INVALID_NAME.format(what="resource name", value=name))

    return True


def validate_api_url(url: str) -> bool:
    """
    Validate if the provided string is a valid Kubernetes API URL.

    Raises:
        ConfigurationError: If URL is invalid
    """
    if not url or not isinstance(url, str):
        raise ConfigurationError("API URL cannot be empty")

    url_pattern = r'^https?:\/\/[a-zA-Z0-9.-]+(?:\:[0-9]+)?(?:\/.*)?$'

    if not re.match(url_pattern, url):
        raise ConfigurationError(f"Invalid API URL format: {url}")

    return True


def handle_ssl_error(error: Exception, exception_class: Type[SystemRBACError] = AuthenticationError) -> None:
    """
    Centralized SSL error handling with user-friendly messages

    Args:
        error: The caught exception
        exception_class: The specific exception class to raise

    Raises:
        SystemRBACError: Appropriate error type with user-friendly message
    """
    error_str = str(error)

    if "certificate verify failed" in error_str or "CERTIFICATE_VERIFY_FAILED" in error_str:
        raise exception_class(ErrorMessages.SSL_CERT_VERIFICATION_FAILED) from error
    elif "SSLError" in error_str or "SSL:" in error_str:
        raise exception_class(ErrorMessages.SSL_CONNECTION_ERROR.format(error=error)) from error
    else:
        raise exception_class(f"Connection error: {error}") from error


def request_kwargs(request_timeout: Optional[float] = None) -> Dict[str, Any]:
    """Keyword arguments passed to every kubernetes client call (empty when no timeout is set)."""
    return {'_request_timeout': request_timeout} if request_timeout else {}
