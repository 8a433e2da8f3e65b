"""
Authentication Module

Builds the Kubernetes API clients the reconciler runs against, from an explicit
URL and token, a kubeconfig, or the in-cluster service account.
"""

import logging
from typing import Optional, Tuple

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from .exceptions import AuthenticationError, ConfigurationError
from .constants import ErrorMessages
from .utils import validate_api_url, handle_ssl_error, mask_sensitive_info, disable_ssl_warnings

logger = logging.getLogger(__name__)


class ClusterAuth:
    """Handles Kubernetes authentication and context discovery"""

    def __init__(self, skip_tls: bool = False):
        """
        Initialize authentication handler

        Args:
            skip_tls: Whether to skip TLS verification for requests
        """
        self.skip_tls = skip_tls
        self.api_url = None
        self.k8s_client = None
        self.core_api = None
        self.rbac_api = None

    def configure_auth(self, api_url: str = None, token: str = None) -> bool:
        """
        Configure authentication with provided URL and token, or discover from context

        Args:
            api_url: Kubernetes API server URL (optional)
            token: Bearer token (optional)

        Returns:
            bool: True if authentication was configured successfully

        Raises:
            AuthenticationError: If authentication configuration fails
            ConfigurationError: If provided parameters are invalid
        """
        if api_url and token:
            validate_api_url(api_url)
            logger.info("Using provided API URL and token for authentication")
            self.api_url = api_url
            return self._configure_client_with_token(token)

        if api_url or token:
            raise ConfigurationError("API URL and token must be provided together")

        return self._discover_from_context()

    def _configure_client_with_token(self, token: str) -> bool:
        """
        Configure Kubernetes client using URL and token

        Raises:
            AuthenticationError: If client configuration fails
        """
        try:
            configuration = client.Configuration()
            configuration.host = self.api_url
            configuration.api_key = {"authorization": token}
            configuration.api_key_prefix = {"authorization": "Bearer"}

            if self.skip_tls:
                configuration.verify_ssl = False
                configuration.ssl_ca_cert = None
                disable_ssl_warnings()

            self._initialize_clients(client.ApiClient(configuration))
        except Exception as e:
            handle_ssl_error(e, AuthenticationError)

        masked_url = mask_sensitive_info(self.api_url, self.api_url)
        logger.info(f"Successfully configured Kubernetes client for {masked_url}")
        return True

    def _discover_from_context(self) -> bool:
        """
        Discover authentication from kubeconfig, falling back to in-cluster config

        Raises:
            AuthenticationError: If neither source is usable
        """
        try:
            config.load_kube_config()
            logger.info("Successfully loaded kubeconfig")
        except (ConfigException, OSError) as kubeconfig_error:
            logger.warning(f"Failed to load kubeconfig: {kubeconfig_error}")
            try:
                config.load_incluster_config()
                logger.info("Successfully loaded in-cluster config")
            except ConfigException as incluster_error:
                raise AuthenticationError(
                    f"No usable kubeconfig or in-cluster config: {incluster_error}"
                ) from incluster_error

        api_client = client.ApiClient()
        self.api_url = api_client.configuration.host

        if self.skip_tls:
            api_client.configuration.verify_ssl = False
            api_client.configuration.ssl_ca_cert = None
            disable_ssl_warnings()

        self._initialize_clients(api_client)
        logger.info("Successfully discovered authentication from context")
        return True

    def _initialize_clients(self, api_client: client.ApiClient) -> None:
        self.k8s_client = api_client
        self.core_api = client.CoreV1Api(api_client)
        self.rbac_api = client.RbacAuthorizationV1Api(api_client)

    def is_authenticated(self) -> bool:
        """
        Check if authentication is properly configured

        Returns:
            bool: True if authenticated
        """
        return self.k8s_client is not None

    def test_connection(self) -> bool:
        """
        Test the connection to the cluster

        Returns:
            bool: True if connection is successful

        Raises:
            AuthenticationError: If connection test fails
        """
        if not self.is_authenticated():
            raise AuthenticationError(ErrorMessages.NOT_AUTHENTICATED)

        try:
            self.rbac_api.get_api_resources()
        except ApiException as e:
            raise AuthenticationError(f"Failed to connect to cluster: {e}") from e
        except Exception as e:
            handle_ssl_error(e, AuthenticationError)

        logger.info("Successfully tested connection to cluster")
        return True

    def get_kubernetes_clients(self) -> Tuple[Optional[client.ApiClient], Optional[client.CoreV1Api],
                                              Optional[client.RbacAuthorizationV1Api]]:
        """
        Get initialized Kubernetes API clients

        Returns:
            Tuple of (k8s_client, core_api, rbac_api)
        """
        return self.k8s_client, self.core_api, self.rbac_api
