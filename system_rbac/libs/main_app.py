"""
Main Application

Bootstrap for the System RBAC reconciler: loads configuration, builds
authenticated clients and runs the reconciliation entry points.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from kubernetes.client.rest import ApiException

from .core import ClusterAuth, ConfigManager, SystemRBACConfig, setup_logging, disable_ssl_warnings
from .core.utils import mask_sensitive_info
from .core.constants import FileConstants
from .core.exceptions import SystemRBACError, AuthenticationError
from .core.protocols import AuthProvider
from .reconciler import BasicRBAC

logger = logging.getLogger(__name__)

# Reconciliation steps selectable with --only, in the order ensure_all runs them
STEPS = ('principal', 'privilege', 'binding')


class SystemRBACManager:
    """Main application orchestrator for the System RBAC reconciler"""

    def __init__(
        self,
        auth_provider: Optional[AuthProvider] = None,
        config_provider: Optional[ConfigManager] = None,
        skip_tls: bool = False,
        debug: bool = False
    ):
        """
        Initialize the manager with dependency injection

        Args:
            auth_provider: Authentication provider (defaults to ClusterAuth)
            config_provider: Configuration provider (defaults to ConfigManager)
            skip_tls: Whether to skip TLS verification
            debug: Enable debug logging
        """
        self.skip_tls = skip_tls
        self.debug = debug

        setup_logging(debug)

        if skip_tls:
            disable_ssl_warnings()

        self.auth = auth_provider or ClusterAuth(skip_tls=skip_tls)
        self.config_manager = config_provider or ConfigManager()
        self.rbac: Optional[BasicRBAC] = None

    def configure_authentication(self, rbac_config: SystemRBACConfig, api_url: str = None, token: str = None,
                                 request_timeout: Optional[float] = None) -> None:
        """
        Configure authentication and build the reconciler on top of the authenticated clients

        Raises:
            AuthenticationError: If no client could be configured or the cluster is unreachable
            ConfigurationError: If the URL or token are invalid
        """
        if not self.auth.configure_auth(api_url, token):
            raise AuthenticationError("Failed to configure authentication")
        self.auth.test_connection()

        _, core_api, rbac_api = self.auth.get_kubernetes_clients()
        self.rbac = BasicRBAC(core_api, rbac_api, rbac_config, request_timeout=request_timeout)
        logger.debug("Successfully configured authentication and reconciler")

    def reconcile(self, only: Optional[str] = None) -> None:
        """
        Run one reconciliation step, or all of them

        Args:
            only: One of STEPS, or None for all

        Raises:
            AuthenticationError: If authentication has not been configured
            ApiException: Propagated unchanged from the cluster
            ExtractionError: If the observed binding is malformed
        """
        if self.rbac is None:
            raise AuthenticationError("Authentication not configured. Configure authentication first.")

        if only is None:
            self.rbac.ensure_all()
        elif only == 'principal':
            self.rbac.ensure_principal()
        elif only == 'privilege':
            self.rbac.ensure_privilege_definition()
        elif only == 'binding':
            self.rbac.ensure_binding()
        else:
            raise ValueError(f"Unknown reconciliation step: {only}")


def create_system_rbac_manager(skip_tls: bool = False, debug: bool = False,
                               config_provider: Optional[ConfigManager] = None) -> SystemRBACManager:
    """
    Factory function to create SystemRBACManager with default dependencies

    Args:
        skip_tls: Whether to skip TLS verification
        debug: Enable debug logging
        config_provider: Already loaded configuration (optional)

    Returns:
        SystemRBACManager: Configured instance
    """
    return SystemRBACManager(config_provider=config_provider, skip_tls=skip_tls, debug=debug)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser"""
    parser = argparse.ArgumentParser(
        description='System RBAC - Converge the system ServiceAccount, ClusterRole and ClusterRoleBinding',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  # Reconcile using the current kubeconfig context (or in-cluster config)
  %(prog)s

  # Reconcile against an explicit API server
  %(prog)s --api-url https://api.cluster.example.com:6443 --token $TOKEN --skip-tls

  # Only converge the ClusterRoleBinding
  %(prog)s --only binding

  # Write a configuration template to ./config/{FileConstants.DEFAULT_CONFIG_FILE}
  %(prog)s --generate-config ./config
        """
    )
    parser.add_argument('--config', help='Path to configuration file')
    parser.add_argument('--generate-config', nargs='?', const='.', metavar='DIR',
                        help='Write a configuration template to DIR (default: current directory) and exit')
    parser.add_argument('--api-url', help='Kubernetes API server URL')
    parser.add_argument('--token', help=f'Bearer token (or set {FileConstants.TOKEN_ENV_VAR} env var)')
    parser.add_argument('--skip-tls', action='store_true', help='Skip TLS verification for insecure requests')
    parser.add_argument('--only', choices=STEPS, help='Run a single reconciliation step')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    return parser


def merge_config_with_args(args: argparse.Namespace, config_manager: ConfigManager) -> None:
    """
    Fill in arguments not given on the command line from the environment and the configuration file

    Command-line values win, then the environment, then the file. A token
    from the environment or the file is only picked up together with an API
    URL; without one, kubeconfig or in-cluster discovery is used.
    """
    if not args.api_url:
        args.api_url = config_manager.get_value('cluster.api_url') or None
    if not args.token and args.api_url:
        args.token = os.environ.get(FileConstants.TOKEN_ENV_VAR) or config_manager.get_value('cluster.token') or None
    args.skip_tls = args.skip_tls or config_manager.get_value('cluster.skip_tls', False)
    args.debug = args.debug or config_manager.get_value('global.debug', False)
    args.request_timeout = config_manager.get_value('cluster.request_timeout')


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    config_manager = ConfigManager()

    try:
        if args.generate_config:
            path = config_manager.generate_config_template(args.generate_config)
            print(f"Sample configuration file created: {path}")
            return 0

        if args.config:
            config_manager.load_config(args.config)
        merge_config_with_args(args, config_manager)
        rbac_config = config_manager.build_rbac_config()
    except SystemRBACError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    manager = create_system_rbac_manager(skip_tls=args.skip_tls, debug=args.debug, config_provider=config_manager)

    try:
        manager.configure_authentication(rbac_config, args.api_url, args.token, args.request_timeout)
        manager.reconcile(args.only)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    except ApiException as e:
        logger.error(f"Kubernetes API error: {e.status} {e.reason}")
        return 1
    except SystemRBACError as e:
        logger.error(mask_sensitive_info(f"Error: {e}", args.api_url, args.token))
        return 1

    return 0
