"""
Configuration Management

Holds the well-known names shared by the three managed RBAC objects and loads
optional overrides from a YAML configuration file.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .exceptions import ConfigurationError
from .constants import KubernetesConstants, FileConstants, RoleRefKind
from .utils import validate_namespace, validate_resource_name

logger = logging.getLogger(__name__)

# ${VAR} left behind by os.path.expandvars when VAR is unset
_UNRESOLVED_REFERENCE_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass(frozen=True)
class SystemRBACConfig:
    """
    Names and labels that tie the ServiceAccount, ClusterRole and
    ClusterRoleBinding together.

    One instance is shared by every provisioner so the three objects can never
    disagree on a name. ``rules`` is only used when the ClusterRole is first
    created.
    """
    resource_name: str = KubernetesConstants.SYSTEM_RESOURCE_NAME
    namespace: str = KubernetesConstants.DEFAULT_NAMESPACE
    managed_by_label_key: str = KubernetesConstants.MANAGED_BY_LABEL
    managed_by_label_value: str = KubernetesConstants.MANAGED_BY_VALUE
    admin_group: str = KubernetesConstants.ADMIN_GROUP
    role_ref_kind: RoleRefKind = RoleRefKind.CLUSTER_ROLE
    rules: Tuple[Any, ...] = field(default_factory=tuple)

    def __post_init__(self):
        validate_resource_name(self.resource_name)
        validate_namespace(self.namespace)

        if not self.managed_by_label_key or not self.managed_by_label_value:
            raise ConfigurationError("Managed-by label key and value cannot be empty")
        if not self.admin_group:
            raise ConfigurationError("Admin group cannot be empty")
        if not isinstance(self.role_ref_kind, RoleRefKind):
            raise ConfigurationError(f"role_ref_kind must be a RoleRefKind, got: {self.role_ref_kind!r}")

    @property
    def field_manager(self) -> str:
        """Server-side apply field manager identity"""
        return self.managed_by_label_value

    @property
    def labels(self) -> Dict[str, str]:
        return {self.managed_by_label_key: self.managed_by_label_value}


class ConfigManager:
    """Manages configuration loading and validation"""

    # Configuration schema - defines expected structure and types
    CONFIG_SCHEMA = {
        'rbac': {
            'type': dict,
            'required': False,
            'fields': {
                'resource_name': {'type': str, 'required': False},
                'namespace': {'type': str, 'required': False},
                'managed_by_label_key': {'type': str, 'required': False},
                'managed_by_label_value': {'type': str, 'required': False},
                'admin_group': {'type': str, 'required': False},
                'role_ref_kind': {'type': str, 'required': False, 'choices': [k.value for k in RoleRefKind]},
            }
        },
        'cluster': {
            'type': dict,
            'required': False,
            'fields': {
                'api_url': {'type': str, 'required': False},
                'token': {'type': str, 'required': False},
                'skip_tls': {'type': bool, 'required': False},
                'request_timeout': {'type': (int, float), 'required': False},
            }
        },
        'global': {
            'type': dict,
            'required': False,
            'fields': {
                'debug': {'type': bool, 'required': False},
            }
        },
    }

    def __init__(self):
        """Initialize configuration manager"""
        self.config_data: Dict[str, Any] = {}
        self.config_file_path: Optional[str] = None

    def load_config(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file

        ``${VAR}`` references are expanded from the environment before parsing;
        a reference to an unset variable is an error.

        Args:
            config_path: Path to configuration file

        Returns:
            Dict containing configuration data

        Raises:
            ConfigurationError: If configuration file cannot be loaded or is invalid
        """
        config_file = Path(config_path).expanduser()

        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        if not config_file.is_file():
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config_content = os.path.expandvars(f.read())
            self.config_data = yaml.safe_load(config_content) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file {config_path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration from {config_path}: {e}") from e

        self.config_file_path = str(config_file)
        self._validate_config()
        self._check_unresolved_references(self.config_data, "config")
        logger.info(f"Successfully loaded configuration from {config_path}")

        return self.config_data

    def _validate_config(self) -> None:
        """
        Validate configuration structure and values

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not isinstance(self.config_data, dict):
            raise ConfigurationError("Configuration must be a dictionary")

        self._validate_against_schema(self.config_data, self.CONFIG_SCHEMA, "config")

    def _check_unresolved_references(self, data: Any, path: str) -> None:
        """
        Reject ${VAR} references whose variable was not set in the environment

        Raises:
            ConfigurationError: Naming the first unresolved variable and where it is used
        """
        if isinstance(data, dict):
            for key, value in data.items():
                self._check_unresolved_references(value, f"{path}.{key}")
        elif isinstance(data, list):
            for index, value in enumerate(data):
                self._check_unresolved_references(value, f"{path}[{index}]")
        elif isinstance(data, str):
            match = _UNRESOLVED_REFERENCE_PATTERN.search(data)
            if match:
                raise ConfigurationError(
                    f"{path} references environment variable {match.group(1)}, which is not set"
                )

    def _validate_against_schema(self, data: Dict[str, Any], schema: Dict[str, Any], path: str = "") -> None:
        """
        Validate data against schema definition

        Args:
            data: Data to validate
            schema: Schema definition
            path: Current path for error reporting

        Raises:
            ConfigurationError: If data doesn't match schema
        """
        for key, field_schema in schema.items():
            current_path = f"{path}.{key}" if path else key

            if key in data:
                value = data[key]

                # Skip None values for optional fields
                if value is None and not field_schema.get('required', False):
                    continue

                expected_type = field_schema['type']
                # bool is an int subclass; never accept it for numeric fields
                if not isinstance(value, expected_type) or (isinstance(value, bool) and expected_type is not bool):
                    if isinstance(expected_type, tuple):
                        type_name = " or ".join(t.__name__ for t in expected_type)
                    else:
                        type_name = expected_type.__name__
                    raise ConfigurationError(f"{current_path} must be a {type_name}")

                if 'choices' in field_schema and value not in field_schema['choices']:
                    choices_str = ', '.join(f"'{c}'" for c in field_schema['choices'])
                    raise ConfigurationError(f"{current_path} must be one of: {choices_str}")

                if expected_type == dict and 'fields' in field_schema:
                    self._validate_against_schema(value, field_schema['fields'], current_path)

            elif field_schema.get('required', False):
                raise ConfigurationError(f"Required field {current_path} is missing")

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get specific configuration section

        Args:
            section: Section name (e.g., 'rbac', 'cluster')

        Returns:
            Dict containing section data, empty dict if section doesn't exist
        """
        return self.config_data.get(section) or {}

    def get_value(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key

        Args:
            key: Configuration key (supports dot notation like 'cluster.api_url')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config_data
        try:
            for k in key.split('.'):
                value = value[k]
        except (KeyError, TypeError):
            return default
        return default if value is None else value

    def build_rbac_config(self) -> SystemRBACConfig:
        """
        Build the shared RBAC value object from the 'rbac' section

        Missing values fall back to the well-known defaults.

        Raises:
            ConfigurationError: If a value is invalid
        """
        overrides = {key: value for key, value in self.get_section('rbac').items() if value is not None}
        if 'role_ref_kind' in overrides:
            overrides['role_ref_kind'] = RoleRefKind(overrides['role_ref_kind'])
        return SystemRBACConfig(**overrides)

    def get_config_template_content(self) -> str:
        """
        Generate configuration template content as string without file I/O

        Returns:
            str: YAML configuration template content
        """
        return f"""# System RBAC Configuration File
# Every value is optional; the values shown are the defaults.

# Names shared by the managed ServiceAccount, ClusterRole and ClusterRoleBinding
rbac:
  resource_name: "{KubernetesConstants.SYSTEM_RESOURCE_NAME}"
  namespace: "{KubernetesConstants.DEFAULT_NAMESPACE}"
  managed_by_label_key: "{KubernetesConstants.MANAGED_BY_LABEL}"
  managed_by_label_value: "{KubernetesConstants.MANAGED_BY_VALUE}"
  admin_group: "{KubernetesConstants.ADMIN_GROUP}"

# Cluster connection; kubeconfig or in-cluster config is used when api_url is empty
cluster:
  api_url: ""
  # token: ${{{FileConstants.TOKEN_ENV_VAR}}}   # Environment variable expansion supported
  skip_tls: false
  # request_timeout: 30

global:
  debug: false
"""

    def generate_config_template(self, output_dir: str = None) -> str:
        """
        Generate configuration template file

        Args:
            output_dir: Directory to save template (optional)

        Returns:
            str: Path to generated template file

        Raises:
            ConfigurationError: If template generation fails
        """
        if output_dir:
            output_path = Path(output_dir)
            config_file = output_path / FileConstants.DEFAULT_CONFIG_FILE
        else:
            output_path = None
            config_file = Path(FileConstants.DEFAULT_CONFIG_FILE)

        try:
            if output_path is not None:
                output_path.mkdir(parents=True, exist_ok=True)
            with open(config_file, 'w', encoding='utf-8') as f:
                f.write(self.get_config_template_content())
        except OSError as e:
            raise ConfigurationError(f"Failed to generate configuration template: {e}") from e

        logger.info(f"Configuration template generated: {config_file}")
        return str(config_file)
