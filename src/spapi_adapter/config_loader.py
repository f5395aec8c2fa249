"""
ConfigLoader module for loading and validating client configuration from TOML files
"""

import os
import platform
import tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Any, Optional

from .errors import ConfigurationError, CredentialsError


__version__ = '1.0.0'

VALID_REGIONS = ('eu', 'na', 'fe')

DEFAULT_USER_AGENT = (
    f"spapi-adapter/{__version__} "
    f"(Language=Python/{platform.python_version()}; "
    f"Platform={platform.system()}/{platform.release()})"
)


@dataclass
class ClientOptions:
    """Feature toggles controlling the orchestration behaviour"""
    auto_request_tokens: bool = True
    auto_request_throttled: bool = True
    version_fallback: bool = True
    use_sandbox: bool = False
    only_grantless_operations: bool = False
    debug_log: bool = False
    retry_remote_timeout: bool = True
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class RetrySettings:
    """Retry bounds; max_attempts of None keeps retrying until the remote recovers"""
    max_attempts: Optional[int] = None
    expiry_backoff: float = 0.0
    max_delay: Optional[float] = None
    transport_retries: int = 3
    transport_backoff_factor: float = 2.0


@dataclass
class ClientConfig:
    """Configuration data class for the Selling Partner client"""
    region: str
    refresh_token: Optional[str] = None
    access_token: Optional[str] = None
    endpoints_versions: Dict[str, str] = field(default_factory=dict)
    options: ClientOptions = field(default_factory=ClientOptions)
    timeouts: Dict[str, int] = field(default_factory=dict)
    retries: RetrySettings = field(default_factory=RetrySettings)
    authentication: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> 'ClientConfig':
        """
        Validate region and refresh token requirements

        Returns:
            The validated config, for chaining

        Raises:
            ConfigurationError: If the region is invalid or the refresh token is missing
        """
        if not self.region or self.region not in VALID_REGIONS:
            raise ConfigurationError(
                'NO_VALID_REGION_PROVIDED',
                'Please provide one of: "eu", "na" or "fe"'
            )
        if not self.refresh_token and not self.options.only_grantless_operations:
            raise ConfigurationError(
                'NO_REFRESH_TOKEN_PROVIDED',
                'Please provide a refresh token or set "only_grantless_operations" option to true'
            )
        return self


class ConfigLoader:
    """Loads and validates TOML configuration files"""

    # Required configuration sections and their mandatory keys
    REQUIRED_SECTIONS = {
        'client': ['region']
    }

    @staticmethod
    def load_toml_config(config_path: Path) -> ClientConfig:
        """
        Load client configuration from TOML file

        Args:
            config_path: Path to the TOML configuration file

        Returns:
            Validated ClientConfig object

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If required configuration is missing or TOML is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'rb') as f:
                config_data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError('INVALID_TOML', f"Invalid TOML syntax in {config_path}: {e}")

        return ConfigLoader.build_config(config_data)

    @staticmethod
    def build_config(config_data: Dict[str, Any]) -> ClientConfig:
        """
        Build a ClientConfig from already parsed configuration data

        Args:
            config_data: Parsed TOML configuration data

        Returns:
            Validated ClientConfig object
        """
        ConfigLoader._validate_required_sections(config_data)

        client = config_data['client']
        authentication = config_data.get('authentication', {})

        # Refresh token may be given inline or through an environment variable
        refresh_token = client.get('refresh_token')
        if not refresh_token and authentication.get('refresh_token_env'):
            refresh_token = os.getenv(authentication['refresh_token_env'])

        try:
            options = ClientOptions(**config_data.get('options', {}))
            retries = RetrySettings(**config_data.get('retries', {}))
        except TypeError as e:
            raise ConfigurationError('INVALID_CONFIGURATION', f"Unknown configuration key: {e}")

        return ClientConfig(
            region=client['region'],
            refresh_token=refresh_token,
            access_token=client.get('access_token'),
            endpoints_versions=dict(config_data.get('endpoints_versions', {})),
            options=options,
            timeouts=dict(config_data.get('timeouts', {})),
            retries=retries,
            authentication=authentication
        ).validate()

    @staticmethod
    def _validate_required_sections(config_data: Dict[str, Any]) -> None:
        """
        Validate that all required configuration sections and keys are present

        Args:
            config_data: Parsed TOML configuration data

        Raises:
            ConfigurationError: If any required section or key is missing
        """
        missing_items = []

        for section_name, required_keys in ConfigLoader.REQUIRED_SECTIONS.items():
            if section_name not in config_data:
                missing_items.append(f"Section [{section_name}]")
            else:
                section_data = config_data[section_name]
                for key in required_keys:
                    if key not in section_data:
                        missing_items.append(f"Key '{key}' in section [{section_name}]")

        if missing_items:
            raise ConfigurationError(
                'MISSING_CONFIGURATION',
                f"Missing required configuration items: {', '.join(missing_items)}"
            )

    @staticmethod
    def get_environment_value(env_var_name: str) -> str:
        """
        Get environment variable value with proper error handling

        Args:
            env_var_name: Name of the environment variable

        Returns:
            Value of the environment variable

        Raises:
            CredentialsError: If environment variable is not set
        """
        value = os.getenv(env_var_name)
        if value is None:
            raise CredentialsError(
                'MISSING_ENVIRONMENT_VARIABLE',
                f"Environment variable '{env_var_name}' is not set"
            )
        return value
