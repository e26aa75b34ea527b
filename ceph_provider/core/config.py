"""Provider configuration using pydantic-settings."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ceph_provider.ceph.errors import CephConfigurationError


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="info", description="Default logging level")
    file_path: Union[str, None] = Field(None, description="Log file path")
    max_bytes: int = Field(default=10485760, description="Max log file size (10MB)")
    backup_count: int = Field(default=5, description="Number of backup log files")
    audit_enabled: bool = Field(default=True, description="Log every controller operation to the audit logger")
    audit_file: Union[str, None] = Field(None, description="Audit log file path")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["debug", "info", "warning", "error", "critical"]
        if v.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return v.lower()


class ProviderSettings(BaseSettings):
    """Ceph provider settings."""

    model_config = SettingsConfigDict(
        env_prefix="CEPH_PROVIDER_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    endpoint: Union[str, None] = Field(None, description="Ceph Manager API endpoint (e.g., https://mgr:8443)")
    endpoints: List[str] = Field(default_factory=list, description="Ordered list of candidate endpoints")
    username: Union[str, None] = Field(None, description="Ceph Dashboard username")
    password: Union[SecretStr, None] = Field(None, description="Ceph Dashboard password")
    token: Union[SecretStr, None] = Field(None, description="Pre-issued Ceph Dashboard API token")
    timeout: int = Field(default=10, ge=1, description="Per-request timeout in seconds")
    verify_tls: bool = Field(default=True, description="Verify the endpoint TLS certificate")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load_from_yaml(cls, config_path: Union[str, Path]) -> "ProviderSettings":
        """Load settings from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            ProviderSettings instance with values from YAML and environment

        Raises:
            yaml.YAMLError: If YAML parsing fails
        """
        config_path = Path(config_path)

        if not config_path.exists():
            logging.warning(f"Config file not found: {config_path}, using defaults")
            return cls()

        try:
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}
            return cls(**config_data)
        except yaml.YAMLError as e:
            logging.error(f"Failed to parse YAML config: {e}")
            raise

    def validate_provider(self) -> List[str]:
        """Check endpoint and credential rules.

        Returns:
            Ordered list of candidate endpoints

        Raises:
            CephConfigurationError: If the configuration is incomplete or contradictory
        """
        if self.endpoint is not None and self.endpoints:
            raise CephConfigurationError(
                "Only one of endpoint or endpoints may be configured",
                attribute="endpoints",
            )

        if self.endpoint is not None:
            candidates = [self.endpoint]
            attribute = "endpoint"
        elif self.endpoints:
            candidates = list(self.endpoints)
            attribute = "endpoints"
        else:
            raise CephConfigurationError("A provider endpoint must be configured", attribute="endpoint")

        for candidate in candidates:
            if not candidate.strip():
                raise CephConfigurationError("Endpoint cannot be empty", attribute=attribute)
            if candidate.rstrip("/").endswith("/api"):
                raise CephConfigurationError(
                    f"Endpoint SHOULD NOT end with '/api', got: {candidate}",
                    attribute=attribute,
                )

        has_token = self.token is not None and bool(self.token.get_secret_value())
        has_password = bool(self.username) and self.password is not None and bool(self.password.get_secret_value())

        if not has_token and not has_password:
            raise CephConfigurationError("Either token or both username and password must be configured")
        if has_token and (self.username or self.password is not None):
            raise CephConfigurationError("Only one of token or username/password may be configured")

        return candidates

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary with secrets masked."""
        return self.model_dump(mode="json")


_settings: Union[ProviderSettings, None] = None


def get_settings() -> ProviderSettings:
    """Get provider settings singleton.

    Returns:
        ProviderSettings instance
    """
    global _settings

    if _settings is None:
        config_file = Path("ceph-provider.yaml")
        if config_file.exists():
            _settings = ProviderSettings.load_from_yaml(config_file)
        else:
            _settings = ProviderSettings()

    return _settings


def reload_settings(config_path: Union[str, Path, None] = None) -> ProviderSettings:
    """Reload settings from configuration file.

    Args:
        config_path: Path to configuration file (optional)

    Returns:
        Reloaded ProviderSettings instance
    """
    global _settings

    if config_path:
        _settings = ProviderSettings.load_from_yaml(config_path)
    else:
        _settings = None
        _settings = get_settings()

    return _settings
