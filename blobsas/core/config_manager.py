"""
Configuration management for BlobSAS.

Handles loading, validation, and access to the storage account and SAS
issuance settings.
"""

import os
import json
import logging
from pathlib import Path
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

from blobsas.auth.credential import Credential, parse_connection_string
from blobsas.sas.policy_store import MAX_STORED_POLICIES
from blobsas.sas.signer import DEFAULT_SAS_VERSION

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AccountConfig(BaseModel):
    """Storage account configuration."""
    name: Optional[str] = None
    key: Optional[str] = Field(default=None, description="Base64-encoded account key")
    connection_string: Optional[str] = Field(
        default=None,
        description="Storage connection string; takes precedence over name/key"
    )
    protocol: str = "https"
    endpoint_suffix: str = "core.windows.net"

    @field_validator("protocol")
    @classmethod
    def validate_protocol(cls, v: str) -> str:
        if v not in ("http", "https"):
            raise ValueError("Protocol must be http or https")
        return v


class SasConfig(BaseModel):
    """SAS issuance configuration."""
    version: str = DEFAULT_SAS_VERSION
    max_stored_policies: int = Field(default=MAX_STORED_POLICIES, ge=0)
    clock_skew_minutes: int = Field(
        default=5,
        ge=0,
        description="Suggested back-dating of start times derived from the current time"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: str = "json"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'blobsas.sas.issuer': 'DEBUG'}"
    )


class BlobSasConfig(BaseModel):
    """Main BlobSAS configuration schema."""

    account: AccountConfig = Field(default_factory=AccountConfig)

    sas: SasConfig = Field(default_factory=SasConfig)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(use_enum_values=True)

    def build_credential(self) -> Credential:
        """
        Build the signing credential.

        Raises:
            InvalidCredentialError: If the account settings are missing or malformed
        """
        if self.account.connection_string:
            return Credential.from_connection_string(self.account.connection_string)
        return Credential.from_base64_key(self.account.name or "", self.account.key or "")

    def account_name(self) -> Optional[str]:
        if self.account.connection_string:
            return parse_connection_string(self.account.connection_string).get("AccountName")
        return self.account.name

    def endpoint_settings(self) -> Tuple[str, str, Optional[str]]:
        """
        Protocol, endpoint suffix and explicit blob endpoint for resolved URIs.

        Values present in the connection string win over the account fields.
        """
        protocol = self.account.protocol
        endpoint_suffix = self.account.endpoint_suffix
        blob_endpoint = None
        if self.account.connection_string:
            settings = parse_connection_string(self.account.connection_string)
            protocol = settings.get("DefaultEndpointsProtocol") or protocol
            endpoint_suffix = settings.get("EndpointSuffix") or endpoint_suffix
            blob_endpoint = settings.get("BlobEndpoint") or None
        return protocol, endpoint_suffix, blob_endpoint

    def clock_skew(self) -> timedelta:
        return timedelta(minutes=self.sas.clock_skew_minutes)


class ConfigManager:
    """
    Manages BlobSAS configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. Explicit overrides
    2. Environment variables (BLOBSAS_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[BlobSasConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> BlobSasConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            overrides: Dictionary of explicit overrides

        Returns:
            Validated BlobSasConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.info("Loading BlobSAS configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable overrides")

        if overrides:
            config_dict = self._merge_configs(config_dict, overrides)
            logger.info(f"Applied {len(overrides)} explicit overrides")

        try:
            self._config = BlobSasConfig(**config_dict)
            logger.info("Configuration validated successfully")
            self._log_configuration()
            return self._config
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        if account_name := os.getenv("BLOBSAS_ACCOUNT_NAME"):
            config.setdefault("account", {})["name"] = account_name
        if account_key := os.getenv("BLOBSAS_ACCOUNT_KEY"):
            config.setdefault("account", {})["key"] = account_key
        if connection_string := os.getenv("BLOBSAS_CONNECTION_STRING"):
            config.setdefault("account", {})["connection_string"] = connection_string

        if version := os.getenv("BLOBSAS_SAS_VERSION"):
            config.setdefault("sas", {})["version"] = version

        if log_level := os.getenv("BLOBSAS_LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_file := os.getenv("BLOBSAS_LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _log_configuration(self) -> None:
        """Log the loaded configuration with account secrets redacted."""
        if not self._config:
            return

        config_dict = self._config.model_dump()

        for secret in ("key", "connection_string"):
            if config_dict["account"].get(secret):
                config_dict["account"][secret] = "***REDACTED***"

        logger.info(f"Active configuration: {json.dumps(config_dict, indent=2)}")

    def get_config(self) -> BlobSasConfig:
        """
        Get the loaded configuration.

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> BlobSasConfig:
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file)
