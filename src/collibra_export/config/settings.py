"""
Secure configuration management for the Collibra export pipeline.

Usage:
    from collibra_export.config.settings import Config
    config = Config()
    client = config.create_client()

Environment Variables:
    COLLIBRA_URL: Base URL of the Collibra instance (https://acme.collibra.com)
    COLLIBRA_USERNAME: Username for basic authentication
    COLLIBRA_PASSWORD: Password for basic authentication
    COLLIBRA_API_URL: REST API root (defaults to {COLLIBRA_URL}/rest/2.0)
    COLLIBRA_VERIFY_SSL: Verify TLS certificates (true|false)
    COLLIBRA_TIMEOUT: Request timeout in seconds
    COLLIBRA_PAGE_SIZE: Page size for paginated listings
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from dotenv import load_dotenv

if TYPE_CHECKING:
    from ..pipeline.source import CatalogClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000
DEFAULT_TIMEOUT = 60


@dataclass
class CollibraCredentials:
    """Collibra instance and basic-auth credential configuration."""
    base_url: str
    username: str
    password: str

    def __post_init__(self):
        """Validate credential format."""
        if not self.base_url.startswith(('http://', 'https://')):
            raise ValueError("Collibra URL must include protocol (https://)")

        if not self.username:
            raise ValueError("Username cannot be empty")

        if not self.password:
            raise ValueError("Password cannot be empty")

        self.base_url = self.base_url.rstrip('/')


@dataclass
class ApiConfig:
    """REST API transport configuration."""
    api_url: str
    verify_ssl: bool = True
    timeout: int = DEFAULT_TIMEOUT
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        """Validate API configuration."""
        if not self.api_url.startswith(('http://', 'https://')):
            raise ValueError("API URL must include valid protocol")

        if self.timeout < 1:
            raise ValueError("Timeout must be positive")

        if self.page_size < 1:
            raise ValueError("Page size must be positive")

        self.api_url = self.api_url.rstrip('/')


class ConfigurationError(Exception):
    """Raised when configuration is invalid or incomplete."""
    pass


def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).strip().lower() in ("1", "true", "yes", "on")


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got '{raw}'")


class Config:
    """
    Centralized configuration management for the export pipeline.

    Handles credential loading and validation. Export options (which facets
    to include, output format) come from the CLI or a YAML export profile.

    Environment variables loaded (in order of preference):
    1. System environment variables
    2. Explicit environment file passed to constructor, otherwise
       the .env file in the project root

    ENVIRONMENT only selects validation rules (production requires TLS
    verification).

    Example:
        # Development environment
        config = Config(environment="development")

        # Production with explicit env file
        config = Config(env_file=Path("/secure/production.env"))
    """

    def __init__(self,
                 environment: Optional[str] = None,
                 env_file: Optional[Path] = None,
                 validate_on_init: bool = True):
        """
        Initialize configuration with secure credential loading.

        Args:
            environment: Target environment (development|staging|production)
            env_file: Explicit path to environment file
            validate_on_init: Whether to validate all settings on initialization
        """
        self.environment = environment or os.getenv("ENVIRONMENT", "development")
        self.project_root = self._find_project_root()

        self._load_environment_variables(env_file)

        self._load_collibra_config()
        self._load_api_config()

        if validate_on_init:
            self.validate()

    def _find_project_root(self) -> Path:
        """Nearest ancestor holding pyproject.toml or .git, else the working directory."""
        here = Path(__file__).resolve()
        return next(
            (p for p in here.parents if (p / "pyproject.toml").exists() or (p / ".git").exists()),
            Path.cwd(),
        )

    def _load_environment_variables(self, env_file: Optional[Path]) -> None:
        """Load the explicit env file, or the project's .env when none is given."""
        if env_file is not None:
            if not env_file.exists():
                raise ConfigurationError(f"Specified env file not found: {env_file}")
            source = env_file
        else:
            source = self.project_root / ".env"

        self._loaded_env_files = []
        if source.exists():
            # Variables already set in the process environment win
            load_dotenv(source)
            self._loaded_env_files.append(str(source))
            logger.info(f"Loaded configuration from {source}")
        else:
            logger.debug("No .env file found, using process environment only")

        logger.debug(f"Project root: {self.project_root} (environment: {self.environment})")

    def _load_collibra_config(self) -> None:
        """Load and validate Collibra credentials."""
        base_url = os.getenv("COLLIBRA_URL")
        username = os.getenv("COLLIBRA_USERNAME")
        password = os.getenv("COLLIBRA_PASSWORD")

        if not all([base_url, username, password]):
            missing = []
            if not base_url:
                missing.append("COLLIBRA_URL")
            if not username:
                missing.append("COLLIBRA_USERNAME")
            if not password:
                missing.append("COLLIBRA_PASSWORD")

            raise ConfigurationError(
                f"Missing required Collibra credentials: {', '.join(missing)}.\n"
                f"Please set these variables in your .env file:\n"
                f"  COLLIBRA_URL=https://your-instance.collibra.com\n"
                f"  COLLIBRA_USERNAME=your_username\n"
                f"  COLLIBRA_PASSWORD=your_password\n\n"
                f"Current .env file: {self.project_root / '.env'}"
            )

        try:
            self.collibra = CollibraCredentials(
                base_url=base_url,
                username=username,
                password=password
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid Collibra configuration: {e}")

    def _load_api_config(self) -> None:
        """Load REST API transport settings with sensible defaults."""
        api_url = os.getenv("COLLIBRA_API_URL") or f"{self.collibra.base_url}/rest/2.0"

        try:
            self.api = ApiConfig(
                api_url=api_url,
                verify_ssl=_env_bool("COLLIBRA_VERIFY_SSL", "true"),
                timeout=_env_int("COLLIBRA_TIMEOUT", DEFAULT_TIMEOUT),
                page_size=_env_int("COLLIBRA_PAGE_SIZE", DEFAULT_PAGE_SIZE)
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid API configuration: {e}")

    def create_client(self, authenticate: bool = True) -> "CatalogClient":
        """
        Create a catalog client bound to this configuration.

        Args:
            authenticate: Open an authenticated session before returning

        Returns:
            CatalogClient ready for queries

        Raises:
            CatalogAuthError: If the credentials are rejected
        """
        from ..pipeline.source import CatalogClient

        client = CatalogClient(self)
        if authenticate:
            client.authenticate()
        return client

    def validate(self) -> None:
        """
        Configuration validation beyond per-field checks.

        Raises:
            ConfigurationError: If any configuration is invalid
        """
        validation_errors = []

        if not self.api.verify_ssl and self.environment == "production":
            validation_errors.append("COLLIBRA_VERIFY_SSL must be enabled in production")

        if self.api.page_size > 10000:
            validation_errors.append("Page size > 10000 exceeds the REST API maximum")

        if validation_errors:
            raise ConfigurationError(
                "Configuration validation failed:\n" +
                "\n".join(f"  - {error}" for error in validation_errors)
            )

        if not self.api.verify_ssl:
            logger.warning("TLS certificate verification is disabled")

        logger.debug("Configuration validation passed")

    def get_security_summary(self) -> dict[str, Any]:
        """
        Get configuration summary for audit purposes.

        Returns:
            Dictionary with security-relevant configuration info (no secrets)
        """
        return {
            'environment': self.environment,
            'loaded_env_files': self._loaded_env_files,
            'collibra_url': self.collibra.base_url,
            'collibra_username': self.collibra.username,
            'api_url': self.api.api_url,
            'verify_ssl': self.api.verify_ssl,
            'timeout': self.api.timeout,
            'page_size': self.api.page_size,
        }

    def __repr__(self) -> str:
        """Safe string representation without credentials."""
        return (
            f"Config(environment={self.environment}, "
            f"url={self.collibra.base_url}, "
            f"user={self.collibra.username})"
        )
