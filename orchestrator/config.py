"""Configuration management for the workflow orchestrator.

Every setting can be supplied as an ``ORCHESTRATOR_<FIELD_NAME>`` environment
variable, e.g. ``ORCHESTRATOR_EXECUTION_TIMEOUT=10``. ``load_config`` reads a
``.env`` file into the environment first.
"""

import os
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .core.exceptions import ConfigurationError

ENV_PREFIX = "ORCHESTRATOR_"

_TRUE_VALUES = ("true", "1", "yes", "on")
_SUPPORTED_DATABASES = ("sqlite", "postgresql", "mysql")


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EmailBackend(str, Enum):
    """Where alert emails go."""
    MOCK = "mock"
    RESEND = "resend"


class AppConfig(BaseModel):
    """Settings for the API server, the executor and its integrations."""

    app_name: str = Field(default="Workflow Orchestrator", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    # HTTP server
    host: str = Field(default="0.0.0.0", description="Address to bind")
    port: int = Field(default=8080, description="Port to bind")
    reload: bool = Field(default=False, description="Reload on code changes")
    cors_origins: List[str] = Field(default=["*"], description="Allowed CORS origins; empty disables CORS")
    cors_methods: List[str] = Field(default=["GET", "POST"], description="Allowed CORS methods")

    # Storage
    database_url: str = Field(default="sqlite:///./orchestrator.db", description="SQLAlchemy database URL")
    database_echo: bool = Field(default=False, description="Log every SQL statement")
    seed_sample_workflow: bool = Field(default=True, description="Insert the sample weather workflow on startup")

    # Execution
    execution_timeout: int = Field(default=30, description="Deadline for one workflow execution in seconds")
    strict_branching: bool = Field(
        default=False,
        description="Fail condition nodes that have no edge labeled with their result"
    )

    # Integrations
    weather_api_base_url: str = Field(default="https://api.open-meteo.com", description="Open-Meteo base URL")
    weather_http_timeout: float = Field(default=10.0, description="Weather and flood HTTP timeout in seconds")
    flood_api_url: str = Field(
        default="https://flood-api.open-meteo.com/v1/flood",
        description="Open-Meteo flood API endpoint"
    )
    email_backend: EmailBackend = Field(default=EmailBackend.MOCK, description="Email delivery backend")
    resend_api_key: Optional[str] = Field(default=None, description="Resend API key")
    email_from: Optional[str] = Field(default=None, description="Sender address for alert emails")

    # Logging
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Root log level")
    log_format: Optional[str] = Field(default=None, description="Format string for plain text logs")
    log_file: Optional[str] = Field(default=None, description="Also log to this file")
    log_max_size: int = Field(default=10 * 1024 * 1024, description="Log file size that triggers rotation")
    log_backup_count: int = Field(default=5, description="Rotated log files to keep")
    log_structured: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v):
        if not v:
            raise ValueError("Database URL cannot be empty")
        scheme = v.split("://")[0].lower().split("+")[0]
        if scheme not in _SUPPORTED_DATABASES:
            raise ValueError(f"Unsupported database scheme: {scheme}. Supported: {list(_SUPPORTED_DATABASES)}")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("execution_timeout", "weather_http_timeout")
    @classmethod
    def validate_positive_timeout(cls, v):
        if v <= 0:
            raise ValueError("Timeouts must be positive")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator("email_backend", mode="before")
    @classmethod
    def normalize_backend(cls, v):
        return v.lower() if isinstance(v, str) else v

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.lower().startswith("sqlite")

    def get_uvicorn_config(self) -> Dict[str, Any]:
        """Keyword arguments for ``uvicorn.run``."""
        return {
            "host": self.host,
            "port": self.port,
            "reload": self.reload,
            "log_level": self.log_level.value.lower(),
            "access_log": self.debug
        }

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Build configuration from ``ORCHESTRATOR_*`` environment variables.

        Booleans accept true/1/yes/on; lists are comma separated. Unset
        variables keep the field default.

        Raises:
            pydantic.ValidationError: If a value fails validation
        """
        values: Dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            if field.annotation is bool:
                values[name] = raw.strip().lower() in _TRUE_VALUES
            elif field.annotation == List[str]:
                values[name] = [item.strip() for item in raw.split(",") if item.strip()]
            else:
                values[name] = raw
        return cls(**values)

    def to_env(self) -> Dict[str, str]:
        """Inverse of ``from_env``: ``ORCHESTRATOR_*`` variables for every set field."""
        env: Dict[str, str] = {}
        for name, value in self.model_dump(mode="json").items():
            if value is None:
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            elif isinstance(value, list):
                value = ",".join(value)
            env[f"{ENV_PREFIX}{name.upper()}"] = str(value)
        return env


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration, loading it from the environment once."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def load_config(config_file: Optional[str] = None) -> AppConfig:
    """
    Load configuration from a .env file and the environment.

    Variables already set in the environment take precedence over the file.

    Args:
        config_file: Path of the .env file; ``./.env`` is used when omitted

    Returns:
        AppConfig: The new global configuration
    """
    global _config

    env_file = config_file or ".env"
    if os.path.exists(env_file):
        from dotenv import load_dotenv
        load_dotenv(env_file)

    _config = AppConfig.from_env()
    return _config


def reset_config():
    """Forget the global configuration (mainly for testing)."""
    global _config
    _config = None


def _ensure_parent_dir(path: str, errors: List[str], what: str) -> None:
    directory = os.path.dirname(path)
    if not directory or os.path.exists(directory):
        return
    try:
        os.makedirs(directory, exist_ok=True)
    except OSError as e:
        errors.append(f"Cannot create {what} directory {directory}: {e}")


def validate_config(config: AppConfig) -> None:
    """
    Check settings that depend on each other or on the filesystem.

    Raises:
        ConfigurationError: Listing every problem found
    """
    errors: List[str] = []

    if config.is_sqlite:
        db_path = config.database_url.split(":///", 1)[-1]
        if db_path and db_path != ":memory:":
            _ensure_parent_dir(db_path, errors, "database")

    if config.log_file:
        _ensure_parent_dir(config.log_file, errors, "log")

    if config.email_backend == EmailBackend.RESEND:
        if not config.resend_api_key:
            errors.append(f"Resend email backend requires {ENV_PREFIX}RESEND_API_KEY")
        if not config.email_from:
            errors.append(f"Resend email backend requires {ENV_PREFIX}EMAIL_FROM")

    if errors:
        raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")


def get_testing_config() -> AppConfig:
    """Configuration for tests: in-memory database, no CORS, quiet logs."""
    return AppConfig(
        debug=True,
        database_url="sqlite:///:memory:",
        log_level=LogLevel.WARNING,
        execution_timeout=10,
        seed_sample_workflow=True,
        cors_origins=[]
    )
