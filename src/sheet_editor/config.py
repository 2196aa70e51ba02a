"""Configuration management for the sheet editor.

This module provides centralized configuration using pydantic-settings.
All configuration options can be set via environment variables with the
SHEET_EDITOR_ prefix, or via a .env file in the project root.

Environment Variables:
    SHEET_EDITOR_MAX_FILE_SIZE_MB: Maximum upload size in MB (default: 10)
    SHEET_EDITOR_ALLOWED_EXTENSIONS: Comma-separated upload extensions
        (default: .xlsx,.xlsm)
    SHEET_EDITOR_DEFAULT_EXPORT_FILENAME: Export name used when the upload
        had none (default: spreadsheet-export.xlsx)
    SHEET_EDITOR_WORKBOOK_TTL_MINUTES: Idle time before an uploaded workbook
        is dropped, 0 keeps it forever (default: 60)
    SHEET_EDITOR_CLEANUP_INTERVAL_SECONDS: Expired workbook sweep interval
        (default: 300)
    SHEET_EDITOR_API_BASE_URL: Base URL used by the remote client
        (default: http://localhost:8000)
    SHEET_EDITOR_REQUEST_TIMEOUT_SECONDS: Remote client timeout (default: 30)
    SHEET_EDITOR_LOG_LEVEL: Logging level (default: INFO)
    SHEET_EDITOR_DEBUG: Enable debug mode (default: false)
    SHEET_EDITOR_CORS_ORIGINS: Comma-separated CORS origins (default: *)
    SHEET_EDITOR_SERVER_HOST: Server bind host (default: 0.0.0.0)
    SHEET_EDITOR_SERVER_PORT: Server bind port (default: 8000)
"""

import logging
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Example .env file:
        SHEET_EDITOR_LOG_LEVEL=DEBUG
        SHEET_EDITOR_WORKBOOK_TTL_MINUTES=15
    """

    model_config = SettingsConfigDict(
        env_prefix="SHEET_EDITOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Upload Settings
    # =========================================================================

    max_file_size_mb: int = 10
    """Maximum file upload size in megabytes."""

    allowed_extensions: str = ".xlsx,.xlsm"
    """Comma-separated list of accepted workbook extensions."""

    default_export_filename: str = "spreadsheet-export.xlsx"
    """Filename used for exports when no upload filename is known."""

    # =========================================================================
    # Workbook Store Settings
    # =========================================================================

    workbook_ttl_minutes: int = 60
    """Idle minutes before an uploaded workbook expires. 0 disables expiry."""

    cleanup_interval_seconds: int = 300
    """Seconds between background sweeps of expired workbooks."""

    # =========================================================================
    # Remote Client Settings
    # =========================================================================

    api_base_url: str = "http://localhost:8000"
    """Base URL of the sheet editor API for the remote client."""

    request_timeout_seconds: float = 30.0
    """Timeout for remote client requests."""

    # =========================================================================
    # Logging Settings
    # =========================================================================

    log_level: str = "INFO"
    """Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL."""

    debug: bool = False
    """Enable debug mode with additional error details."""

    # =========================================================================
    # Server Settings
    # =========================================================================

    cors_origins: str = "*"
    """Comma-separated list of allowed CORS origins, or * for all."""

    server_host: str = "0.0.0.0"
    """Host address for the server to bind to."""

    server_port: int = 8000
    """Port for the server to listen on."""

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return upper_v

    @field_validator("max_file_size_mb")
    @classmethod
    def validate_file_size(cls, v: int) -> int:
        """Validate file size is positive and reasonable."""
        if not 1 <= v <= 500:
            raise ValueError(f"max_file_size_mb must be between 1 and 500, got {v}")
        return v

    @field_validator("allowed_extensions")
    @classmethod
    def validate_extensions(cls, v: str) -> str:
        """Normalize extensions to lower case with a leading dot."""
        extensions = []
        for item in v.split(","):
            ext = item.strip().lower()
            if not ext:
                continue
            extensions.append(ext if ext.startswith(".") else f".{ext}")
        if not extensions:
            raise ValueError("allowed_extensions must list at least one extension")
        return ",".join(extensions)

    @field_validator("workbook_ttl_minutes")
    @classmethod
    def validate_workbook_ttl(cls, v: int) -> int:
        """Validate workbook TTL is not negative."""
        if v < 0:
            raise ValueError(f"workbook_ttl_minutes must be at least 0, got {v}")
        return v

    @field_validator("cleanup_interval_seconds")
    @classmethod
    def validate_cleanup_interval(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"cleanup_interval_seconds must be at least 1, got {v}")
        return v

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"request_timeout_seconds must be positive, got {v}")
        return v

    @field_validator("server_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"server_port must be between 1 and 65535, got {v}")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def workbook_ttl_seconds(self) -> int:
        """Get workbook TTL in seconds."""
        return self.workbook_ttl_minutes * 60

    @property
    def allowed_extensions_list(self) -> list[str]:
        """Get allowed extensions as a list."""
        return self.allowed_extensions.split(",")

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def log_level_int(self) -> int:
        """Get log level as integer for logging module."""
        level: int = getattr(logging, self.log_level)
        return level

    def to_safe_dict(self) -> dict[str, Any]:
        """Convert settings to a dictionary suitable for logging."""
        return {
            "max_file_size_mb": self.max_file_size_mb,
            "allowed_extensions": self.allowed_extensions,
            "default_export_filename": self.default_export_filename,
            "workbook_ttl_minutes": self.workbook_ttl_minutes,
            "cleanup_interval_seconds": self.cleanup_interval_seconds,
            "api_base_url": self.api_base_url,
            "request_timeout_seconds": self.request_timeout_seconds,
            "log_level": self.log_level,
            "debug": self.debug,
            "cors_origins": self.cors_origins,
            "server_host": self.server_host,
            "server_port": self.server_port,
        }


def validate_settings_on_startup(s: Settings) -> None:
    """Validate settings on application startup.

    Logs warnings for settings that are acceptable in development but
    questionable in production.

    Args:
        s: Settings instance to validate.
    """
    logger = logging.getLogger(__name__)

    if s.cors_origins == "*" and not s.debug:
        logger.warning(
            "CORS is configured to allow all origins (*). "
            "Consider restricting this in production."
        )

    if s.workbook_ttl_minutes == 0:
        logger.warning(
            "Workbook expiry is disabled. Uploaded workbooks stay in memory "
            "until explicitly closed."
        )

    logger.info(
        f"Configuration loaded: log_level={s.log_level}, debug={s.debug}, "
        f"max_file_size_mb={s.max_file_size_mb}, "
        f"workbook_ttl_minutes={s.workbook_ttl_minutes}"
    )
    logger.debug(f"Effective settings: {s.to_safe_dict()}")


# Create the global settings instance
settings = Settings()
