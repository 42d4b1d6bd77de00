"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Optional, List, Union
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
import tempfile
from pathlib import Path


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="Post Render Service", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("POSTRENDER_PORT", "PORT"),
        description="Server port",
    )

    # Storage Configuration
    scratch_path: Path = Field(
        default=Path(tempfile.gettempdir()), description="Scratch directory for rendered files"
    )
    static_path: Path = Field(default=Path("./public"), description="Static files directory")
    log_path: Path = Field(default=Path("./logs"), description="Log files directory")

    # Browser Configuration
    playwright_executable_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "POSTRENDER_PLAYWRIGHT_EXECUTABLE_PATH", "PLAYWRIGHT_EXECUTABLE_PATH"
        ),
        description="Chromium executable override",
    )
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    playwright_timeout: int = Field(
        default=30000, gt=0, description="Playwright timeout in milliseconds"
    )

    # Cloudinary Configuration
    cloudinary_cloud_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("POSTRENDER_CLOUDINARY_CLOUD_NAME", "CLOUDINARY_CLOUD_NAME"),
        description="Cloudinary cloud name",
    )
    cloudinary_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("POSTRENDER_CLOUDINARY_API_KEY", "CLOUDINARY_API_KEY"),
        description="Cloudinary API key",
    )
    cloudinary_api_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("POSTRENDER_CLOUDINARY_API_SECRET", "CLOUDINARY_API_SECRET"),
        description="Cloudinary API secret",
    )
    storage_folder: str = Field(
        default="processed_images", description="Remote folder for generated images"
    )

    # Rate Limiting
    rate_limit_enabled: bool = Field(default=True, description="Enable inbound rate limiting")
    rate_limit_requests: int = Field(default=100, gt=0, description="Requests allowed per window")
    rate_limit_window_seconds: int = Field(
        default=900, gt=0, description="Rate limit window in seconds"
    )

    # API Documentation Configuration
    enable_docs: bool = Field(default=False, description="Enable FastAPI docs endpoints")

    # Security Configuration
    allowed_hosts: List[str] = Field(default=["*"], description="Allowed hosts for CORS")

    # Monitoring Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def parse_allowed_hosts(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse allowed hosts from string or list."""
        if isinstance(v, str):
            # Handle JSON-like string: ["*"] or ["host1", "host2"]
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            # Handle comma-separated string: "*" or "host1,host2"
            return [host.strip() for host in v.split(",") if host.strip()]
        return v

    @field_validator("scratch_path")
    @classmethod
    def create_directories(cls, v: Path) -> Path:
        """Ensure the scratch directory exists."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def storage_configured(self) -> bool:
        """Whether all Cloudinary credentials are present."""
        return all(
            (self.cloudinary_cloud_name, self.cloudinary_api_key, self.cloudinary_api_secret)
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="POSTRENDER_",
        populate_by_name=True,
        extra="ignore",
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings
