"""
Application settings for the fhir-records service.

- Defaults are intended for development use.
- For testing, override via pyproject.toml [tool.pytest.ini_options].
- For production, set environment variables to override fields.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """fhir-records service configuration."""

    # FHIR Server Configuration
    fhir_server_url: str = Field(
        default="http://localhost:8080/fhir",
        description="Base URL of the FHIR server",
    )
    fhir_api_key: str | None = Field(
        default=None,
        description="Optional API key sent to the FHIR server as x-api-key",
    )
    fhir_timeout: float = Field(
        default=30.0,
        description="Timeout for FHIR server requests in seconds",
    )

    # Search Configuration
    default_page_size: int = Field(
        default=10,
        description="Page size used when a list request does not specify one",
    )

    # Service Configuration
    host: str = Field(
        default="127.0.0.1",
        description="Interface the HTTP server binds to",
    )
    port: int = Field(
        default=8000,
        description="Port the HTTP server listens on",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for the fhir_records logger hierarchy",
    )
    cors_origin_regex: str = Field(
        default=r"^http://(localhost|127\.0\.0\.1)(:\d+)?$",
        description="Origins allowed to call the API from a browser",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def model_post_init(self, __context: object) -> None:
        """Normalize derived settings after model construction."""
        self.fhir_server_url = self.fhir_server_url.rstrip("/")
        self.log_level = self.log_level.upper()


settings = Settings()
