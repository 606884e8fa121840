"""
Application configuration using Pydantic Settings.

All configuration is read from environment variables (12-factor app),
with sensible defaults for local development. List-valued settings are
given as JSON in the environment, e.g. ALLOWED_TLDS='[".au", ".com.au"]'.

Algorithmic code never reads the ``settings`` singleton directly: it is
handed an immutable ``SelectionConfig`` built once per run.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings

from app.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Central application configuration."""

    # MongoDB
    mongo_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI",
    )
    mongo_db_name: str = Field(
        default="domain_agent",
        description="MongoDB database name",
    )

    # Registrar API
    registrar_base_url: str = Field(
        default="https://www.tppwholesale.com.au/api/",
        description="Base URL of the registrar wholesale API",
    )
    registrar_api_key: str = Field(default="", description="Registrar API key")
    registrar_api_secret: str = Field(default="", description="Registrar API secret")
    registrar_reseller_id: str = Field(default="", description="Registrar reseller ID")
    http_timeout: int = Field(
        default=30,
        description="Timeout in seconds for outbound registrar requests",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Application log level (DEBUG, INFO, WARNING, ERROR)",
    )

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API bind host")
    api_port: int = Field(default=8000, description="API bind port")

    # Scheduler
    scheduler_enabled: bool = Field(
        default=True,
        description="Register the daily purchase trigger on startup",
    )
    schedule_timezone: str = Field(
        default="Australia/Sydney",
        description="Civil timezone the daily trigger fires in",
    )
    schedule_hour: int = Field(default=1, ge=0, le=23)
    schedule_minute: int = Field(default=31, ge=0, le=59)

    # Domain selection
    allowed_tlds: list[str] = Field(
        default_factory=lambda: [".au"],
        description="TLDs eligible for purchase; empty allows every TLD",
    )
    max_domains_per_day: int = Field(default=10)
    min_domain_length: int = Field(default=3)
    max_domain_length: int = Field(default=63)
    priority_keywords: list[str] = Field(default_factory=list)
    exclude_keywords: list[str] = Field(default_factory=list)

    # Order defaults
    default_registrant_contact_id: Optional[str] = Field(
        default=None,
        description="Registrant contact used for every order (required)",
    )
    default_admin_contact_id: Optional[str] = None
    default_tech_contact_id: Optional[str] = None
    default_billing_contact_id: Optional[str] = None
    default_nameservers: list[str] = Field(default_factory=list)
    registration_period_years: int = Field(default=1, ge=1)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


class SelectionConfig(BaseModel):
    """
    Immutable snapshot of the options consumed by the selector and the
    purchase orchestrator.
    """

    model_config = ConfigDict(frozen=True)

    allowed_tlds: tuple[str, ...] = (".au",)
    max_domains_per_day: int = 10
    min_domain_length: int = 3
    max_domain_length: int = 63
    priority_keywords: tuple[str, ...] = ()
    exclude_keywords: tuple[str, ...] = ()
    default_registrant_contact_id: Optional[str] = None
    default_admin_contact_id: Optional[str] = None
    default_tech_contact_id: Optional[str] = None
    default_billing_contact_id: Optional[str] = None
    default_nameservers: tuple[str, ...] = ()
    registration_period_years: int = 1

    @classmethod
    def from_settings(cls, source: "Settings") -> "SelectionConfig":
        return cls(
            allowed_tlds=tuple(source.allowed_tlds),
            max_domains_per_day=source.max_domains_per_day,
            min_domain_length=source.min_domain_length,
            max_domain_length=source.max_domain_length,
            priority_keywords=tuple(source.priority_keywords),
            exclude_keywords=tuple(source.exclude_keywords),
            default_registrant_contact_id=source.default_registrant_contact_id,
            default_admin_contact_id=source.default_admin_contact_id,
            default_tech_contact_id=source.default_tech_contact_id,
            default_billing_contact_id=source.default_billing_contact_id,
            default_nameservers=tuple(source.default_nameservers),
            registration_period_years=source.registration_period_years,
        )


def validate_startup_settings(source: "Settings") -> None:
    """
    Fail fast on configuration that would make every run fail.

    Called from the application lifespan before the scheduler starts.

    Raises:
        ConfigurationError: On the first invalid or missing setting.
    """
    if not (source.default_registrant_contact_id or "").strip():
        raise ConfigurationError(
            "default_registrant_contact_id",
            "a registrant contact is required for domain registration",
        )
    if not source.registrar_base_url.strip():
        raise ConfigurationError("registrar_base_url", "must not be empty")
    if not source.registrar_api_key.strip():
        raise ConfigurationError("registrar_api_key", "must not be empty")
    if source.min_domain_length > source.max_domain_length:
        raise ConfigurationError(
            "min_domain_length",
            f"{source.min_domain_length} exceeds max_domain_length "
            f"{source.max_domain_length}",
        )
    if source.max_domains_per_day < 0:
        raise ConfigurationError("max_domains_per_day", "must not be negative")


# Singleton: import this throughout the app
settings = Settings()
