"""PosTL Admin configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from postl_admin.common.exceptions import ConfigurationError
from postl_admin.common.logging import get_logger

logger = get_logger("config")

_INSECURE_DEFAULTS = {
    "secret_key": "insecure-dev-key-change-me",
    "dashboard_key": "insecure-dashboard-key-change-me",
}


class PostlSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="POSTL_", populate_by_name=True)

    environment: str = "development"
    log_level: str = "INFO"
    secret_key: str = "insecure-dev-key-change-me"

    # Hosted backend
    supabase_url: str = ""
    supabase_anon_key: str = ""
    # Privileged key. Both names are accepted; the role key wins.
    supabase_service_role_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "POSTL_SUPABASE_SERVICE_ROLE_KEY", "POSTL_SUPABASE_SERVICE_KEY",
        ),
    )
    request_timeout: float = 30.0
    tenants_table: str = "tenants"
    profiles_table: str = "profiles"

    # Dashboard
    api_title: str = "PosTL Admin"
    api_version: str = "0.1.0"
    dashboard_key: str = "insecure-dashboard-key-change-me"
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: list[str] = ["http://localhost:8080"]

    # Shop defaults
    default_password: str = "123456"
    default_contract_years: int = 1
    account_role: str = "tenant_admin"
    compensate_orphaned_accounts: bool = True

    @property
    def has_admin_key(self) -> bool:
        return bool(self.supabase_service_role_key)

    @property
    def admin_api_key(self) -> str:
        """Privileged key, or the public key when none is configured.

        With the public key, account creation and password resets are
        rejected by the backend's row-level security.
        """
        return self.supabase_service_role_key or self.supabase_anon_key

    def require_backend(self) -> None:
        """Raise if the backend endpoint or public key is missing."""
        missing = []
        if not self.supabase_url:
            missing.append("POSTL_SUPABASE_URL")
        if not self.supabase_anon_key:
            missing.append("POSTL_SUPABASE_ANON_KEY")
        if missing:
            raise ConfigurationError(
                f"Missing backend configuration: {', '.join(missing)}"
            )

    def log_config_check(self) -> None:
        """Log which backend secrets are present, never their values."""
        def state(value: str) -> str:
            return "OK" if value else "MISSING"

        logger.info(
            "Backend config check: url=%s anon_key=%s service_key=%s",
            state(self.supabase_url),
            state(self.supabase_anon_key),
            state(self.supabase_service_role_key),
        )
        if self.supabase_anon_key and not self.has_admin_key:
            logger.warning(
                "No service role key configured; falling back to the public key"
            )

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"POSTL_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default keys; set POSTL_SECRET_KEY and "
                "POSTL_DASHBOARD_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> PostlSettings:
    settings = PostlSettings()
    settings.validate_for_production()
    return settings
