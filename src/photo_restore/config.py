"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_GEMINI_MODELS = ["gemini-2.5-flash-image-preview", "gemini-2.5-flash"]
DEFAULT_OPENROUTER_MODELS = [
    "google/gemini-2.5-flash-image-preview",
    "google/gemini-2.5-flash",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash-image-preview"
    gemini_allowed_models: str | None = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    openrouter_api_key: str | None = None
    openrouter_model: str = "google/gemini-2.5-flash-image-preview"
    openrouter_allowed_models: str | None = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_site_url: str | None = None
    openrouter_app_name: str = "PhotoRestore"
    provider_timeout_seconds: float = 120.0
    stripe_secret_key: str | None = None
    stripe_publishable_key: str | None = None
    payment_timeout_seconds: float = 30.0
    cookie_secret: str | None = None
    port: int = 3000
    site_origin: str | None = None
    allowed_origins: str | None = None
    static_dir: str = "public"
    examples_dir: str = "public/examples"
    rate_limit_window_seconds: int = 600
    restore_rate_limit: int = 30
    restore_text_rate_limit: int = 20
    buy_credits_rate_limit: int = 20
    confirm_rate_limit: int = 60
    environment: str = _ENVIRONMENT
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def resolved_site_origin(self) -> str:
        origin = self.site_origin or f"http://127.0.0.1:{self.port}"
        return origin.rstrip("/")

    @property
    def stripe_test_mode(self) -> bool:
        return bool(self.stripe_secret_key and self.stripe_secret_key.startswith("sk_test"))


def parse_csv(raw: str | None) -> list[str]:
    """Split a comma-separated env value into trimmed, non-empty items."""
    if raw is None:
        return []
    return [chunk.strip() for chunk in raw.split(",") if chunk.strip()]


def resolve_allowed_origins(settings: Settings) -> list[str]:
    """Return CORS origins: the site origin, its localhost twin, and extras."""
    site = settings.resolved_site_origin
    origins = [site, site.replace("127.0.0.1", "localhost")]
    for origin in parse_csv(settings.allowed_origins):
        if origin not in origins:
            origins.append(origin)
    return list(dict.fromkeys(origins))


def resolve_allowed_models(
    raw: str | None, defaults: list[str], default_model: str
) -> list[str]:
    """Return the model allow-list, always including the default model."""
    allowed = parse_csv(raw) or list(defaults)
    if default_model not in allowed:
        allowed.append(default_model)
    return allowed
