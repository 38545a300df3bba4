"""Builder service configuration.

Requires: DATABASE_URL, REDIS_URL
Optional: VERCEL_PUBLISH_TOKEN (publish and preview are unavailable without it),
OPEN_ROUTER_KEY / OPENAI_API_KEY (read by the LLM factory at build time)
"""

from functools import lru_cache

from pydantic import Field

from shared.config import (
    BaseSettings,
    database_url_field,
    redis_url_field,
    seconds_field,
    vercel_token_field,
)


class Settings(BaseSettings):
    """Builder service settings."""

    service_name: str = "builder"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000

    # Required
    database_url: str = database_url_field()
    redis_url: str = redis_url_field()

    # Model access
    llm_provider: str = Field(default="openrouter", description="openrouter or openai")
    generation_model: str = Field(default="anthropic/claude-opus-4")
    repair_model: str = Field(default="anthropic/claude-sonnet-4")
    llm_temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    generation_max_tokens: int = Field(default=32000, gt=0)
    repair_max_tokens: int = Field(default=32000, gt=0)

    # Wall-clock budget of one build request
    build_budget_seconds: float = seconds_field(300.0, "Hard budget of a build request")
    build_margin_seconds: float = seconds_field(
        30.0, "Trailing margin reserved for persisting results"
    )

    # Sandbox verification
    install_command: str = "npm install --legacy-peer-deps --no-audit --no-fund --loglevel=error"
    build_command: str = "npm run build"
    install_timeout_seconds: float = seconds_field(120.0, "Dependency install timeout")
    build_timeout_seconds: float = seconds_field(120.0, "Build command timeout")
    sandbox_root: str | None = Field(
        default=None, description="Parent directory for sandboxes (system temp if unset)"
    )
    max_fix_iterations: int = Field(default=3, ge=1)
    diagnostics_max_chars: int = Field(default=4000, gt=0)
    diagnostics_event_chars: int = Field(default=1500, gt=0)

    # Publishing
    vercel_publish_token: str | None = vercel_token_field()
    vercel_team_id: str | None = None
    vercel_api_url: str = "https://api.vercel.com"
    publish_domain: str = "calypso.build"
    hosting_project_prefix: str = "calypso"
    deploy_poll_interval_seconds: float = seconds_field(2.0, "Deployment status poll interval")
    deploy_poll_timeout_seconds: float = seconds_field(90.0, "Deployment readiness ceiling")

    # Links rendered into preview banners
    app_url: str = Field(default="https://calypso.build", description="Authoring app origin")
    public_api_url: str | None = Field(
        default=None, description="Public origin of this service (defaults to app_url)"
    )

    @property
    def status_api_origin(self) -> str:
        return (self.public_api_url or self.app_url).rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Validates required env vars on first call.
    Raises ValidationError if DATABASE_URL or REDIS_URL are missing.
    """
    return Settings()
