"""
Application configuration.
All settings are loaded from environment variables (or a local .env file).
Settings are built once at process start and passed to the components that need them;
the web app shares one cached instance through get_settings().
"""
from functools import lru_cache

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings

from rewards.core.errors import ConfigError

WEAK_SECRETS = ("change-me-in-production", "changemechangeme", "secretsecretsecret")


def check_sessions_secret(secret: str) -> None:
    """Ensure the cookie signing key is reasonably secure."""
    if len(secret) < 16:
        raise ValueError("sessions_secret must be at least 16 characters")
    if secret.lower() in WEAK_SECRETS:
        raise ValueError("sessions_secret is too weak, please change it")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Only DATABASE_URL is required for every process. Jobs call require() for the
    credentials they need so a missing key fails before any network call.
    """

    # ===========================================
    # DATABASE (PostgreSQL)
    # ===========================================
    database_url: str  # Required, no default

    # ===========================================
    # AIRTABLE
    # ===========================================
    airtable_api_key: str = ""
    airtable_api_url: str = "https://api.airtable.com/v0"
    airtable_base_id: str = "app1sLnxuQNDBZNju"
    airtable_submissions_table: str = "tblsbrzyPghuKgMyz"
    airtable_approved_formula: str = '{Converge Review} = "Approved"'

    # ===========================================
    # HACKATIME
    # ===========================================
    hackatime_base_url: str = "https://hackatime.hackclub.com/api/v1/users"
    hackatime_start_date: str = "2025-6-24"
    hackatime_end_date: str = "2025-7-17T23:59Z"
    rack_attack_bypass: str = ""

    # ===========================================
    # TEXT CLASSIFICATION (OpenAI-compatible endpoint)
    # ===========================================
    ai_base_url: str = "https://ai.hackclub.com"
    ai_api_key: str = "unused"  # endpoint is keyless, the SDK still wants a value
    ai_model: str = "qwen/qwen3-32b"

    # ===========================================
    # LOOPS
    # ===========================================
    loops_api_key: str = ""
    loops_api_url: str = "https://app.loops.so/api/v1"

    # ===========================================
    # FILLOUT CSV EXPORT
    # ===========================================
    fillout_csv_path: str = "./fillout-submissions.csv"

    # ===========================================
    # SLACK AUTH & SESSIONS
    # ===========================================
    slack_client_id: str = ""
    slack_client_secret: str = ""
    slack_workspace_url: str = "https://hackclub.slack.com"
    slack_api_url: str = "https://slack.com/api"
    sessions_secret: str = ""  # Required by the web app, see create_configured_app()
    session_cookie_secure: bool = False
    session_max_age: int = 60 * 60 * 24 * 30  # 30 days

    # ===========================================
    # ADMIN API
    # ===========================================
    admin_key: str = ""

    # ===========================================
    # PAYOUTS
    # ===========================================
    payout_max_tokens: int = 10
    payout_policy: str = "threshold-v1"  # threshold-v1, multiplier-v2
    payout_threshold_minutes: int = 40
    payout_cutoff_mult: float = 0.7
    payout_protected_markers: str = "Thunder,MANUAL"
    payout_hourly_rate_usd: int = 5
    payout_avatar_url_template: str = "https://cachet.dunkirk.sh/users/{slack_id}/r"

    # ===========================================
    # HTTP CLIENTS
    # ===========================================
    fetch_concurrency: int = 8
    http_client_timeout: float = 10.0
    http_client_timeout_long: float = 30.0

    # ===========================================
    # LOGGING
    # ===========================================
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("payout_policy")
    @classmethod
    def validate_policy(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("threshold-v1", "multiplier-v2"):
            raise ValueError("payout_policy must be threshold-v1 or multiplier-v2")
        return v

    @field_validator("sessions_secret")
    @classmethod
    def validate_sessions_secret(cls, v: str) -> str:
        """Jobs leave it unset; the web app refuses to start without it."""
        if v:
            check_sessions_secret(v)
        return v

    @field_validator("payout_max_tokens", "fetch_concurrency")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @property
    def protected_markers(self) -> tuple[str, ...]:
        """Memo markers that keep a payout out of the replace step."""
        return tuple(m.strip() for m in self.payout_protected_markers.split(",") if m.strip())

    @property
    def airtable_table_url(self) -> str:
        return f"{self.airtable_api_url}/{self.airtable_base_id}/{self.airtable_submissions_table}"

    def require(self, *names: str) -> "Settings":
        """Fail with ConfigError if any of the named settings is empty."""
        missing = [name for name in names if not getattr(self, name, None)]
        if missing:
            env_names = ", ".join(name.upper() for name in missing)
            raise ConfigError(f"missing required environment variables: {env_names}")
        return self

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, turning validation failures into ConfigError."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]).upper() for err in e.errors())
        raise ConfigError(f"invalid configuration: {fields}") from e


@lru_cache
def get_settings() -> Settings:
    return load_settings()
