"""Settings for the jobboard moderation backend with observability configuration."""

from __future__ import annotations

from typing import Optional, Tuple, Union

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
    if env_names:
        alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
        return Field(default=default, validation_alias=alias)
    return Field(default=default)


class Settings(BaseSettings):
    redis_url: str = _env_field("redis://localhost:6379/0", "REDIS_URL")

    environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
    obs_enabled: bool = _env_field(True, "OBS_ENABLED")
    obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
    obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
    obs_metrics_public: bool = _env_field(True, "OBS_METRICS_PUBLIC")
    obs_admin_token: Optional[str] = _env_field(None, "OBS_ADMIN_TOKEN")
    service_name: str = _env_field("jobboard-api", "SERVICE_NAME")
    git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")

    # Moderation: one YAML file holds the term lists shared by client and server.
    moderation_config_path: Optional[str] = _env_field(None, "MODERATION_CONFIG_PATH")
    # "memory" keeps ledgers per process; "redis" shares them across workers.
    moderation_ledger_backend: str = _env_field("memory", "MODERATION_LEDGER_BACKEND")
    moderation_ledger_namespace: str = _env_field("profanity", "MODERATION_LEDGER_NAMESPACE")
    moderation_lock_timeout_seconds: float = _env_field(5.0, "MODERATION_LOCK_TIMEOUT_SECONDS")
    # Numeric knobs override the YAML values when set.
    moderation_warning_threshold: Optional[int] = _env_field(None, "MODERATION_WARNING_THRESHOLD")
    moderation_suspension_seconds: Optional[int] = _env_field(None, "MODERATION_SUSPENSION_SECONDS")
    moderation_reset_horizon_seconds: Optional[int] = _env_field(None, "MODERATION_RESET_HORIZON_SECONDS")
    moderation_spam_gate_enabled: bool = _env_field(True, "MODERATION_SPAM_GATE_ENABLED")
    moderation_write_methods: Union[str, Tuple[str, ...]] = _env_field(("POST", "PUT"), "MODERATION_WRITE_METHODS")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("moderation_write_methods", mode="before")
    def _split_methods(cls, value):  # type: ignore[override]
        if value in (None, ""):
            return ()
        if isinstance(value, str):
            return tuple(part.strip().upper() for part in value.split(",") if part.strip())
        if isinstance(value, (list, tuple, set)):
            return tuple(str(item).strip().upper() for item in value if str(item).strip())
        return ()

    @field_validator("moderation_ledger_backend", mode="before")
    def _lower_backend(cls, value):  # type: ignore[override]
        return str(value or "memory").strip().lower()

    @field_validator("obs_log_level", mode="after")
    def _normalise_level(cls, value: str) -> str:  # type: ignore[override]
        return value.upper()


settings = Settings()
