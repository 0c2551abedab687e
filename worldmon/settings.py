import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # API Configuration
    api_key: str = Field(
        default="dev-key-change-in-production", alias="WORLDMONITOR_API_KEY"
    )
    api_host: str = Field(default="0.0.0.0", alias="WORLDMONITOR_HOST")
    api_port: int = Field(default=3001, alias="WORLDMONITOR_PORT")
    cors_origins: tuple[str, ...] = Field(
        default=("http://localhost:3000",), alias="WORLDMONITOR_CORS_ORIGINS"
    )
    rate_limit_per_minute: int = Field(default=100, alias="WORLDMONITOR_RATE_LIMIT")

    # Correlation Configuration
    snapshot_path: str = Field(
        default="data/events.json", alias="WORLDMONITOR_SNAPSHOT_PATH"
    )
    correlation_interval_minutes: int = Field(
        default=15, alias="CORRELATION_INTERVAL"
    )
    correlation_lookback_hours: int = Field(
        default=168, alias="CORRELATION_LOOKBACK_HOURS"
    )
    correlation_max_events: int = Field(default=2000, alias="CORRELATION_MAX_EVENTS")

    # Webhook Configuration
    webhook_timeout: float = Field(default=10.0, alias="WEBHOOK_TIMEOUT")
    webhook_url: str | None = Field(default=None, alias="WORLDMONITOR_WEBHOOK_URL")
    webhook_secret: str = Field(default="", alias="WORLDMONITOR_WEBHOOK_SECRET")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return tuple(o.strip() for o in value.split(",") if o.strip())
        return value


def load_settings(env_file: str | None = None) -> Settings:
    """Read settings from the environment (and an optional .env file).

    Called once at startup; the resulting frozen Settings is passed to
    whatever needs it.
    """
    load_dotenv(env_file)
    aliases = {
        field.alias: name
        for name, field in Settings.model_fields.items()
        if field.alias
    }
    values = {alias: os.environ[alias] for alias in aliases if alias in os.environ}
    return Settings(**values)
