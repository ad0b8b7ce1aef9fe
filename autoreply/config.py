from __future__ import annotations

from typing import Annotated

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_REQUIRED_ERRORS = {"missing", "string_too_short"}
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigError(RuntimeError):
    """Raised at startup when the environment does not describe a usable bot."""


def _parse_range(value: str | tuple[int, int]) -> tuple[int, int]:
    if isinstance(value, (tuple, list)):
        return (int(value[0]), int(value[1]))
    parts = [p.strip() for p in str(value).split(",") if p.strip()]
    if len(parts) != 2:
        raise ValueError("Expected a 'min,max' range string, e.g., '2,5'")
    low, high = int(parts[0]), int(parts[1])
    if low > high:
        low, high = high, low
    return (low, high)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    # Bot credential + identity
    BOT_ACCESS_TOKEN: str = Field(min_length=1)
    BOT_EMAIL: str = Field(min_length=1)

    # Messaging service
    ADAPTER: str = Field(default="webex")
    WEBEX_API_BASE: str = Field(default="https://webexapis.com/v1/")
    HTTP_TIMEOUT_S: float = Field(default=30.0)

    # Webhook receiver feeding the event stream
    WEBHOOK_HOST: str = Field(default="0.0.0.0")
    WEBHOOK_PORT: int = Field(default=8080)
    WEBHOOK_PATH: str = Field(default="/webhook")
    WEBHOOK_SECRET: str = Field(default="")

    # Failure policy
    ABORT_ON_SEND_FAILURE: bool = Field(default=True)

    # Logging
    LOG_JSON: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")

    # Mock adapter latency in milliseconds (min,max)
    MOCK_LATENCY_MS_RANGE: Annotated[tuple[int, int], NoDecode] = Field(default=(0, 0))
    SEED: int = Field(default=12345)

    @field_validator("BOT_ACCESS_TOKEN", "BOT_EMAIL", mode="before")
    @classmethod
    def _strip(cls, v):  # type: ignore[override]
        return v.strip() if isinstance(v, str) else v

    @field_validator("WEBEX_API_BASE")
    @classmethod
    def _trailing_slash(cls, v: str) -> str:
        return v if v.endswith("/") else v + "/"

    @field_validator("LOG_LEVEL")
    @classmethod
    def _validate_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @field_validator("MOCK_LATENCY_MS_RANGE", mode="before")
    @classmethod
    def _validate_latency(cls, v):  # type: ignore[override]
        return _parse_range(v)


def load_settings(**overrides) -> Settings:
    """Resolve settings from the process environment once.

    Missing credentials are reported by variable name rather than as a raw
    validation dump.
    """
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        for err in exc.errors():
            if err["type"] in _REQUIRED_ERRORS and err["loc"]:
                name = str(err["loc"][0]).upper()
                raise ConfigError(f"{name} not specified in environment") from exc
        raise ConfigError(f"Invalid configuration: {exc}") from exc
