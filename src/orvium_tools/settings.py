"""Configuration helpers for orvium-tools."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from orvium_tools.errors import ConfigError

REQUIRED_ENV_VARS = ("API_URL", "API_KEY", "API_KEY_USER")


class Settings(BaseModel):
    """Runtime configuration shared by every component that talks to the platform."""

    api_url: str
    api_key: str = Field(repr=False)
    api_key_user: str = Field(repr=False)
    log_level: str = "INFO"
    timeout: float | None = None

    @property
    def base_url(self) -> str:
        return self.api_url.rstrip("/")

    @property
    def auth_headers(self) -> dict[str, str]:
        """Credential headers carried by every platform request."""
        return {"x-api-key": self.api_key, "x-api-key-user": self.api_key_user}

    def masked(self) -> dict[str, object]:
        payload = self.model_dump()
        for key in ("api_key", "api_key_user"):
            value = payload.get(key) or ""
            payload[key] = f"{value[:4]}…" if len(value) > 4 else "****"
        return payload

    @classmethod
    def load(cls) -> "Settings":
        load_dotenv()
        missing = [name for name in REQUIRED_ENV_VARS if not os.environ.get(name)]
        if missing:
            raise ConfigError(
                "Missing required environment variables: " + ", ".join(missing)
            )
        timeout = os.environ.get("ORVIUM_TIMEOUT")
        return cls(
            api_url=os.environ["API_URL"],
            api_key=os.environ["API_KEY"],
            api_key_user=os.environ["API_KEY_USER"],
            log_level=os.environ.get("ORVIUM_LOG_LEVEL", "INFO"),
            timeout=float(timeout) if timeout else None,
        )


def get_settings() -> Settings:
    """Convenience accessor for the CLI entry points."""
    return Settings.load()
