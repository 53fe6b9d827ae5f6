"""Configuration management."""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv


class ConfigError(RuntimeError):
    """Raised when a required setting is missing."""


def must(name: str, value: Optional[str]) -> str:
    """Return a required setting or fail with the variable name."""
    if not value:
        raise ConfigError(f"Missing env var: {name}. Check your .env file and restart.")
    return value


@dataclass
class KeepaConfig:
    """Keepa API configuration."""

    api_key: str = ""
    # 1 = amazon.com
    domain: str = "1"
    base_url: str = "https://api.keepa.com"
    timeout: float = 30.0

    @property
    def is_configured(self) -> bool:
        """Check if a Keepa API key is present."""
        return bool(self.api_key)

    def params(self, **extra) -> dict:
        """Query parameters shared by every Keepa resource."""
        return {"key": self.api_key, "domain": self.domain or "1", **extra}


@dataclass
class Settings:
    """Server-side settings, built once at startup and passed around explicitly."""

    keepa: KeepaConfig = field(default_factory=KeepaConfig)
    database_path: str = "data/nichescout.db"
    auth_userinfo_url: str = "https://www.googleapis.com/oauth2/v3/userinfo"
    recent_limit: int = 10
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from the environment (and a .env file if present)."""
        load_dotenv()
        keepa = KeepaConfig(
            api_key=os.getenv("KEEPA_KEY", ""),
            domain=os.getenv("KEEPA_DOMAIN", "1") or "1",
            base_url=os.getenv("KEEPA_BASE_URL", "https://api.keepa.com").rstrip("/"),
            timeout=float(os.getenv("KEEPA_TIMEOUT", "30")),
        )
        return cls(
            keepa=keepa,
            database_path=os.getenv("DATABASE_PATH", "data/nichescout.db"),
            auth_userinfo_url=os.getenv(
                "AUTH_USERINFO_URL", "https://www.googleapis.com/oauth2/v3/userinfo"
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


@dataclass
class ClientConfig:
    """Settings for the command-line client."""

    api_url: str
    id_token: str
    timeout: float = 60.0

    @property
    def auth_headers(self) -> dict:
        """Get authorization headers for API requests."""
        return {"Authorization": f"Bearer {self.id_token}"}

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load client settings; every value is required."""
        load_dotenv()
        return cls(
            api_url=must("NICHESCOUT_API_URL", os.getenv("NICHESCOUT_API_URL")).rstrip("/"),
            id_token=must("NICHESCOUT_ID_TOKEN", os.getenv("NICHESCOUT_ID_TOKEN")),
        )
