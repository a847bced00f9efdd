"""Application configuration management using Pydantic Settings.

This module defines the `Settings` class, which loads configuration parameters
from environment variables and a `.env` file. It centralizes all tunable
parameters, from the Criteo endpoint profile to retry policy and logging.

The `get_settings` function provides a cached, singleton instance of the
configuration, ensuring consistent settings throughout the application.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict as _SettingsConfigDict

_VALID_REGIONS = {"us", "eu", "as"}


class Settings(BaseSettings):
    """Defines all application configuration parameters.

    Values come from environment variables or a `.env` file. The dispatcher
    receives an instance explicitly, so tests can construct one directly with
    keyword arguments instead of touching the environment.
    """

    model_config = _SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Criteo endpoint
    CRITEO_HOST: str = Field(
        default="widget.criteo.com",
        description="Vendor host; requests go to http://{region}.{CRITEO_HOST}/m/event",
    )
    CRITEO_ENDPOINT_URL: Optional[str] = Field(
        default=None,
        description="Fixed endpoint URL. When set, regional routing is bypassed.",
    )
    CRITEO_DEFAULT_REGION: str = Field(
        default="eu", description="Region used for countries missing from the routing table"
    )
    # Use Any type to prevent Pydantic Settings JSON decoding; validator converts to dict
    CRITEO_REGION_OVERRIDES: Any = Field(
        default_factory=dict,
        description=(
            "Comma-separated COUNTRY=region pairs overriding the built-in routing "
            "table. Example: CRITEO_REGION_OVERRIDES=GB=us,IN=as"
        ),
    )

    # Transport
    USER_AGENT: str = Field(
        default="criteo-shipper/0.1.0", description="User-Agent header sent with every request"
    )
    REQUEST_TIMEOUT: float = Field(default=30, description="HTTP timeout in seconds")
    MAX_ATTEMPTS: int = Field(
        default=3, description="Total delivery attempts per event (1 = no retry)"
    )
    RETRY_WAIT_MIN: float = Field(default=0.5, description="Minimum backoff between attempts (s)")
    RETRY_WAIT_MAX: float = Field(default=8, description="Maximum backoff between attempts (s)")

    # Logging & runtime behavior
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    DRY_RUN: bool = Field(
        default=True,
        description="If true, map events but do not send them to Criteo",
    )

    @field_validator("CRITEO_REGION_OVERRIDES", mode="before")
    @classmethod
    def parse_region_overrides(cls, v: Any) -> Dict[str, str]:
        """Parse `COUNTRY=region` pairs into an upper-case country -> region map.

        Accepts a dict (from code/tests) or a comma-separated string (from the
        environment). Blank entries are ignored.

        Raises:
            ValueError: If an entry is malformed or names an unknown region.
        """
        if v is None:
            return {}
        if isinstance(v, dict):
            items = list(v.items())
        elif isinstance(v, str):
            items = []
            for chunk in v.split(","):
                chunk = chunk.strip()
                if not chunk:
                    continue
                if "=" not in chunk:
                    raise ValueError(f"Invalid region override {chunk!r}; expected COUNTRY=region")
                country, region = chunk.split("=", 1)
                items.append((country, region))
        else:
            return {}
        parsed: Dict[str, str] = {}
        for country, region in items:
            code = str(country).strip().upper()
            reg = str(region).strip().lower()
            if reg not in _VALID_REGIONS:
                raise ValueError(f"Unknown Criteo region {region!r} for {code}")
            parsed[code] = reg
        return parsed

    @field_validator("CRITEO_DEFAULT_REGION", mode="before")
    @classmethod
    def normalize_default_region(cls, v: Any) -> str:
        reg = str(v).strip().lower()
        if reg not in _VALID_REGIONS:
            raise ValueError(f"Unknown Criteo region {v!r}")
        return reg

    @field_validator("MAX_ATTEMPTS")
    @classmethod
    def at_least_one_attempt(cls, v: int) -> int:
        return max(1, v)


@lru_cache(maxsize=1)
def get_settings() -> Settings:  # pragma: no cover - trivial
    """Return a cached, singleton instance of the application settings."""
    return Settings()
