"""Configuration settings for the Entropy client — loaded from environment variables."""

from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings with env-driven overrides.

    All values can be overridden via environment variables prefixed with ENTROPY_.
    Example: ENTROPY_SERVER_URL=http://game:3333 overrides server_url.
    """

    # Game server connection
    server_url: str = "http://127.0.0.1:3333"
    request_timeout_sec: float = 10.0

    # Action rules (server-defined; override when the server changes them)
    walk_energy_cost: int = 1
    verify_predictions: bool = True

    # Account used by the entry point
    player_id: Optional[int] = None
    player_name: str = "guest"
    player_password: str = ""

    # Behavior driver
    log_level: str = "info"
    max_ticks: Optional[int] = None
    spiral_radius: Optional[int] = None
    harvest_sweeps: Optional[int] = 1

    model_config = SettingsConfigDict(
        env_prefix="ENTROPY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
