"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TRIP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Trip Canvas Route Planner API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root logging level.")
    data_root: Path = Field(default=Path("data"), description="Root directory for persisted run outputs.")
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # AI bridge (natural-language model with maps tool access)
    bridge_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the AI bridge service (e.g., http://localhost:3000).",
    )
    bridge_api_key: Optional[str] = Field(default=None, description="Bearer token sent to the AI bridge.")
    bridge_timeout_seconds: float = Field(default=30.0, gt=0.0)
    bridge_max_retries: int = Field(default=3, ge=1)
    bridge_backoff_seconds: float = Field(default=1.0, ge=0.0)

    # Optimization and travel-time lookups
    optimize_timeout_seconds: float = Field(
        default=15.0,
        gt=0.0,
        description="Upper bound for the whole AI optimization exchange.",
    )
    optimizer_exhaustive_limit: int = Field(
        default=8,
        ge=2,
        description="Above this many stops the bridge is told to use nearest-neighbour heuristics.",
    )
    travel_time_timeout_seconds: float = Field(default=15.0, gt=0.0)
    travel_time_max_parallel: int = Field(default=5, ge=1)
    maps_directions_base_url: str = Field(default="https://www.google.com/maps/dir/")

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )
    trips_table: str = Field(default="trips")
    canvas_key: str = Field(default="canvas", description="Key of the canvas inside a trip's trip_data document.")

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("bridge_base_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip().rstrip("/")
        return text or None


settings = Settings()
