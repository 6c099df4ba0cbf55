"""
Dashboard configuration and application constants.

Configuration is an explicit object handed to the Program, Bridge and
renderer at construction; nothing here is mutated at runtime.
"""
from __future__ import annotations

import os
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

APP_NAME: str = "orbital"
VERSION: str = "0.1.0"

DEFAULT_MAX_OUTPUT_LINES: int = 10_000
DEFAULT_QUEUE_SIZE: int = 100
MAX_FILE_SIZE: int = 1024 * 1024

ENV_THEME: str = "ORBITAL_THEME"
ENV_LOG_FILE: str = "ORBITAL_TUI_LOG"

ThemeName = Literal["auto", "dark", "light"]


class DashboardConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    theme: ThemeName = "auto"
    no_color: bool = False
    max_output_lines: int = Field(DEFAULT_MAX_OUTPUT_LINES, ge=1)
    queue_size: int = Field(DEFAULT_QUEUE_SIZE, ge=1)
    max_file_size: int = Field(MAX_FILE_SIZE, ge=1)
    file_refresh_interval: float = Field(2.0, gt=0)
    timer_interval: float = Field(1.0, gt=0)
    mouse: bool = True
    log_file: str | None = None

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None, **overrides: Any) -> "DashboardConfig":
        """Build a config from environment variables, then apply explicit overrides.

        NO_COLOR follows https://no-color.org: any non-empty value disables colour.
        """
        env = os.environ if env is None else env
        values: dict[str, Any] = {}
        if env.get("NO_COLOR"):
            values["no_color"] = True
        if env.get(ENV_THEME):
            values["theme"] = env[ENV_THEME].strip().lower()
        if env.get(ENV_LOG_FILE):
            values["log_file"] = env[ENV_LOG_FILE]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
