# podscription/core/config.py
# -*- coding: utf-8 -*-
"""
Podscription API — Configuration
--------------------------------
Central configuration for the API server, including:

- app metadata and bind address
- the OpenAI-compatible model backend (key, endpoint, model, sampling)
- classification sampling (kept separate from diagnosis sampling)
- per-turn time budget and history window
- session store type and snapshot path

Every value can be overridden from the environment or a `.env` file next to
the server root, e.g. OPENAI_API_KEY, OPENAI_MODEL, STORE_PATH.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

# This file is: api_server/podscription/core/config.py
APP_DIR: Path = Path(__file__).resolve().parents[1]   # .../api_server/podscription
ROOT_DIR: Path = APP_DIR.parent                       # .../api_server


# ---------------------------------------------------------------------------
# Settings model
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """
    Global configuration for the API server.

    Instantiated once at import time as `settings`. Tests build their own
    Settings(...) and pass it to SessionManager instead of patching this one.
    """

    model_config = SettingsConfigDict(
        env_file=ROOT_DIR / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- App / server basics -----------------------------------------------
    app_name: str = "podscription-api"
    app_version: str = "1.0.0"
    environment: Literal["development", "production", "test"] = "development"
    debug: bool = False
    # Explicit root level ("debug", "warning", ...); empty defers to `debug`.
    log_level: str = ""

    api_host: str = "localhost"
    api_port: int = 8080

    # --- Model backend (OpenAI-compatible chat completions) ------------------
    openai_api_key: str | None = Field(
        default=None,
        description="API key for the model backend (env: OPENAI_API_KEY).",
    )
    openai_base_url: str = "https://api.openai.com/v1/chat/completions"
    openai_model: str = "gpt-3.5-turbo"

    # Diagnosis sampling
    openai_temperature: float = 0.7
    openai_max_tokens: int = 1000

    # Classification sampling: low temperature, short answer, so the
    # three-line CATEGORY/CONFIDENCE/SYMPTOMS reply stays parseable.
    classification_temperature: float = 0.3
    classification_max_tokens: int = 200

    # --- Pipeline limits ----------------------------------------------------
    # One budget for both backend calls of a turn.
    request_timeout_s: float = 30.0
    # How many prior messages are offered to the diagnosis prompt.
    history_window: int = 5

    # --- Session store ------------------------------------------------------
    # Only "memory" exists today; checked when the store is built.
    store_type: str = "memory"
    # Empty string disables the JSON snapshot.
    store_path: str = ""


# Single global settings instance used by the rest of the app.
settings = Settings()
