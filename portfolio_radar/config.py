# Config
"""
Configuration for Portfolio Radar.
Gemini with Google Search grounding is the default search model.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from portfolio_radar.utils.errors import ConfigurationError, MissingConfigurationError

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'")


class Settings:
    def __init__(self) -> None:
        # Logging
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.dev_mode = os.getenv("DEV_MODE", "false").lower() in ("1", "true", "yes")
        log_file = os.getenv("LOG_FILE")
        self.log_file_path = Path(log_file) if log_file else None

        # Search model (DEFAULT: Gemini with Google Search)
        self.search_model = os.getenv("SEARCH_MODEL", "gemini-2.5-flash")
        self.search_enabled = os.getenv("SEARCH_ENABLED", "true").lower() in ("1", "true", "yes")
        self.gemini_api_key = os.getenv("GEMINI_API_KEY")
        self.openai_api_key = os.getenv("OPENAI_API_KEY")

        # Vision board image editing is Gemini only
        self.vision_model = os.getenv("VISION_MODEL", "gemini-2.5-flash-image")

        # Batching per use case; sizes and delays are empirical, tune per quota tier
        self.stocks_batch_size = _env_int("STOCKS_BATCH_SIZE", 3)
        self.stocks_batch_delay = _env_float("STOCKS_BATCH_DELAY", 0.0)
        self.dividends_batch_size = _env_int("DIVIDENDS_BATCH_SIZE", 3)
        self.dividends_batch_delay = _env_float("DIVIDENDS_BATCH_DELAY", 0.0)
        self.health_batch_size = _env_int("HEALTH_BATCH_SIZE", 3)
        self.health_batch_delay = _env_float("HEALTH_BATCH_DELAY", 0.0)
        # Free tier allows roughly 10 requests/min
        self.portfolio_batch_size = _env_int("PORTFOLIO_BATCH_SIZE", 1)
        self.portfolio_batch_delay = _env_float("PORTFOLIO_BATCH_DELAY", 6.0)

        self._validate()

    def _validate(self) -> None:
        for name in ("stocks", "dividends", "health", "portfolio"):
            if getattr(self, f"{name}_batch_size") < 1:
                raise ConfigurationError(f"{name}_batch_size must be at least 1")
            if getattr(self, f"{name}_batch_delay") < 0:
                raise ConfigurationError(f"{name}_batch_delay must not be negative")

    @property
    def uses_gemini(self) -> bool:
        return self.search_model.startswith("gemini")

    def require_api_key(self) -> str:
        """Return the API key for the configured search model."""
        if self.uses_gemini:
            return self.require_gemini_key()
        if not self.openai_api_key:
            raise MissingConfigurationError("OPENAI_API_KEY")
        return self.openai_api_key

    def require_gemini_key(self) -> str:
        """Return the Gemini API key, whatever the search model."""
        if not self.gemini_api_key:
            raise MissingConfigurationError("GEMINI_API_KEY")
        return self.gemini_api_key

    def get_log_file_path(self) -> Optional[Path]:
        if self.log_file_path:
            self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
        return self.log_file_path

# Singleton instance
_settings = None

def get_settings():
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
