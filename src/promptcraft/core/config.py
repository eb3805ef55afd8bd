"""
Configuration management for promptcraft.

This module handles API keys, model selection per tier, token budget and
persistence settings.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from promptcraft.logging_config import get_logger
from promptcraft.utils.exceptions import ConfigurationError

logger = get_logger(__name__)

# Load environment variables from .env file
load_dotenv()

# Default configuration constants
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_FLASH_TEXT_MODEL = "gemini-flash-latest"
DEFAULT_PRO_TEXT_MODEL = "gemini-2.5-pro"
DEFAULT_VISION_MODEL = "gemini-2.5-flash-image"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"

DAILY_TOKEN_LIMIT = 2_000_000
MAX_RECORDS = 30
MAX_SAVED_ITEMS = 12
PERSIST_DELAY_SECONDS = 1.0
MAX_IMAGE_BYTES = 10 * 1024 * 1024  # 10MB

DEFAULT_STORAGE_DIR = Path.home() / ".promptcraft"

PRO_KEY_REQUIRED_MESSAGE = (
    "The pro model tier requires a separately authenticated key. Set GEMINI_PRO_API_KEY."
)


@dataclass
class Config:
    """Configuration for promptcraft sessions."""

    # API Configuration (keys excluded from repr to avoid leaking secrets)
    api_key: str = field(default="", repr=False)
    pro_api_key: str = field(default="", repr=False)
    base_url: str = DEFAULT_BASE_URL

    # Model Configuration
    flash_text_model: str = DEFAULT_FLASH_TEXT_MODEL
    pro_text_model: str = DEFAULT_PRO_TEXT_MODEL
    vision_model: str = DEFAULT_VISION_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL

    # Ledger and persistence
    daily_token_limit: int = DAILY_TOKEN_LIMIT
    max_records: int = MAX_RECORDS  # in-memory cap
    max_saved_items: int = MAX_SAVED_ITEMS  # persisted slice
    persist_delay: float = PERSIST_DELAY_SECONDS
    storage_dir: Path = DEFAULT_STORAGE_DIR

    # Uploaded images larger than this are rejected before any API call
    max_image_bytes: int = MAX_IMAGE_BYTES

    # HTTP timeout (seconds)
    request_timeout: int = 120

    # Debug: log raw API payload/response with image data truncated
    debug_api: bool = False

    _validated: bool = field(default=False, repr=False)

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create a Config instance from environment variables.

        Environment variables:
            GEMINI_API_KEY (or API_KEY): Required for every API operation
            GEMINI_PRO_API_KEY: Separately authenticated key unlocking the pro tier
            PROMPTCRAFT_FLASH_MODEL / PROMPTCRAFT_PRO_MODEL: Text models per tier
            PROMPTCRAFT_VISION_MODEL / PROMPTCRAFT_IMAGE_MODEL: Extraction and preview models
            PROMPTCRAFT_DAILY_TOKEN_LIMIT, PROMPTCRAFT_MAX_RECORDS,
            PROMPTCRAFT_MAX_SAVED_ITEMS, PROMPTCRAFT_PERSIST_DELAY,
            PROMPTCRAFT_STORAGE_DIR, PROMPTCRAFT_TIMEOUT: Optional overrides

        Returns:
            Config instance populated from environment
        """

        def _int_env(name: str, default: int) -> int:
            val = os.getenv(name)
            if val is None or val == "":
                return default
            try:
                return int(val)
            except ValueError as e:
                raise ConfigurationError(f"{name} must be an integer, got {val!r}.") from e

        def _float_env(name: str, default: float) -> float:
            val = os.getenv(name)
            if val is None or val == "":
                return default
            try:
                return float(val)
            except ValueError as e:
                raise ConfigurationError(f"{name} must be a number, got {val!r}.") from e

        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or ""
        debug_api = os.getenv("PROMPTCRAFT_DEBUG_API", "").strip().lower() in ("1", "true", "yes")
        storage_dir = os.getenv("PROMPTCRAFT_STORAGE_DIR")

        config = cls(
            api_key=api_key,
            pro_api_key=os.getenv("GEMINI_PRO_API_KEY", ""),
            base_url=os.getenv("PROMPTCRAFT_BASE_URL", DEFAULT_BASE_URL),
            flash_text_model=os.getenv("PROMPTCRAFT_FLASH_MODEL", cls.flash_text_model),
            pro_text_model=os.getenv("PROMPTCRAFT_PRO_MODEL", cls.pro_text_model),
            vision_model=os.getenv("PROMPTCRAFT_VISION_MODEL", cls.vision_model),
            image_model=os.getenv("PROMPTCRAFT_IMAGE_MODEL", cls.image_model),
            daily_token_limit=_int_env("PROMPTCRAFT_DAILY_TOKEN_LIMIT", DAILY_TOKEN_LIMIT),
            max_records=_int_env("PROMPTCRAFT_MAX_RECORDS", MAX_RECORDS),
            max_saved_items=_int_env("PROMPTCRAFT_MAX_SAVED_ITEMS", MAX_SAVED_ITEMS),
            persist_delay=_float_env("PROMPTCRAFT_PERSIST_DELAY", PERSIST_DELAY_SECONDS),
            storage_dir=Path(storage_dir).expanduser() if storage_dir else DEFAULT_STORAGE_DIR,
            request_timeout=_int_env("PROMPTCRAFT_TIMEOUT", 120),
            debug_api=debug_api,
        )

        return config

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        logger.debug("Validating config")

        if not self.api_key:
            raise ConfigurationError(
                "API Key not configured. Set GEMINI_API_KEY environment variable "
                "or provide it explicitly."
            )
        if self.daily_token_limit <= 0:
            raise ConfigurationError(
                f"daily_token_limit must be positive, got {self.daily_token_limit}."
            )
        if self.max_records <= 0 or self.max_saved_items <= 0:
            raise ConfigurationError(
                f"max_records and max_saved_items must be positive, got "
                f"{self.max_records} and {self.max_saved_items}."
            )
        if self.max_saved_items > self.max_records:
            raise ConfigurationError(
                f"max_saved_items ({self.max_saved_items}) must not exceed "
                f"max_records ({self.max_records})."
            )
        if self.persist_delay <= 0:
            raise ConfigurationError(
                f"persist_delay must be positive, got {self.persist_delay}."
            )

        self._validated = True

    def is_valid(self) -> bool:
        """
        Check if configuration has been validated.

        Returns:
            True if validate() has been called successfully
        """
        return self._validated

    def has_pro_access(self) -> bool:
        """Return True if a separately authenticated pro-tier key is configured."""
        return bool(self.pro_api_key)

    def set_api_key(self, api_key: str) -> None:
        """
        Set the API key.

        Args:
            api_key: The API key to use

        Raises:
            ConfigurationError: If API key is empty
        """
        if not api_key:
            raise ConfigurationError("API key cannot be empty")

        self.api_key = api_key
        self._validated = False  # Need to revalidate

    def set_pro_api_key(self, api_key: str) -> None:
        """
        Set the key that unlocks the pro model tier.

        Raises:
            ConfigurationError: If API key is empty
        """
        if not api_key:
            raise ConfigurationError("Pro API key cannot be empty")

        self.pro_api_key = api_key


# Global configuration instance
_global_config: Config | None = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        The global Config instance
    """
    global _global_config
    if _global_config is None:
        _global_config = Config.from_env()
    return _global_config


def set_config(config: Config) -> None:
    """
    Set the global configuration instance.

    Args:
        config: The Config instance to use globally
    """
    global _global_config
    _global_config = config
