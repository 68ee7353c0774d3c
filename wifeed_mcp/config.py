import os
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from wifeed_mcp.errors import ConfigurationError


# ============================================================================
# ENVIRONMENT + SETTINGS
# ============================================================================

class Settings(BaseModel):
    """Process settings, read once at startup."""

    api_key: str = Field(min_length=1)
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    debug_api: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build settings from the environment (and a .env file, if present).

    Raises:
        ConfigurationError: WIFEED_API_KEY is not set, or a setting is invalid.
    """
    load_dotenv(env_file)

    api_key = os.getenv("WIFEED_API_KEY", "").strip()
    if not api_key:
        raise ConfigurationError(
            "WIFEED_API_KEY environment variable is not set. "
            "Please set it before starting the server."
        )

    transport = os.getenv("TRANSPORT", "stdio").strip().lower()
    if transport not in ("stdio", "http"):
        raise ConfigurationError(
            f"Invalid TRANSPORT '{transport}'. Valid options: stdio, http"
        )

    port = os.getenv("PORT", "3000")
    if not port.isdigit():
        raise ConfigurationError(f"Invalid PORT '{port}'. Must be an integer.")

    try:
        return Settings(
            api_key=api_key,
            transport=transport,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(port),
            debug_api=_env_flag("DEBUG_WIFEED_API"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid server settings: {e}") from e
