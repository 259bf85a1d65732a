"""
Configuration management.

Uses Pydantic Settings for environment variable handling and validation,
with an optional config.yaml supplying defaults.
"""

import json
import os
import yaml
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Insecure demo fallback used when the API key environment variable is unset.
DEFAULT_API_KEY = "HereComesTheSunAndISayItsAlright"


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Read the YAML config file, if there is one.

    Defaults to USERAPI_CONFIG_FILE, then config.yaml in the working directory.
    """
    path = Path(config_path or os.environ.get("USERAPI_CONFIG_FILE", "config.yaml"))
    if not path.is_file():
        return {}

    with path.open("r") as f:
        return yaml.safe_load(f) or {}


class SecuritySettings(BaseSettings):
    """API key gate configuration."""

    api_key_env: str = Field(default="MYAPI_API_KEY", description="Environment variable holding the API key")
    api_key_header: str = Field(default="X-API-Key", description="Header carrying the API key")
    api_key_query: str = Field(default="api_key", description="Query parameter carrying the API key")
    protected_prefix: str = Field(default="/users", description="Path prefix guarded by the API key")

    @field_validator("protected_prefix")
    def normalize_prefix(cls, v: str) -> str:
        """Ensure the prefix starts with a slash and has no trailing slash."""
        v = "/" + v.strip().strip("/")
        return v

    def resolve_api_key(self) -> str:
        """Read the API key from the configured environment variable."""
        return os.environ.get(self.api_key_env) or DEFAULT_API_KEY

    def uses_default_api_key(self) -> bool:
        return not os.environ.get(self.api_key_env)

    class Config:
        env_prefix = "USERAPI_SECURITY_"


class StoreSettings(BaseSettings):
    """In-memory user store configuration."""

    seed_demo_user: bool = Field(default=True, description="Seed the store with a demo user on startup")

    class Config:
        env_prefix = "USERAPI_STORE_"


class Settings(BaseSettings):
    """Main application settings."""

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Log level")
    log_file: Path = Field(default=Path("server.log"), description="Append-only request log file")
    cors_origins: List[str] = Field(default=["*"], description="Allowed CORS origins")

    # Component settings
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    store: StoreSettings = Field(default_factory=StoreSettings)

    class Config:
        env_prefix = "USERAPI_"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with config file and env support."""
    config_data = load_config_file()

    # Config file provides defaults, env vars override
    if config_data:
        _set_env_from_config(config_data)

    return Settings()


def _set_env_from_config(config_data: Dict[str, Any]) -> None:
    """Set environment variables from config file if not already set."""
    mappings = {
        ("server", "host"): "USERAPI_HOST",
        ("server", "port"): "USERAPI_PORT",
        ("server", "debug"): "USERAPI_DEBUG",
        ("server", "log_level"): "USERAPI_LOG_LEVEL",
        ("server", "log_file"): "USERAPI_LOG_FILE",
        ("security", "api_key_env"): "USERAPI_SECURITY_API_KEY_ENV",
        ("security", "api_key_header"): "USERAPI_SECURITY_API_KEY_HEADER",
        ("security", "api_key_query"): "USERAPI_SECURITY_API_KEY_QUERY",
        ("security", "protected_prefix"): "USERAPI_SECURITY_PROTECTED_PREFIX",
        ("store", "seed_demo_user"): "USERAPI_STORE_SEED_DEMO_USER",
    }

    for (section, key), env_var in mappings.items():
        if env_var not in os.environ:
            value = (config_data.get(section) or {}).get(key)
            if value is not None:
                os.environ[env_var] = str(value)

    # Lists go through JSON so pydantic-settings can decode them
    if "USERAPI_CORS_ORIGINS" not in os.environ:
        cors_origins = (config_data.get("server") or {}).get("cors_origins")
        if cors_origins:
            os.environ["USERAPI_CORS_ORIGINS"] = json.dumps(cors_origins)


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
