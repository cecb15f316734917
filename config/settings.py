"""
Settings Management

Pydantic-based settings schema with environment variable support.
Layers the TOML defaults file under environment overrides.

@.architecture
Incoming: utils/config.py, Environment variables, config/defaults.toml, main.py --- {Dict from load_config, str from os.environ, get_settings calls}
Processing: get_settings(), reload_settings(), build_settings(), field_validator() --- {4 jobs: configuration_loading, environment_variable_merging, schema_validation, caching}
Outgoing: app.py, main.py, api/dependencies.py --- {Settings Pydantic model with typed config sections}
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from utils.config import load_config as load_toml_config

PROJECT_ROOT = Path(__file__).resolve().parent.parent


# =============================================================================
# Settings Schemas
# =============================================================================

class ServerSettings(BaseModel):
    """HTTP server binding."""
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)


class StorageSettings(BaseModel):
    """File storage settings."""
    upload_dir: Path = Field(default_factory=lambda: PROJECT_ROOT / "uploads")
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, gt=0)
    chunk_size: int = Field(default=64 * 1024, gt=0)

    @field_validator('upload_dir')
    @classmethod
    def resolve_upload_dir(cls, v: Path) -> Path:
        """Storage root is always absolute once settings exist."""
        return Path(v).expanduser().resolve()


class MonitoringSettings(BaseModel):
    """Monitoring and logging configuration."""
    log_level: Optional[str] = None  # None: use the environment preset
    log_format: Optional[str] = None  # json|text
    metrics_enabled: bool = True

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in ('json', 'text'):
            raise ValueError("log_format must be 'json' or 'text'")
        return v


class SecuritySettings(BaseModel):
    """Security configuration."""
    allowed_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )
    security_headers_enabled: bool = True
    include_error_traceback: bool = False

    @field_validator('allowed_origins', mode='before')
    @classmethod
    def split_origins(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v


class Settings(BaseModel):
    """
    Main application settings.

    Loads configuration from:
    1. TOML defaults file (config/defaults.toml)
    2. Environment variables (PORT, UPLOAD_DIR, MAX_UPLOAD_BYTES, ...)
    3. Defaults defined in schemas

    Priority: Environment variables > TOML config > Defaults
    """

    app_name: str = "PDF Vault"
    app_version: str = "1.0.0"
    environment: str = "development"  # development|production|test

    server: ServerSettings = Field(default_factory=ServerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = ['development', 'production', 'test']
        if v not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v


# =============================================================================
# Settings Loader
# =============================================================================

# Environment variable -> (section, field); section None means top level
ENV_OVERRIDES = {
    "APP_ENVIRONMENT": (None, "environment"),
    "HOST": ("server", "host"),
    "PORT": ("server", "port"),
    "UPLOAD_DIR": ("storage", "upload_dir"),
    "MAX_UPLOAD_BYTES": ("storage", "max_upload_bytes"),
    "LOG_LEVEL": ("monitoring", "log_level"),
    "LOG_FORMAT": ("monitoring", "log_format"),
    "METRICS_ENABLED": ("monitoring", "metrics_enabled"),
    "CORS_ALLOWED_ORIGINS": ("security", "allowed_origins"),
}


def build_settings(
    environ: Optional[Mapping[str, str]] = None,
    toml_config: Optional[Dict[str, Any]] = None
) -> Settings:
    """
    Merge TOML config and environment variables into a Settings instance.

    Args:
        environ: Environment mapping (defaults to os.environ)
        toml_config: Parsed TOML config (defaults to config/defaults.toml)

    Returns:
        Settings: Validated application settings
    """
    environ = os.environ if environ is None else environ
    toml_config = load_toml_config() if toml_config is None else toml_config

    settings_dict: Dict[str, Any] = {}
    for section in ("server", "storage", "monitoring", "security"):
        if isinstance(toml_config.get(section), dict):
            settings_dict[section] = dict(toml_config[section])

    if environment := toml_config.get("app", {}).get("environment"):
        settings_dict["environment"] = environment

    for env_name, (section, field) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        if section is None:
            settings_dict[field] = value
        else:
            settings_dict.setdefault(section, {})[field] = value

    return Settings(**settings_dict)


@lru_cache()
def get_settings() -> Settings:
    """
    Load and return application settings (cached).

    Returns:
        Settings: Complete application settings
    """
    return build_settings()


def reload_settings() -> Settings:
    """
    Reload settings (clears cache).

    Returns:
        Settings: Reloaded application settings
    """
    get_settings.cache_clear()
    return get_settings()
