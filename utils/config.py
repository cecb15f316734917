"""
Simple config loader for backend components.
Reads the TOML defaults file that ships next to the settings module.

@.architecture
Incoming: config/defaults.toml, config/settings.py --- {TOML file, load_config calls}
Processing: load_config(), get_fallback_config() --- {2 jobs: config_loading, fallback_generation}
Outgoing: config/settings.py --- {Dict[str, Any] config data}
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path(__file__).parent.parent / "config" / "defaults.toml"


def load_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from the TOML defaults file."""
    config_file = config_file or DEFAULT_CONFIG_FILE
    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as e:
        logger.warning(f"Failed to load config file {config_file}: {e}")
        return get_fallback_config()


def get_fallback_config() -> Dict[str, Any]:
    """Fallback configuration if the TOML file can't be loaded."""
    return {
        "server": {
            "host": "127.0.0.1",
            "port": 3000,
        },
        "storage": {
            "max_upload_bytes": 10 * 1024 * 1024,
        },
    }
