"""
Utilities Package - Helper modules.

- config: TOML defaults loading
"""

from .config import (
    load_config,
    get_fallback_config,
    DEFAULT_CONFIG_FILE,
)

__all__ = [
    'load_config',
    'get_fallback_config',
    'DEFAULT_CONFIG_FILE',
]
