from __future__ import annotations

from grantlang.config.loader import CONFIG_FILENAME, ConfigSource, load_config, registry_path, resolve_config
from grantlang.config.model import AppConfig

__all__ = ["AppConfig", "CONFIG_FILENAME", "ConfigSource", "load_config", "registry_path", "resolve_config"]
