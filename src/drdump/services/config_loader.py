"""Configuration loader for drdump."""

from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from drdump.errors import DumpError
from drdump.models import Settings


class ConfigLoader:
    """Loads YAML configuration files for settings and CLI defaults."""

    CONNECTION_KEYS = {
        "host",
        "port",
        "username",
        "password_id",
        "databases",
        "region",
        "project_id",
        "verbose",
        "log_file",
    }
    SETTINGS_KEYS = {item.name for item in fields(Settings)}
    SUPPORTED_KEYS = CONNECTION_KEYS | SETTINGS_KEYS

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise DumpError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise DumpError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise DumpError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise DumpError(f"Unknown configuration keys: {unknown_list}")

        return parsed

    def settings_from(self, values: Dict[str, Any]) -> Settings:
        return Settings(**{key: value for key, value in values.items() if key in self.SETTINGS_KEYS})

    def load_settings(self, config_path: Optional[str]) -> Settings:
        return self.settings_from(self.load(config_path))
