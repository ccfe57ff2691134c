"""Configuration management for stack status."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from .stack import TRUNK_NAMES

logger = logging.getLogger(__name__)

YAML_CONFIG = "~/.stack-status.yaml"
JSON_CONFIG = "~/.stack-status.json"

DEFAULT_INTERVAL = 10
DEFAULT_MAX_CONCURRENCY = 4


class Config:
    """Configuration management."""

    def __init__(self, config_path: str | None = None) -> None:
        # YAML config wins over JSON when both exist
        if config_path:
            self.config_path = Path(config_path).expanduser()
        elif Path(YAML_CONFIG).expanduser().exists():
            self.config_path = Path(YAML_CONFIG).expanduser()
        else:
            self.config_path = Path(JSON_CONFIG).expanduser()

        self.data = self._load_config()

    @staticmethod
    def defaults() -> dict[str, Any]:
        return {
            "interval": DEFAULT_INTERVAL,  # Watch mode refresh interval in seconds
            "details": False,  # Show individual checks by default
            "trunk_names": sorted(TRUNK_NAMES),
            "max_concurrency": DEFAULT_MAX_CONCURRENCY,  # Parallel gh lookups per refresh
            "gh_command": "gh",
            "gt_command": "gt",
            "debug": False,
            "log_file": "/tmp/stack-status-debug.log",
        }

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from YAML or JSON file or create default."""
        default_config = self.defaults()

        if self.config_path.exists():
            with open(self.config_path) as f:
                if self.config_path.suffix in [".yaml", ".yml"]:
                    loaded = yaml.safe_load(f) or {}
                else:
                    loaded = json.load(f)
            if not isinstance(loaded, dict):
                logger.warning("Ignoring %s: top level is not a mapping", self.config_path)
                return default_config
            return {**default_config, **loaded}

        self._save_config(default_config)
        return default_config

    def _save_config(self, config: dict[str, Any]) -> None:
        """Save configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w") as f:
            json.dump(config, f, indent=2)

    def get_interval(self) -> int:
        """Get the watch interval, falling back to the default when invalid."""
        try:
            interval = int(self.data.get("interval", DEFAULT_INTERVAL))
        except (TypeError, ValueError):
            return DEFAULT_INTERVAL
        return interval if interval >= 1 else DEFAULT_INTERVAL

    def get_max_concurrency(self) -> int:
        try:
            value = int(self.data.get("max_concurrency", DEFAULT_MAX_CONCURRENCY))
        except (TypeError, ValueError):
            return DEFAULT_MAX_CONCURRENCY
        return max(1, value)

    def get_trunk_names(self) -> frozenset[str]:
        names = self.data.get("trunk_names") or TRUNK_NAMES
        return frozenset(str(name) for name in names)

    def show_details(self) -> bool:
        return bool(self.data.get("details", False))

    def is_debug(self) -> bool:
        return bool(self.data.get("debug", False))

    def get_log_file(self) -> Path:
        return Path(self.data.get("log_file") or "/tmp/stack-status-debug.log").expanduser()

    def get_gh_command(self) -> str:
        return self.data.get("gh_command") or "gh"

    def get_gt_command(self) -> str:
        return self.data.get("gt_command") or "gt"
