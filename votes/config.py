"""
Settings

Loads runtime settings from an optional JSON file, then environment
variables. Missing or broken configuration never stops the service; it
falls back to defaults.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional
import json
import os

from .log import get_logger

logger = get_logger("votes.config")

ENV_ENDPOINT = "VOTES_ENDPOINT"
ENV_STORE_DIR = "VOTES_STORE_DIR"
ENV_TIMEOUT = "VOTES_TIMEOUT"
ENV_CONFIG = "VOTES_CONFIG"

DEFAULT_STORE_DIR = "./data/votes"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the vote service."""
    endpoint: str = ""
    store_dir: str = DEFAULT_STORE_DIR
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = "VoteTally/1.0"

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Settings':
        """Load from JSON (if any) and apply environment overrides."""
        if config_path is None and os.environ.get(ENV_CONFIG):
            config_path = Path(os.environ[ENV_CONFIG])

        settings = cls()
        if config_path is not None:
            settings = settings.merged(_load_json(Path(config_path)))

        overrides: Dict[str, Any] = {}
        if ENV_ENDPOINT in os.environ:
            overrides['endpoint'] = os.environ[ENV_ENDPOINT]
        if ENV_STORE_DIR in os.environ:
            overrides['store_dir'] = os.environ[ENV_STORE_DIR]
        if ENV_TIMEOUT in os.environ:
            overrides['timeout'] = os.environ[ENV_TIMEOUT]
        return settings.merged(overrides)

    def merged(self, values: Dict[str, Any]) -> 'Settings':
        """Copy with the known keys of `values` applied."""
        changes: Dict[str, Any] = {}
        for name in ('endpoint', 'store_dir', 'user_agent'):
            if values.get(name) is not None:
                changes[name] = str(values[name])
        if values.get('timeout') is not None:
            changes['timeout'] = _timeout(values['timeout'], self.timeout)
        return replace(self, **changes)


def _timeout(value: Any, default: float) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid timeout {value!r}; using {default}")
        return default
    if timeout <= 0:
        logger.warning(f"Non-positive timeout {value!r}; using {default}")
        return default
    return timeout


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning(f"Config file not found at {path}; using defaults")
        return {}
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to read config {path}, using defaults: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"Config {path} is not a JSON object; using defaults")
        return {}
    return data
