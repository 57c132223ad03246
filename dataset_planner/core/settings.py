"""
Settings Store Module
=====================

Persists externally configured service credentials (currently the
Firecrawl API key) in a small YAML file on the local machine. Values are
read at call time so a key saved mid-session is picked up by the next
validation request.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml

from dataset_planner.core.errors import SettingsError

logger = logging.getLogger(__name__)

SUPPORTED_SERVICES = ("firecrawl",)

# Environment variables consulted when no key has been saved
_ENV_FALLBACKS = {
    "firecrawl": "FIRECRAWL_API_KEY",
}


class SettingsStore:
    """YAML-file backed store for service API keys."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()

    def _read(self) -> dict[str, str]:
        """Read the settings file, returning an empty mapping if absent."""
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.warning(f"Ignoring unreadable settings file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed settings file {self.path}: not a mapping")
            return {}
        keys = data.get("api_keys") or {}
        if not isinstance(keys, dict):
            logger.warning(f"Ignoring malformed settings file {self.path}: api_keys is not a mapping")
            return {}
        return {str(k): str(v) for k, v in keys.items() if v}

    def _write(self, keys: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump({"api_keys": keys}, f, default_flow_style=False)
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            logger.debug(f"Could not restrict permissions on {self.path}")

    def get_api_key(self, service: str) -> str | None:
        """
        Get the API key for a service.

        Args:
            service: Service name (e.g., "firecrawl")

        Returns:
            The saved key, else the environment fallback, else None
        """
        key = self._read().get(service)
        if key:
            return key
        env_var = _ENV_FALLBACKS.get(service)
        if env_var:
            return os.environ.get(env_var) or None
        return None

    def save_api_key(self, service: str, api_key: str) -> None:
        """
        Save an API key for a service.

        Raises:
            SettingsError: If the key is blank or the service is unknown
        """
        if not isinstance(api_key, str) or not api_key.strip():
            raise SettingsError("Invalid API key format")
        if service not in SUPPORTED_SERVICES:
            raise SettingsError(f"Invalid service name: {service}")

        keys = self._read()
        keys[service] = api_key.strip()
        self._write(keys)
        logger.info(f"Saved API key for {service}")

    def clear_api_key(self, service: str) -> bool:
        """
        Remove a saved API key.

        Returns:
            True if a key was removed, False if none was saved
        """
        keys = self._read()
        if service not in keys:
            return False
        del keys[service]
        self._write(keys)
        return True

    def saved_services(self) -> list[str]:
        """List services that have a saved key."""
        return sorted(self._read())


def get_default_settings_store() -> SettingsStore:
    """
    Get the default settings store.

    Uses the DATASET_PLANNER_HOME environment variable or defaults
    to ~/.dataset_planner.
    """
    home = os.environ.get("DATASET_PLANNER_HOME", "~/.dataset_planner")
    return SettingsStore(Path(home) / "settings.yaml")
