"""JSON persistence for user settings."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from heic_batch.errors import SettingsError
from heic_batch.schemas import Settings

logger = logging.getLogger(__name__)

SETTINGS_ENV = "HEIC_BATCH_SETTINGS_FILE"


def default_settings_path() -> Path:
    """Return the settings file location.

    ``HEIC_BATCH_SETTINGS_FILE`` wins; otherwise ``$XDG_CONFIG_HOME`` (or
    ``~/.config``) ``/heic-batch/settings.json``.
    """
    override = os.getenv(SETTINGS_ENV)
    if override:
        return Path(override).expanduser()
    base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "heic-batch" / "settings.json"


class SettingsStore:
    """Load and save ``Settings`` as JSON."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or default_settings_path()

    def load(self) -> Settings:
        """Read settings, returning defaults when the file is absent.

        Raises
        ------
        SettingsError
            If the file exists but cannot be read or parsed.
        """
        if not self.path.exists():
            return Settings()
        try:
            raw = self.path.read_text(encoding="utf-8")
            return Settings.model_validate(json.loads(raw))
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise SettingsError(f"Cannot load settings from {self.path}: {exc}") from exc

    def save(self, settings: Settings) -> Path:
        """Write ``settings`` and return the file path."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(settings.model_dump_json(indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            raise SettingsError(f"Cannot write settings to {self.path}: {exc}") from exc
        logger.debug("saved settings to %s", self.path)
        return self.path

    def update(self, **changes: object) -> Settings:
        """Apply ``changes`` on top of the stored settings and persist them.

        Raises
        ------
        SettingsError
            If a changed value fails validation.
        """
        current = self.load()
        try:
            updated = Settings.model_validate({**current.model_dump(), **changes})
        except ValidationError as exc:
            raise SettingsError(f"Invalid settings value: {exc}") from exc
        self.save(updated)
        return updated

    def reset(self) -> Settings:
        """Restore defaults."""
        defaults = Settings()
        self.save(defaults)
        return defaults
