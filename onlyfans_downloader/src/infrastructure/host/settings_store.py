"""
Key/value store for user preferences (video quality, folder organization).

Components read the current settings at start and subscribe to changes,
so a new preference applies without restarting the page controller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import yaml

from onlyfans_downloader.src.infrastructure.yaml_configuration.config import (
    UserSettings,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


class SettingsStore:
    """In-memory settings with change notifications"""

    def __init__(self, settings: UserSettings | None = None) -> None:
        self._settings = settings or UserSettings()
        self._listeners: list[Callable[[UserSettings], None]] = []

    def get(self) -> UserSettings:
        return self._settings.model_copy()

    def update(self, **changes: Any) -> UserSettings:
        """Validate and apply changes, then notify every subscriber."""
        updated = UserSettings.model_validate(
            {**self._settings.model_dump(), **changes},
        )
        if updated == self._settings:
            return self.get()

        self._settings = updated
        for listener in list(self._listeners):
            listener(self.get())
        return self.get()

    def subscribe(
        self, listener: Callable[[UserSettings], None]
    ) -> Callable[[], None]:
        """Subscribe to changes, returns a function to unsubscribe."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


class YamlSettingsStore(SettingsStore):
    """Settings persisted in the `settings:` section of the YAML config"""

    SECTION = 'settings'

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        super().__init__(self._read())

    def _read_document(self) -> dict[str, Any]:
        if not self.config_path.exists():
            return {}
        with self.config_path.open(encoding='utf-8') as f:
            document = yaml.safe_load(f)
        return document if isinstance(document, dict) else {}

    def _read(self) -> UserSettings:
        section = self._read_document().get(self.SECTION) or {}
        return UserSettings.model_validate(section)

    def update(self, **changes: Any) -> UserSettings:
        settings = super().update(**changes)

        document = self._read_document()
        document[self.SECTION] = settings.model_dump(mode='json')
        with self.config_path.open(mode='w', encoding='utf-8') as f:
            yaml.safe_dump(document, f, sort_keys=False)

        return settings

    def reload(self) -> UserSettings:
        """Re-read the file (e.g. edited by hand) and notify on changes."""
        return super().update(**self._read().model_dump())
