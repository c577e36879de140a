"""User interface preferences (dark mode, sounds)."""

from pydantic import BaseModel

from finquest.events import EventBus
from finquest.stores.base import PersistentStore


class PreferencesState(BaseModel):
    dark_mode: bool = False
    sounds_enabled: bool = True


class PreferencesStore(PersistentStore):
    partition = "preferences-storage"

    def __init__(self, bus: EventBus):
        super().__init__(bus)
        self._state = PreferencesState()

    @property
    def dark_mode(self) -> bool:
        return self._state.dark_mode

    @property
    def sounds_enabled(self) -> bool:
        return self._state.sounds_enabled

    def toggle_dark_mode(self) -> bool:
        return self.set_dark_mode(not self._state.dark_mode)

    def set_dark_mode(self, enabled: bool) -> bool:
        self._state = self._state.model_copy(update={"dark_mode": bool(enabled)})
        return self._state.dark_mode

    def toggle_sounds(self) -> bool:
        return self.set_sounds_enabled(not self._state.sounds_enabled)

    def set_sounds_enabled(self, enabled: bool) -> bool:
        self._state = self._state.model_copy(update={"sounds_enabled": bool(enabled)})
        return self._state.sounds_enabled

    def snapshot(self) -> dict:
        return self._state.model_dump(mode="json")

    def restore(self, data: dict) -> None:
        self._state = self._load_state(PreferencesState, data)
