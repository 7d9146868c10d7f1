from __future__ import annotations

from typing import Optional, Protocol


class SettingsRepository(Protocol):
    """Read interface onto the Settings module's key/value rows."""

    def get_value(self, key: str) -> Optional[str]:
        raise NotImplementedError
