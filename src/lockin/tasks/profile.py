# src/lockin/tasks/profile.py

from __future__ import annotations

import logging

from ..storage.bridge import KeyValueBridge
from ..storage.cell import PersistedCell, passthrough
from ..storage.errors import StorageError

logger = logging.getLogger(__name__)

USERNAME_KEY = "username"
NOTIFICATION_PREFERENCE_KEY = "notificationPreference"


class UserProfile:
    """
    Display name and the "notify me" default for new tasks.

    - username is a PersistedCell stored as a raw string
    - the notification preference is a plain "true"/"false" entry written
      straight through the bridge; it only seeds new tasks and never touches
      notify_enabled of existing ones
    """

    def __init__(self, bridge: KeyValueBridge, *, default_username: str = "User") -> None:
        self._bridge = bridge
        self._username: PersistedCell[str] = PersistedCell(
            bridge,
            USERNAME_KEY,
            default_username,
            serialize=passthrough,
            deserialize=passthrough,
            on_error=lambda e: logger.error("Username storage error: %s", e),
        )

    @property
    def username(self) -> str:
        return self._username.value

    def set_username(self, name: str) -> bool:
        clean = (name or "").strip()
        if not clean:
            return False
        self._username.set(clean)
        return True

    @property
    def notification_preference(self) -> bool:
        try:
            return self._bridge.get(NOTIFICATION_PREFERENCE_KEY) == "true"
        except StorageError as e:
            logger.warning("Cannot read notification preference: %s", e)
            return False

    def set_notification_preference(self, enabled: bool) -> None:
        try:
            self._bridge.set(NOTIFICATION_PREFERENCE_KEY, "true" if enabled else "false")
        except StorageError as e:
            logger.warning("Cannot save notification preference: %s", e)
