# mealplan_client/core/local_store.py
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QSettings

TOKEN_KEY = "session/token"
USERNAME_KEY = "login/username"
FAILED_ATTEMPTS_KEY = "lockout/failed_attempts"
LOCKOUT_UNTIL_KEY = "lockout/lockout_until"


class LocalStore:
    """
    Durable per-device storage for the session token, the last username
    (pre-fill only, never used for authorization) and the lockout counters.
    Every write is synced so a relaunch sees the same state.
    """

    def __init__(self, settings: QSettings | None = None):
        self.settings = settings or QSettings("MealPlanner", "Client")

    @classmethod
    def at_path(cls, path: Path | str) -> "LocalStore":
        return cls(QSettings(str(path), QSettings.Format.IniFormat))

    def _write(self, key: str, value) -> None:
        if value is None:
            self.settings.remove(key)
        else:
            self.settings.setValue(key, value)
        self.settings.sync()

    # ---------- session ----------
    def token(self) -> Optional[str]:
        return self.settings.value(TOKEN_KEY, "", str) or None

    def set_token(self, token: Optional[str]) -> None:
        self._write(TOKEN_KEY, token)

    def username(self) -> str:
        return self.settings.value(USERNAME_KEY, "", str)

    def set_username(self, username: Optional[str]) -> None:
        self._write(USERNAME_KEY, username)

    # ---------- lockout ----------
    def failed_attempts(self) -> int:
        try:
            return max(0, int(self.settings.value(FAILED_ATTEMPTS_KEY, 0, int)))
        except (TypeError, ValueError):
            return 0

    def lockout_until(self) -> Optional[datetime]:
        raw = self.settings.value(LOCKOUT_UNTIL_KEY, "", str)
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            return None

    def save_lockout(self, failed_attempts: int, lockout_until: Optional[datetime]) -> None:
        self.settings.setValue(FAILED_ATTEMPTS_KEY, int(failed_attempts))
        if lockout_until is None:
            self.settings.remove(LOCKOUT_UNTIL_KEY)
        else:
            self.settings.setValue(LOCKOUT_UNTIL_KEY, lockout_until.isoformat())
        self.settings.sync()
