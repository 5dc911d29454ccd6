# mealplan_client/core/login.py
from __future__ import annotations

from typing import Optional

from loguru import logger
from PySide6.QtCore import QObject, QTimer, Signal

from ..services.api_client import APIClient, InvalidCredentialsError
from .local_store import LocalStore
from .lockout import Clock, LockoutPolicy

TICK_INTERVAL_MS = 1000


class LoginInProgressError(Exception):
    """A login request is already outstanding."""

    def __init__(self) -> None:
        super().__init__("A login attempt is already in progress")


class LoginController(QObject):
    """
    Non-visual half of the login screen.

    Gates every attempt through the lockout policy, lets only one request be
    in flight at a time, and records the outcome once it resolves. While the
    screen is active a 1 s timer re-checks whether the lockout has expired.
    """

    lockout_changed = Signal()
    logged_in = Signal(str)

    def __init__(
        self,
        api: APIClient,
        store: LocalStore,
        clock: Clock | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self.api = api
        self.store = store
        self.policy = LockoutPolicy(store, clock=clock)
        self._timer: Optional[QTimer] = None
        self._in_flight = False

    # ---------- surface lifecycle ----------
    def activate(self) -> None:
        """Start the recurring lockout check (call when the screen is shown)."""
        self.tick()
        if self._timer is None:
            self._timer = QTimer(self)
            self._timer.setInterval(TICK_INTERVAL_MS)
            self._timer.timeout.connect(self.tick)
        self._timer.start()

    def deactivate(self) -> None:
        """Stop the timer (call when the screen is torn down)."""
        if self._timer is not None:
            self._timer.stop()

    @property
    def is_active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def tick(self) -> None:
        if self.policy.tick():
            self.lockout_changed.emit()

    # ---------- state for the view ----------
    @property
    def busy(self) -> bool:
        """True while a login request is outstanding; the view disables its button."""
        return self._in_flight

    def can_submit(self) -> bool:
        return not self._in_flight and not self.policy.is_locked()

    def cached_username(self) -> str:
        return self.store.username()

    # ---------- actions ----------
    async def submit(self, username: str, password: str) -> str:
        """
        Attempt a login and return the token.

        Raises RateLimitError while locked out and LoginInProgressError while
        another attempt is pending; neither contacts the server.
        Raises InvalidCredentialsError for an unknown user or a wrong
        password; both count towards the lockout. Other failures (blank or
        malformed input, timeouts, server errors) propagate without counting.
        """
        if self._in_flight:
            raise LoginInProgressError()
        self.policy.check()

        self._in_flight = True
        try:
            token = await self.api.login(username=username, password=password)
        except InvalidCredentialsError:
            state = self.policy.record_failure()
            logger.info(f"Login failed ({state.failed_attempts} consecutive)")
            if state.locked:
                self.lockout_changed.emit()
            raise
        finally:
            self._in_flight = False

        self.policy.record_success()
        self.store.set_token(token.access_token)
        self.store.set_username(username)
        self.logged_in.emit(username)
        return token.access_token

    def restore_session(self) -> bool:
        """Hand a stored token back to the API client (the server still checks expiry)."""
        token = self.store.token()
        if not token:
            return False
        self.api.set_token(token)
        return True

    def logout(self) -> None:
        """Discard the session token; the cached username stays for pre-fill."""
        self.api.clear_token()
        self.store.set_token(None)
