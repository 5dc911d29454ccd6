"""Device-side brute-force guard for the login surface.

Two states:

* Open: fewer than ``MAX_FAILED_ATTEMPTS`` consecutive failures; attempts go
  to the server.
* Locked: the limit was reached; ``lockout_until`` is set to the time of the
  last failure plus ``LOCKOUT_DURATION`` and attempts are refused locally.

Once the clock passes ``lockout_until`` the policy returns to Open with a
zeroed counter, so the next failure counts as the first of a new window.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from loguru import logger

from .local_store import LocalStore

MAX_FAILED_ATTEMPTS = 5
LOCKOUT_DURATION = timedelta(minutes=5)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RateLimitError(Exception):
    """Too many failed logins on this device; nothing was sent to the server."""

    def __init__(self, retry_after: timedelta):
        seconds = max(0, int(retry_after.total_seconds() + 0.999))
        super().__init__(f"Too many failed attempts. Try again in {seconds} seconds.")
        self.retry_after = retry_after


@dataclass(frozen=True)
class LockoutState:
    failed_attempts: int = 0
    lockout_until: Optional[datetime] = None

    @property
    def locked(self) -> bool:
        return self.lockout_until is not None


class LockoutPolicy:
    """Counter and timer persisted through a ``LocalStore``."""

    def __init__(self, store: LocalStore, clock: Clock | None = None):
        self.store = store
        self._clock = clock or utcnow
        self._state = self._load()

    def _load(self) -> LockoutState:
        failed = self.store.failed_attempts()
        until = self.store.lockout_until()
        if until is not None and until.tzinfo is None:
            until = until.replace(tzinfo=timezone.utc)
        if failed >= MAX_FAILED_ATTEMPTS and until is None:
            # Counter says locked but the deadline was lost: start a fresh window.
            until = self._clock() + LOCKOUT_DURATION
            self.store.save_lockout(failed, until)
        return LockoutState(failed, until)

    def _save(self, state: LockoutState) -> None:
        self._state = state
        self.store.save_lockout(state.failed_attempts, state.lockout_until)

    @property
    def state(self) -> LockoutState:
        return self._state

    def tick(self) -> bool:
        """Leave the Locked state once the window has passed.

        Returns True when this call unlocked the policy.
        """
        until = self._state.lockout_until
        if until is None or self._clock() < until:
            return False
        self._save(LockoutState())
        logger.info("Login lockout window elapsed")
        return True

    def is_locked(self) -> bool:
        self.tick()
        return self._state.locked

    def remaining(self) -> timedelta:
        if not self.is_locked():
            return timedelta(0)
        return self._state.lockout_until - self._clock()

    def check(self) -> None:
        """Raise ``RateLimitError`` while locked."""
        if self.is_locked():
            raise RateLimitError(self.remaining())

    def record_failure(self) -> LockoutState:
        if self.is_locked():
            return self._state
        failed = self._state.failed_attempts + 1
        until = None
        if failed >= MAX_FAILED_ATTEMPTS:
            until = self._clock() + LOCKOUT_DURATION
            logger.warning(f"{failed} failed logins; locked until {until.isoformat()}")
        self._save(LockoutState(failed, until))
        return self._state

    def record_success(self) -> LockoutState:
        self._save(LockoutState())
        return self._state
