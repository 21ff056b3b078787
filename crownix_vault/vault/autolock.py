"""
Vault Auto-Lock — Cancellable inactivity timer layered over the session.

Losing window focus starts a countdown; regaining focus (or any activity)
before it expires cancels it. On expiry the lock callback runs once and to
completion: focus changes while it runs are ignored.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .session import SessionManager

logger = logging.getLogger("crownix.vault")

LockCallback = Callable[[], Awaitable[None]]


class AutoLockTimer:
    """Focus driven auto-lock.

    Must be driven from inside a running event loop.
    """

    def __init__(
        self,
        session: SessionManager,
        on_expire: LockCallback,
        timeout: float,
        enabled: bool = True,
    ):
        self._session = session
        self._on_expire = on_expire
        self.timeout = timeout
        self.enabled = enabled
        self._task: Optional[asyncio.Task] = None
        self._firing = False

    @property
    def pending(self) -> bool:
        """A countdown is running and has not expired yet."""
        return self._running() and not self._firing

    @property
    def firing(self) -> bool:
        """The countdown expired and the lock callback is running."""
        return self._firing

    def _running(self) -> bool:
        return self._task is not None and not self._task.done()

    def focus_lost(self) -> None:
        """Start the countdown unless one is already running."""
        if not self.enabled or self._running() or not self._session.is_unlocked():
            return
        self._task = asyncio.get_running_loop().create_task(self._countdown())
        logger.debug("Auto-lock armed for %ss", self.timeout)

    def focus_gained(self) -> None:
        self.cancel()

    activity = focus_gained

    def cancel(self) -> None:
        """Cancel a pending countdown without locking.

        Has no effect once the countdown expired.
        """
        if self._firing:
            return
        if self.pending:
            self._task.cancel()
            logger.debug("Auto-lock cancelled")
        self._task = None

    async def _countdown(self) -> None:
        await asyncio.sleep(self.timeout)
        self._firing = True
        try:
            if not self._session.is_unlocked():
                # explicit lock already happened
                return
            logger.info("Auto-lock timeout reached, locking vault")
            await self._on_expire()
        except Exception:
            logger.exception("Auto-lock callback failed")
        finally:
            self._firing = False
