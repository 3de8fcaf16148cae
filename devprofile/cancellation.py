"""Cooperative cancellation for analysis runs."""
from __future__ import annotations

import asyncio
from typing import Optional

from devprofile.errors import CancelledError


class CancellationToken:
    """A one-shot cancellation flag that async code can poll or await.

    ``cancel()`` may be called from a signal handler or another task. The
    engine checks the token right before dispatching the model call, and
    providers that support it race their request against ``wait()``.
    """

    def __init__(self):
        self._event: Optional[asyncio.Event] = None
        self._cancelled = False
        self.reason = "Analysis cancelled by user"

    def _get_event(self) -> asyncio.Event:
        # Created lazily so the event binds to the running loop
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        return self._event

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: Optional[str] = None) -> None:
        if reason:
            self.reason = reason
        self._cancelled = True
        if self._event is not None:
            self._event.set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._get_event().wait()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CancelledError(self.reason)
