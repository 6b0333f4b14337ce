"""
Timers bound to a viewing-context epoch.

Every timer remembers the epoch it was scheduled in. Teardown bumps the epoch
and cancels whatever is still pending, and a timer which fires anyway (it was
already queued by the loop) checks the epoch and does nothing.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable


class EpochScheduler:
    """Schedules callbacks which become no-ops once their epoch is over."""

    def __init__(self) -> None:
        self.epoch = 0
        self._handles: set[asyncio.TimerHandle] = set()

    @property
    def pending(self) -> int:
        return len(self._handles)

    def is_current(self, epoch: int) -> bool:
        return epoch == self.epoch

    def call_later(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
    ) -> asyncio.TimerHandle:
        epoch = self.epoch
        holder: list[asyncio.TimerHandle] = []

        def fire() -> None:
            if holder:
                self._handles.discard(holder[0])
            if not self.is_current(epoch):
                return
            callback(*args)

        handle = asyncio.get_running_loop().call_later(delay, fire)
        holder.append(handle)
        self._handles.add(handle)
        return handle

    def cancel(self, handle: asyncio.TimerHandle | None) -> None:
        if handle is None:
            return
        handle.cancel()
        self._handles.discard(handle)

    def bump(self) -> int:
        """End the current epoch: cancel pending timers, return the new epoch."""
        self.epoch += 1
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        return self.epoch


class Debouncer:
    """Trailing-edge debounce: many triggers within `delay` give one call."""

    def __init__(
        self,
        scheduler: EpochScheduler,
        delay: float,
        callback: Callable[[], Any],
    ) -> None:
        self.scheduler = scheduler
        self.delay = delay
        self.callback = callback
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None and not self._handle.cancelled()

    def trigger(self) -> None:
        self.scheduler.cancel(self._handle)
        self._handle = self.scheduler.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        self.scheduler.cancel(self._handle)
        self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self.callback()
