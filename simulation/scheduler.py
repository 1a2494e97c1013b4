"""Periodic callbacks on the asyncio event loop.

The session only relies on "a callback invoked every *period* seconds while
the subscription is active", so any timer primitive would do; this one runs
each subscription as its own asyncio task.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

Callback = Callable[[], Any]  # may return an awaitable


class Subscription:
    """Handle for one periodic callback. ``cancel()`` stops it."""

    def __init__(self, name: str, period: float, task: asyncio.Task) -> None:
        self.name = name
        self.period = period
        self._task = task

    @property
    def active(self) -> bool:
        return not self._task.done()

    def cancel(self) -> None:
        if not self._task.done():
            self._task.cancel()


class Scheduler:
    """Registry of periodic subscriptions sharing one event loop.

    Must be used from inside a running event loop. Callbacks run one at a
    time per subscription: a slow async callback delays that subscription's
    next firing but not the others.
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def every(self, period: float, callback: Callback, name: str = "") -> Subscription:
        """Invoke *callback* every *period* seconds until cancelled."""
        if period <= 0:
            raise ValueError(f"Subscription period must be positive, got {period}.")
        name = name or getattr(callback, "__name__", "callback")
        task = asyncio.get_running_loop().create_task(
            self._run(period, callback, name), name=f"scheduler:{name}"
        )
        subscription = Subscription(name, period, task)
        self._subscriptions.append(subscription)
        logger.debug("Scheduled '%s' every %.1fs.", name, period)
        return subscription

    def cancel_all(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()

    @property
    def subscriptions(self) -> list[Subscription]:
        return [s for s in self._subscriptions if s.active]

    @staticmethod
    async def _run(period: float, callback: Callback, name: str) -> None:
        while True:
            await asyncio.sleep(period)
            try:
                result = callback()
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:
                # Keep the timer alive after a failing callback.
                logger.exception("Scheduled callback '%s' failed.", name)
