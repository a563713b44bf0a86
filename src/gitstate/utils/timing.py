"""Debounce and throttle helpers driven by the running event loop.

Both hold a single ``asyncio.TimerHandle``; rescheduling cancels the previous
handle, so at most one invocation is ever pending.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable


class Debouncer:
    """Call ``fn`` once, ``delay`` seconds after the last ``call()``."""

    def __init__(self, fn: Callable[..., Any], delay: float) -> None:
        self._fn = fn
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._args: tuple[Any, ...] = ()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def call(self, *args: Any) -> None:
        self.cancel()
        self._args = args
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> None:
        """Run a pending call immediately."""
        if self._handle is not None:
            self.cancel()
            self._fn(*self._args)

    def _fire(self) -> None:
        self._handle = None
        self._fn(*self._args)


class Throttler:
    """Call ``fn`` at most once per ``delay`` seconds.

    The first call runs immediately. Calls inside the window are dropped, or,
    with ``trailing=True``, collapsed into one call at the end of the window
    using the latest arguments.
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        delay: float,
        *,
        trailing: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fn = fn
        self.delay = delay
        self._trailing = trailing
        self._clock = clock
        self._last_run: float | None = None
        self._handle: asyncio.TimerHandle | None = None
        self._args: tuple[Any, ...] = ()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def call(self, *args: Any) -> None:
        now = self._clock()
        if self._last_run is None or now - self._last_run >= self.delay:
            self.cancel()
            self._run(args)
            return
        if not self._trailing:
            return
        self._args = args
        if self._handle is None:
            remaining = self.delay - (now - self._last_run)
            loop = asyncio.get_running_loop()
            self._handle = loop.call_later(remaining, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._run(self._args)

    def _run(self, args: tuple[Any, ...]) -> None:
        self._last_run = self._clock()
        self._fn(*args)
