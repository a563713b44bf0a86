"""Last-wins sequencing of overlapping async requests.

Every dispatch gets a strictly larger id. A completed request is applied only
if it is still the newest one issued and newer than anything applied before,
so a slow old fetch can never overwrite the result of a newer one.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from gitstate.utils.background_tasks import BackgroundTasks

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = logging.getLogger(__name__)


class AsyncRequestSequencer:
    def __init__(
        self,
        on_result: Callable[[Any], None],
        *,
        tasks: BackgroundTasks | None = None,
        name: str = "request",
    ) -> None:
        self._on_result = on_result
        self._tasks = tasks or BackgroundTasks()
        self._name = name
        self._current_id = 0
        self._last_applied_id = 0

    @property
    def current_id(self) -> int:
        return self._current_id

    @property
    def last_applied_id(self) -> int:
        return self._last_applied_id

    def next_id(self) -> int:
        self._current_id += 1
        return self._current_id

    def dispatch(self, fetch: Callable[[], Awaitable[Any]]) -> int:
        """Start ``fetch`` in the background and return its request id."""
        request_id = self.next_id()
        self._tasks.spawn(self._run(request_id, fetch), name=f"{self._name}-{request_id}")
        return request_id

    async def _run(self, request_id: int, fetch: Callable[[], Awaitable[Any]]) -> None:
        try:
            result = await fetch()
        except Exception:
            log.exception("%s #%d failed", self._name, request_id)
            result = None
        self.deliver(request_id, result)

    def deliver(self, request_id: int, result: Any) -> bool:
        """Apply ``result`` if ``request_id`` is still current. Returns whether it was applied."""
        if request_id != self._current_id or request_id <= self._last_applied_id:
            log.debug(
                "Discarding %s #%d (current=%d, applied=%d)",
                self._name,
                request_id,
                self._current_id,
                self._last_applied_id,
            )
            return False
        self._last_applied_id = request_id
        self._on_result(result)
        return True

    def is_pending(self) -> bool:
        return self._current_id > self._last_applied_id

    def cancel_all(self) -> None:
        """Discard every outstanding result. Running fetches are left to finish."""
        self._last_applied_id = self._current_id

    async def shutdown(self) -> None:
        self.cancel_all()
        await self._tasks.shutdown()
