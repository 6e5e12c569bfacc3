"""Debounced recomputation of a combined vector.

Callers that recompute on every edit (typing in a field, moving a weight
slider) go through ``DebouncedCombiner``: each request replaces the
pending one and only runs after a quiet period. A computation that has
already started always runs to completion, and its result is published
only when it differs from the last published value.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .vector_math import format_vector

logger = logging.getLogger(__name__)

ComputeFn = Callable[..., Awaitable[list[float] | None]]
UpdateFn = Callable[[list[float] | None], Any]


class DebouncedCombiner:
    """Single-slot debounce scheduler.

    Args:
        compute: Coroutine function producing the vector (or None).
        on_update: Called with each changed result; may be async.
        quiet_period: Seconds a request must stay unreplaced before it runs.
    """

    def __init__(
        self,
        compute: ComputeFn,
        on_update: UpdateFn,
        quiet_period: float = 0.5,
    ) -> None:
        if quiet_period < 0:
            raise ValueError("quiet_period must be >= 0")
        self._compute = compute
        self._on_update = on_update
        self._quiet_period = quiet_period
        self._timer: asyncio.Task[None] | None = None
        self._running: set[asyncio.Task[None]] = set()
        self._last: str | None = None

    @property
    def last_value(self) -> str | None:
        """Serialized form of the last published result."""
        return self._last

    @property
    def quiet_period(self) -> float:
        return self._quiet_period

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def request(self, *args: Any, **kwargs: Any) -> None:
        """Schedule a computation, replacing any that has not started yet."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._wait_then_start(args, kwargs))

    async def _wait_then_start(self, args: tuple, kwargs: dict[str, Any]) -> None:
        await asyncio.sleep(self._quiet_period)
        task = asyncio.get_running_loop().create_task(self._run(args, kwargs))
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def _run(self, args: tuple, kwargs: dict[str, Any]) -> None:
        try:
            result = await self._compute(*args, **kwargs)
        except Exception as e:
            logger.warning("Debounced computation failed: %s", e)
            return

        serialized = format_vector(result) if result else ""
        if serialized == self._last:
            logger.debug("Result unchanged, skipping update")
            return
        self._last = serialized

        outcome = self._on_update(result)
        if inspect.isawaitable(outcome):
            await outcome

    async def wait_idle(self) -> None:
        """Wait until no request is pending and no computation is running."""
        while True:
            waiting = [t for t in (self._timer, *self._running) if t is not None and not t.done()]
            if not waiting:
                return
            await asyncio.gather(*waiting, return_exceptions=True)

    def cancel(self) -> None:
        """Drop the pending request. Started computations keep running."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None
