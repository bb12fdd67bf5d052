"""
Per-provider dispatch throttle.

Hey future me – this is the ONE place that enforces a provider's rate budget!
Every request gateway owns exactly one DispatchThrottle, and there is exactly
one gateway per provider, shared by all concurrent migration runs.

ALGORITHM: minimum spacing between dispatch STARTS
- We remember when the last call to this provider STARTED
- A new call waits until `min_interval` has passed since that start
- Measured from the start on purpose: a slow response must never buy the
  next caller a free fast-follow call

WHY HOLD THE LOCK WHILE SLEEPING?
- The check ("how long since last start?") and the update ("I start now")
  must be one atomic step, otherwise two waiters wake up together and fire
  back-to-back. asyncio.Lock is FIFO, so waiters are served in arrival order.

USAGE:
    throttle = DispatchThrottle(min_interval=0.5, name="tidal")

    await throttle.acquire()
    response = await client.request(...)
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class DispatchThrottle:
    """Minimum-spacing throttle keyed on dispatch start time.

    Attributes:
        min_interval: Seconds that must separate two dispatch starts
        name: Provider name for logging
        clock: Monotonic clock (injectable for tests)
        _last_start: Start time of the previous dispatch (None before the first)
        _lock: Guards the check-and-update of _last_start
    """

    min_interval: float = 0.5
    name: str = "default"
    clock: Callable[[], float] = time.monotonic

    _last_start: float | None = field(default=None, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    async def acquire(self) -> float:
        """Wait for this caller's dispatch slot and claim it.

        Returns:
            Seconds the caller was suspended
        """
        async with self._lock:
            waited = 0.0
            if self._last_start is not None:
                remaining = self.min_interval - (self.clock() - self._last_start)
                if remaining > 0:
                    logger.debug(
                        f"DispatchThrottle[{self.name}]: spacing calls, "
                        f"waiting {remaining:.3f}s"
                    )
                    await asyncio.sleep(remaining)
                    waited = remaining
            self._last_start = self.clock()
            return waited


__all__ = ["DispatchThrottle"]
