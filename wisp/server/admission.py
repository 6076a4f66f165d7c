"""Token bucket admission control.

The bucket holds at most ``token_limit`` tokens. Each admitted request
takes one. When the bucket is empty, requests wait in a FIFO queue of at
most ``queue_limit`` entries; anything beyond that is rejected with
``RateLimitExceededError``. Tokens come back in batches of
``tokens_per_period`` every ``replenishment_period_s`` (when auto
replenishment is on, or whenever ``replenish()`` is called), and one at a
time through ``credit()``.

Token accounting is guarded by a ``threading.Lock``. Waiters are asyncio
futures resolved on their own event loop, so ``replenish()`` and
``credit()`` are safe to call from any thread.
"""

from __future__ import annotations

import asyncio
import contextlib
import threading
from collections import deque
from dataclasses import dataclass

from wisp.exceptions import RateLimitExceededError
from wisp.logging import get_logger

logger = get_logger("server.admission")


@dataclass(frozen=True, slots=True)
class TokenBucketOptions:
    token_limit: int
    tokens_per_period: int
    replenishment_period_s: float
    queue_limit: int = 0
    auto_replenishment: bool = True

    def __post_init__(self) -> None:
        if self.token_limit < 1:
            msg = "token_limit must be >= 1"
            raise ValueError(msg)
        if self.tokens_per_period < 1:
            msg = "tokens_per_period must be >= 1"
            raise ValueError(msg)
        if self.replenishment_period_s <= 0:
            msg = "replenishment_period_s must be > 0"
            raise ValueError(msg)
        if self.queue_limit < 0:
            msg = "queue_limit must be >= 0"
            raise ValueError(msg)


@dataclass(slots=True, eq=False)
class _Waiter:
    loop: asyncio.AbstractEventLoop
    future: asyncio.Future[None]


class TokenBucketLimiter:
    """Token bucket with a bounded oldest-first wait queue."""

    def __init__(self, options: TokenBucketOptions) -> None:
        self._options = options
        self._tokens = options.token_limit
        self._queue: deque[_Waiter] = deque()
        self._lock = threading.Lock()
        self._replenish_task: asyncio.Task[None] | None = None

    @property
    def options(self) -> TokenBucketOptions:
        return self._options

    @property
    def available_tokens(self) -> int:
        with self._lock:
            return self._tokens

    @property
    def queued(self) -> int:
        with self._lock:
            return len(self._queue)

    def try_acquire(self) -> bool:
        """Take a token without waiting. Returns False if none is free."""
        with self._lock:
            if self._tokens > 0 and not self._queue:
                self._tokens -= 1
                return True
            return False

    async def acquire(self) -> None:
        """Take a token, waiting in line if the bucket is empty.

        Raises:
            RateLimitExceededError: If the bucket is empty and the queue is full.
        """
        loop = asyncio.get_running_loop()
        with self._lock:
            if self._tokens > 0 and not self._queue:
                self._tokens -= 1
                return
            if len(self._queue) >= self._options.queue_limit:
                logger.warning("admission_rejected", queued=len(self._queue))
                raise RateLimitExceededError(self._options.replenishment_period_s)
            waiter = _Waiter(loop=loop, future=loop.create_future())
            self._queue.append(waiter)

        try:
            await waiter.future
        except asyncio.CancelledError:
            with self._lock:
                with contextlib.suppress(ValueError):
                    self._queue.remove(waiter)
            if waiter.future.done() and not waiter.future.cancelled():
                # Granted, but the caller went away before using it.
                self.credit()
            raise

    def replenish(self) -> None:
        """Add one period's worth of tokens."""
        self._add_tokens(self._options.tokens_per_period)

    def credit(self) -> None:
        """Give back exactly one token (capped at the limit)."""
        self._add_tokens(1)

    def _add_tokens(self, count: int) -> None:
        granted: list[_Waiter] = []
        with self._lock:
            self._tokens = min(self._options.token_limit, self._tokens + count)
            while self._queue and self._tokens > 0:
                self._tokens -= 1
                granted.append(self._queue.popleft())
        for waiter in granted:
            waiter.loop.call_soon_threadsafe(self._grant, waiter)

    def _grant(self, waiter: _Waiter) -> None:
        if waiter.future.done():
            # Cancelled between dequeue and delivery: the token goes back.
            self._add_tokens(1)
            return
        waiter.future.set_result(None)

    # --- Auto replenishment ---

    def start(self) -> None:
        """Start the periodic replenishment task when auto replenishment is on."""
        if not self._options.auto_replenishment or self._replenish_task is not None:
            return
        self._replenish_task = asyncio.get_running_loop().create_task(self._replenish_loop())
        logger.info(
            "auto_replenishment_started",
            tokens_per_period=self._options.tokens_per_period,
            period_s=self._options.replenishment_period_s,
        )

    async def stop(self) -> None:
        task, self._replenish_task = self._replenish_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _replenish_loop(self) -> None:
        while True:
            await asyncio.sleep(self._options.replenishment_period_s)
            self.replenish()
