# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Set

from authttp.config import DEFAULT_MAX_CONCURRENCY
from authttp.descriptor import RequestDescriptor
from authttp.types import ProgressCallback

logger = logging.getLogger(__name__)


@dataclass
class RequestTask:
    """A request waiting for a free slot in a :class:`ThrottlingQueue`"""

    handler: Callable[["RequestTask"], Awaitable[Any]]
    descriptor: Optional[RequestDescriptor] = None
    path: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)
    form_fields: Optional[Dict[str, str]] = None
    encoding: Optional[str] = None
    timeout: Optional[float] = None
    request_id: Optional[str] = None
    authenticate: bool = True
    save_path: Optional[Path] = None
    on_progress: Optional[ProgressCallback] = None
    future: Optional["asyncio.Future[Any]"] = None


class ThrottlingQueue:
    """
    Bounds the number of requests in flight.

    Submitted tasks start right away while fewer than ``max_concurrency`` are
    running; the rest wait in a FIFO and are released in submission order as
    running tasks settle. A task that fails or times out frees its slot like
    one that succeeds.
    """

    def __init__(self, max_concurrency: int = DEFAULT_MAX_CONCURRENCY):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._max_concurrency = max_concurrency
        self._active = 0
        self._pending: Deque[RequestTask] = deque()
        self._running: Set["asyncio.Task[None]"] = set()
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @property
    def active(self) -> int:
        return self._active

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, task: RequestTask) -> "asyncio.Future[Any]":
        if task.future is None:
            task.future = asyncio.get_running_loop().create_future()
        self._idle.clear()

        if self._active < self._max_concurrency:
            self._dispatch(task)
        else:
            self._pending.append(task)
            logger.debug(
                "Throttling request %s %s (active=%s, pending=%s)",
                task.descriptor.method.value if task.descriptor else "-",
                task.path,
                self._active,
                len(self._pending),
            )
        return task.future

    def _dispatch(self, task: RequestTask) -> None:
        self._active += 1
        running = asyncio.ensure_future(self._run(task))
        self._running.add(running)
        running.add_done_callback(self._running.discard)

    async def _run(self, task: RequestTask) -> None:
        future = task.future
        assert future is not None
        try:
            result = await task.handler(task)
        except asyncio.CancelledError:
            if not future.done():
                future.cancel()
            raise
        except Exception as err:
            if not future.done():
                future.set_exception(err)
        else:
            if not future.done():
                future.set_result(result)
        finally:
            self._active -= 1
            self._release()

    def _release(self) -> None:
        while self._pending and self._active < self._max_concurrency:
            self._dispatch(self._pending.popleft())
        if self._active == 0 and not self._pending:
            self._idle.set()

    async def join(self) -> None:
        """Wait until no task is running or queued"""
        await self._idle.wait()


__all__ = ["RequestTask", "ThrottlingQueue"]
