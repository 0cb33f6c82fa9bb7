# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Optional

logger = logging.getLogger(__name__)

AnyCompleteCallback = Callable[[int, list[Any]], Any]
AnySuccessCallback = Callable[[int, Any], Any]
AnyErrorCallback = Callable[[int, BaseException], Any]


def _observe(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    try:
        callback(*args)
    except Exception:
        logger.exception("Observer callback %r failed", callback)


async def gather_paced(
    awaitables: Iterable[Awaitable[Any]],
    *,
    on_any_complete: Optional[AnyCompleteCallback] = None,
    on_any_success: Optional[AnySuccessCallback] = None,
    on_any_error: Optional[AnyErrorCallback] = None,
    delay_ms: float = 0,
) -> list[Any]:
    """
    Like :func:`asyncio.gather`, but starts the awaitables one by one with
    ``delay_ms`` milliseconds between two submissions, so a burst of calls
    does not hit the server at once.

    Failures do not abort the others. The result holds, at each input index,
    the value of that awaitable or ``None`` if it raised. Observer callbacks
    get the index (and the value, the exception or the results so far);
    their own errors are logged and ignored.
    """
    items = list(awaitables)
    results: list[Any] = [None] * len(items)
    tasks: list["asyncio.Future[Any]"] = []

    def settle(index: int, task: "asyncio.Future[Any]") -> None:
        if task.cancelled():
            _observe(on_any_error, index, asyncio.CancelledError())
        elif (error := task.exception()) is not None:
            logger.debug("Aggregated request #%s failed: %s", index, error)
            _observe(on_any_error, index, error)
        else:
            results[index] = task.result()
            _observe(on_any_success, index, results[index])
        _observe(on_any_complete, index, results)

    for index, item in enumerate(items):
        task = asyncio.ensure_future(item)
        task.add_done_callback(lambda t, i=index: settle(i, t))
        tasks.append(task)
        if delay_ms > 0 and index < len(items) - 1:
            await asyncio.sleep(delay_ms / 1000)

    if tasks:
        await asyncio.wait(tasks)
    # done callbacks run on the next loop iteration
    await asyncio.sleep(0)
    return results


__all__ = ["gather_paced"]
