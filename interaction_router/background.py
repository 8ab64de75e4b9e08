"""Utilities for running fire-and-forget work after a response is sent."""

import asyncio
import inspect
from contextvars import copy_context
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from structlog.contextvars import bind_contextvars, get_contextvars


_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="interaction-followup")


def run_async(
    func: Callable[..., Any],
    /,
    *args: Any,
    trace_id: str | None = None,
    **kwargs: Any,
) -> Future:
    """Submit *func* to the shared thread pool and return a Future.

    Coroutine functions are driven to completion on a fresh event loop inside
    the worker thread, so they never share the caller's loop.
    """

    context = copy_context()

    if trace_id is not None:
        existing_trace = context.run(lambda: get_contextvars().get("trace_id"))

        if existing_trace != trace_id:

            context.run(lambda: bind_contextvars(trace_id=trace_id))

    if inspect.iscoroutinefunction(func):

        def runner() -> Any:
            return context.run(lambda: asyncio.run(func(*args, **kwargs)))

    else:

        def runner() -> Any:
            return context.run(func, *args, **kwargs)

    return _executor.submit(runner)
