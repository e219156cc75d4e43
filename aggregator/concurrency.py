"""Structured fan-out for collaborator calls."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any


async def gather_or_cancel(*coros: Coroutine[Any, Any, Any]) -> list[Any]:
    """Run coroutines concurrently and return their results in order.

    Unlike asyncio.gather, the first failure cancels every sibling still
    running and waits for them to finish before the error propagates. The
    failure is re-raised as-is rather than wrapped in an ExceptionGroup, so
    callers catch the usual error types.
    """
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(coro) for coro in coros]
    except BaseExceptionGroup as failures:
        raise failures.exceptions[0]
    return [task.result() for task in tasks]


__all__ = ["gather_or_cancel"]
