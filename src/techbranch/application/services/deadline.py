"""Per-request deadline helper shared by the REST and RPC transports."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from techbranch.domain.auth.errors import DeadlineExceededError

T = TypeVar("T")


async def run_with_deadline(operation: Awaitable[T], *, timeout_seconds: float | None) -> T:
    """Await ``operation`` and cancel it cooperatively once the deadline fires."""

    if timeout_seconds is None:
        return await operation
    if timeout_seconds <= 0:
        if asyncio.iscoroutine(operation):
            operation.close()
        raise DeadlineExceededError()

    try:
        async with asyncio.timeout(timeout_seconds):
            return await operation
    except TimeoutError as error:
        raise DeadlineExceededError() from error
