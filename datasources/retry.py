"""
Retry decorator for writes and reads against flaky backends.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import asyncio
import logging
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar, Tuple, cast

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def _next_delay(current: float, backoff: float, max_delay: Optional[float]) -> float:
    nxt = current * backoff
    return min(nxt, max_delay) if max_delay is not None else nxt


def retry(
    *,
    attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    max_delay: Optional[float] = None,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
) -> Callable[[F], F]:
    attempts = max(1, int(attempts))

    def decorator(func: F) -> F:
        name = getattr(func, "__qualname__", repr(func))

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            wait = delay
            for attempt in range(1, attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as exc:
                    if attempt >= attempts:
                        log.warning("%s failed after %d attempts: %s", name, attempt, exc)
                        raise
                    log.debug("%s attempt %d/%d failed (%s), retrying in %.2fs", name, attempt, attempts, exc, wait)
                    await asyncio.sleep(wait)
                    wait = _next_delay(wait, backoff, max_delay)

        return cast(F, async_wrapper)

    return decorator
