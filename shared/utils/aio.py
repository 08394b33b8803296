from __future__ import annotations

import asyncio
from typing import Any, Awaitable, List


async def join_all(*aws: Awaitable[Any]) -> List[Any]:
    """
    Run awaitables concurrently and wait for every one of them to finish.

    Unlike a bare asyncio.gather, a failure never leaves siblings running
    unattended: all results are collected first, then the first exception
    (in argument order) is raised.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)
