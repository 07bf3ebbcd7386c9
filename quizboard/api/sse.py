from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable

from quizboard.facade import SessionFacade


async def standings_stream(
    *,
    facade: SessionFacade,
    session_id: str,
    is_disconnected: Callable[[], Awaitable[bool]],
    queue_size: int = 64,
    poll_interval: float = 0.5,
) -> AsyncIterator[str]:
    """Yield SSE frames for one subscriber until the client goes away.

    The hub writes into a bounded queue; a full queue means a slow client and
    shows up as a delivery failure instead of blocking the broadcast.
    """

    queue: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)

    async def sink(frame: str) -> None:
        # Raises QueueFull when the client lags; that frame is dropped, not retried.
        queue.put_nowait(frame)

    handle = await facade.open_stream(session_id, sink)
    try:
        while True:
            if await is_disconnected():
                break
            try:
                frame = await asyncio.wait_for(queue.get(), timeout=poll_interval)
            except asyncio.TimeoutError:
                continue
            yield frame
    finally:
        # Shielded: the response task is usually being cancelled when we get here.
        await asyncio.shield(facade.detach(handle))
