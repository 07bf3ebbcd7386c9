from __future__ import annotations

import asyncio
import logging
import secrets
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic import BaseModel

from quizboard.core.errors import DeliveryFailure
from quizboard.core.events import KEEPALIVE_FRAME, STANDINGS_EVENT, encode_event
from quizboard.lifecycle import SubscriberLifecycle

logger = logging.getLogger(__name__)

# Hands one encoded frame to the transport. The hub never owns the connection itself.
Sink = Callable[[str], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class SubscriberHandle:
    session_id: str
    subscriber_id: str


@dataclass(slots=True, eq=False)
class Subscriber:
    handle: SubscriberHandle
    sink: Sink
    registered_at: datetime
    on_detach: Callable[[], None] | None = None
    keepalive_task: asyncio.Task[None] | None = None
    delivery_failures: int = 0
    last_failure: DeliveryFailure | None = None
    lifecycle: SubscriberLifecycle = field(init=False)

    def __post_init__(self) -> None:
        self.lifecycle = SubscriberLifecycle(self)


class BroadcastHub:
    """In-process push fan-out keyed by session_id.

    Contract:
      - register a sink with `subscribe(session_id, sink)`; keep the returned handle.
      - push a standings snapshot with `publish(session_id, snapshot)`.
      - drop the sink with `unsubscribe(handle)` once the transport reports the connection ended.

    Delivery is best-effort: a failing sink is logged and counted but never
    unsubscribed here, and never stops delivery to the other subscribers.
    """

    def __init__(self, *, keepalive_interval: float = 25.0) -> None:
        self._by_session: dict[str, dict[str, Subscriber]] = defaultdict(dict)
        self._publish_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._lock = asyncio.Lock()
        self._keepalive_interval = keepalive_interval

    def subscriber_count(self, session_id: str | None = None) -> int:
        if session_id is None:
            return sum(len(subs) for subs in self._by_session.values())
        return len(self._by_session.get(session_id, {}))

    async def subscribe(
        self,
        session_id: str,
        sink: Sink,
        *,
        on_detach: Callable[[], None] | None = None,
    ) -> SubscriberHandle:
        """Register a sink. The caller sends the initial snapshot via `publish(..., to=handle)`."""

        handle = SubscriberHandle(session_id=session_id, subscriber_id=secrets.token_hex(8))
        sub = Subscriber(handle=handle, sink=sink, registered_at=datetime.now(tz=UTC), on_detach=on_detach)

        async with self._lock:
            self._by_session[session_id][handle.subscriber_id] = sub
            count = len(self._by_session[session_id])

        if self._keepalive_interval > 0:
            sub.keepalive_task = asyncio.create_task(
                self._keepalive(sub), name=f"keepalive:{handle.subscriber_id}"
            )

        logger.info(
            "subscriber connected: %s for session %s (subscribers: %d)",
            handle.subscriber_id,
            session_id,
            count,
        )
        return handle

    async def unsubscribe(self, handle: SubscriberHandle) -> None:
        """Detach a subscriber. Safe to call more than once."""

        async with self._lock:
            subs = self._by_session.get(handle.session_id)
            sub = subs.pop(handle.subscriber_id, None) if subs is not None else None
            if subs is not None and not subs:
                self._by_session.pop(handle.session_id, None)
            count = len(subs) if subs else 0

        if sub is None or not sub.lifecycle.is_attached:
            return

        sub.lifecycle.detach()
        task = sub.keepalive_task
        if task is not None and task is not asyncio.current_task():
            # asyncio.wait does not raise if the task ended by cancellation.
            await asyncio.wait({task})

        logger.info(
            "subscriber disconnected: %s for session %s (subscribers: %d)",
            handle.subscriber_id,
            handle.session_id,
            count,
        )

    async def publish(
        self,
        session_id: str,
        snapshot: BaseModel,
        *,
        to: SubscriberHandle | None = None,
    ) -> int:
        """Send `snapshot` to every subscriber of the session, or only to `to`.

        Returns how many subscribers accepted the frame.
        """

        frame = encode_event(STANDINGS_EVENT, snapshot.model_dump_json())

        # Serialize fan-out per session so subscribers see pushes in mutation order.
        async with self._publish_locks[session_id]:
            async with self._lock:
                subs = list(self._by_session.get(session_id, {}).values())

            if to is not None:
                subs = [s for s in subs if s.handle == to]
            if not subs:
                return 0

            results = await asyncio.gather(*(self._deliver(s, frame, kind="publish") for s in subs))

        return sum(1 for ok in results if ok)

    async def aclose(self) -> None:
        """Detach every subscriber; used at application shutdown."""

        async with self._lock:
            handles = [s.handle for subs in self._by_session.values() for s in subs.values()]
        for handle in handles:
            await self.unsubscribe(handle)

    async def _deliver(self, sub: Subscriber, frame: str, *, kind: str) -> bool:
        if not sub.lifecycle.is_attached:
            return False
        try:
            await sub.sink(frame)
        except Exception as e:
            failure = DeliveryFailure(sub.handle.subscriber_id, kind, e)
            sub.delivery_failures += 1
            sub.last_failure = failure
            logger.warning("[%s] session=%s %s", kind, sub.handle.session_id, failure)
            return False
        return True

    async def _keepalive(self, sub: Subscriber) -> None:
        while sub.lifecycle.is_attached:
            await asyncio.sleep(self._keepalive_interval)
            await self._deliver(sub, KEEPALIVE_FRAME, kind="keepalive")
