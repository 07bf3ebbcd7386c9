from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from quizboard.api.models import StandingsEntryOut, StandingsEvent
from quizboard.broadcast_hub import BroadcastHub, Sink, SubscriberHandle
from quizboard.core.errors import SessionNotFound, ValidationError
from quizboard.core.models import Participant, Session, StandingsEntry
from quizboard.core.registry import SessionRegistry
from quizboard.core.standings import rank

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SessionResult:
    session_id: str
    participant: Participant
    standings: list[StandingsEntry]


def _require(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(field)
    return value


class SessionFacade:
    """Operation surface used by the transport layer.

    Mutations finish before any await, so each one is atomic on the event loop.
    Only `submit_result` pushes to subscribers; a join alone changes no score.
    """

    def __init__(self, *, registry: SessionRegistry, hub: BroadcastHub) -> None:
        self.registry = registry
        self.hub = hub

    def join(self, session_id: str, participant_id: str, name: str) -> SessionResult:
        _require(session_id, "session_id")
        _require(participant_id, "participant_id")
        _require(name, "name")

        session = self.registry.get_or_create(session_id)
        participant = self.registry.upsert_participant(session, participant_id, name)
        return SessionResult(session_id=session_id, participant=participant, standings=rank(session))

    async def submit_result(self, session_id: str, participant_id: str, was_correct: bool) -> SessionResult:
        _require(session_id, "session_id")
        _require(participant_id, "participant_id")

        session = self._require_session(session_id)
        participant = self.registry.record_result(session, participant_id, was_correct)
        standings = rank(session)

        # Pushed on every successful submission, even if the order did not change.
        delivered = await self.hub.publish(session_id, self.standings_event(session, standings))
        logger.debug(
            "result recorded: session=%s participant=%s correct=%s delivered=%d",
            session_id,
            participant_id,
            was_correct,
            delivered,
        )
        return SessionResult(session_id=session_id, participant=participant, standings=standings)

    def snapshot(self, session_id: str) -> list[StandingsEntry]:
        _require(session_id, "session_id")
        return rank(self._require_session(session_id))

    async def open_stream(
        self,
        session_id: str,
        sink: Sink,
        *,
        on_detach: Callable[[], None] | None = None,
    ) -> SubscriberHandle:
        """Subscribe to a session (creating it if needed) and send it the current standings."""

        _require(session_id, "session_id")
        session = self.registry.get_or_create(session_id)
        handle = await self.hub.subscribe(session_id, sink, on_detach=on_detach)
        try:
            await self.hub.publish(session_id, self.standings_event(session), to=handle)
        except BaseException:
            # The caller never sees the handle, so it cannot detach; do it here.
            await asyncio.shield(self.hub.unsubscribe(handle))
            raise
        return handle

    async def detach(self, handle: SubscriberHandle) -> None:
        await self.hub.unsubscribe(handle)

    def standings_event(self, session: Session, standings: list[StandingsEntry] | None = None) -> StandingsEvent:
        if standings is None:
            standings = rank(session)
        return StandingsEvent(
            session_id=session.session_id,
            updated_at=session.updated_at,
            entries=[StandingsEntryOut.from_entry(e) for e in standings],
        )

    def _require_session(self, session_id: str) -> Session:
        session = self.registry.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session
