from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

from quizboard.core.errors import ParticipantNotFound
from quizboard.core.models import Participant, Session

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _now() -> datetime:
    return datetime.now(tz=UTC)


class SessionRegistry:
    """In-process store of sessions keyed by session_id.

    Sessions are created lazily and live for the lifetime of the registry.
    All methods are synchronous: on an event loop each call runs to completion,
    so no caller ever sees a half-applied mutation.
    """

    def __init__(self, *, clock: Clock = _now) -> None:
        self._sessions: dict[str, Session] = {}
        self._clock = clock

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            now = self._clock()
            session = Session(session_id=session_id, created_at=now, updated_at=now)
            self._sessions[session_id] = session
            logger.info("session created: %s", session_id)
        return session

    def upsert_participant(self, session: Session, participant_id: str, name: str) -> Participant:
        """Add a participant, or rename an existing one.

        A re-join keeps score and attempts; only the name and updated_at change.
        """

        now = self._clock()
        existing = session.participants.get(participant_id)
        if existing is None:
            participant = Participant(
                participant_id=participant_id,
                name=name,
                joined_at=now,
                updated_at=now,
            )
        else:
            participant = replace(existing, name=name, updated_at=now)

        session.participants[participant_id] = participant
        session.updated_at = now
        return participant

    def record_result(self, session: Session, participant_id: str, was_correct: bool) -> Participant:
        existing = session.participants.get(participant_id)
        if existing is None:
            raise ParticipantNotFound(session.session_id, participant_id)

        now = self._clock()
        participant = replace(
            existing,
            attempts=existing.attempts + 1,
            score=existing.score + (1 if was_correct else 0),
            updated_at=now,
        )
        session.participants[participant_id] = participant
        session.updated_at = now
        return participant
