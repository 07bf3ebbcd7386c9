from __future__ import annotations

from datetime import datetime

from quizboard.core.models import Participant, Session, StandingsEntry


def sort_key(participant: Participant) -> tuple[int, datetime, str]:
    """Ranking key: score desc, then earliest updated_at, then participant_id.

    participant_id is unique within a session, so the key never ties.
    """

    return (-participant.score, participant.updated_at, participant.participant_id)


def rank(session: Session) -> list[StandingsEntry]:
    # Always recomputed from scratch; sessions are small.
    ordered = sorted(session.participants.values(), key=sort_key)
    return [
        StandingsEntry(
            participant_id=p.participant_id,
            name=p.name,
            score=p.score,
            attempts=p.attempts,
        )
        for p in ordered
    ]
