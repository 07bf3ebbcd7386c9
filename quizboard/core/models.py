from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Participant:
    """One entrant in a session.

    Frozen: the registry swaps in a new instance on every mutation, so a value
    handed to a caller is a consistent snapshot.
    """

    participant_id: str
    name: str
    joined_at: datetime
    updated_at: datetime
    score: int = 0
    attempts: int = 0


@dataclass(slots=True)
class Session:
    session_id: str
    created_at: datetime
    updated_at: datetime
    participants: dict[str, Participant] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class StandingsEntry:
    participant_id: str
    name: str
    score: int
    attempts: int
