from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictBool

from quizboard.core.models import Participant, StandingsEntry


class _Request(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class JoinRequest(_Request):
    session_id: str = Field(..., max_length=200)
    participant_id: str = Field(..., max_length=200)
    name: str = Field(..., max_length=200)


class AnswerRequest(_Request):
    session_id: str = Field(..., max_length=200)
    participant_id: str = Field(..., max_length=200)
    correct: StrictBool


class StandingsEntryOut(BaseModel):
    participant_id: str
    name: str
    score: int
    attempts: int

    @classmethod
    def from_entry(cls, entry: StandingsEntry) -> "StandingsEntryOut":
        return cls(
            participant_id=entry.participant_id,
            name=entry.name,
            score=entry.score,
            attempts=entry.attempts,
        )


class ParticipantOut(BaseModel):
    participant_id: str
    name: str
    score: int
    attempts: int

    @classmethod
    def from_participant(cls, participant: Participant) -> "ParticipantOut":
        return cls(
            participant_id=participant.participant_id,
            name=participant.name,
            score=participant.score,
            attempts=participant.attempts,
        )


class ParticipantResponse(BaseModel):
    """Response to /join and /answer: the caller's own view plus full standings."""

    session_id: str
    participant: ParticipantOut
    standings: list[StandingsEntryOut] = Field(default_factory=list)


class LeaderboardResponse(BaseModel):
    session_id: str
    entries: list[StandingsEntryOut] = Field(default_factory=list)


class StandingsEvent(BaseModel):
    """Payload pushed to every subscriber of a session."""

    session_id: str
    updated_at: datetime
    entries: list[StandingsEntryOut] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str
    uptime_sec: float
    sessions: int
    subscribers: int
