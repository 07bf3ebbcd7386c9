from __future__ import annotations


class QuizboardError(ValueError):
    """Base class for errors raised by the leaderboard core."""


class ValidationError(QuizboardError):
    def __init__(self, field: str) -> None:
        super().__init__(f"{field} is required")
        self.field = field


class SessionNotFound(QuizboardError):
    def __init__(self, session_id: str) -> None:
        super().__init__("Session not found")
        self.session_id = session_id


class ParticipantNotFound(QuizboardError):
    def __init__(self, session_id: str, participant_id: str) -> None:
        super().__init__("Participant not found")
        self.session_id = session_id
        self.participant_id = participant_id


class DeliveryFailure(QuizboardError):
    """A push or keep-alive could not be handed to one subscriber.

    Never raised out of the broadcast hub; it is logged and kept on the subscriber.
    """

    def __init__(self, subscriber_id: str, kind: str, cause: BaseException) -> None:
        super().__init__(f"{kind} delivery to subscriber {subscriber_id} failed: {cause!r}")
        self.subscriber_id = subscriber_id
        self.kind = kind
        self.cause = cause
