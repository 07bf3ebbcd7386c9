from __future__ import annotations

import json
from collections.abc import Generator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from quizboard.broadcast_hub import BroadcastHub
from quizboard.core.registry import SessionRegistry
from quizboard.facade import SessionFacade
from quizboard.main import create_app
from quizboard.settings import Settings


class TickingClock:
    """Deterministic clock: every call is one millisecond after the previous one."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=UTC)
        self.frozen = False

    def __call__(self) -> datetime:
        if not self.frozen:
            self.current += timedelta(milliseconds=1)
        return self.current


class RecordingSink:
    """Stands in for a transport connection; remembers every frame it was handed."""

    def __init__(self, *, fail: bool = False) -> None:
        self.frames: list[str] = []
        self.fail = fail

    async def __call__(self, frame: str) -> None:
        if self.fail:
            raise ConnectionResetError("client went away")
        self.frames.append(frame)

    @property
    def events(self) -> list[dict]:
        return [parse_event(f) for f in self.frames if f.startswith("event:")]

    @property
    def keepalives(self) -> int:
        return sum(1 for f in self.frames if f.startswith(":"))


def parse_event(frame: str) -> dict:
    lines = frame.split("\n")
    assert lines[0] == "event: leaderboard"
    assert lines[1].startswith("data: ")
    return json.loads(lines[1][len("data: ") :])


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture()
def registry(clock: TickingClock) -> SessionRegistry:
    return SessionRegistry(clock=clock)


@pytest.fixture()
def hub() -> BroadcastHub:
    return BroadcastHub(keepalive_interval=0)


@pytest.fixture()
def facade(registry: SessionRegistry, hub: BroadcastHub) -> SessionFacade:
    return SessionFacade(registry=registry, hub=hub)


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    app = create_app(Settings(keepalive_interval_sec=0, poll_interval_sec=0.01, log_level="DEBUG"))
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def make_sink() -> type[RecordingSink]:
    return RecordingSink
