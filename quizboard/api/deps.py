from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import Request

from quizboard.facade import SessionFacade
from quizboard.settings import Settings


def get_facade(request: Request) -> SessionFacade:
    return request.app.state.facade


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_disconnect_check(request: Request) -> Callable[[], Awaitable[bool]]:
    """How a stream learns its client went away; overridable in tests."""

    return request.is_disconnected
