from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from statemachine import State, StateMachine

if TYPE_CHECKING:
    from quizboard.broadcast_hub import Subscriber

logger = logging.getLogger(__name__)


class SubscriberLifecycle(StateMachine):
    """Lifecycle of one registered subscriber.

    - active: receives pushes and keep-alives.
    - detached (final): keep-alive cancelled, detach callback fired. Reached once.
    """

    active = State("active", initial=True)
    detached = State("detached", final=True)

    detach = active.to(detached)

    def __init__(self, subscriber: Subscriber):
        self.subscriber = subscriber
        super().__init__()

    @property
    def is_attached(self) -> bool:
        return self.current_state.id == "active"

    def on_enter_detached(self) -> None:
        sub = self.subscriber
        if sub.keepalive_task is not None:
            sub.keepalive_task.cancel()
        if sub.on_detach is not None:
            try:
                sub.on_detach()
            except Exception:
                logger.exception("detach callback failed for subscriber %s", sub.handle.subscriber_id)
