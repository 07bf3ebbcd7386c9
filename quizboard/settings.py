from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True, slots=True)
class Settings:
    # Seconds between keep-alive comments on each stream. 0 disables keep-alive.
    keepalive_interval_sec: float = 25.0
    # Frames buffered per stream before further pushes count as delivery failures.
    subscriber_queue_size: int = 64
    # How often an idle stream checks whether its client went away.
    poll_interval_sec: float = 0.5
    log_level: str = "INFO"


def settings_from_env(*, env_file: Path | None = None) -> Settings:
    """Build settings from QUIZBOARD_* environment variables.

    A `.env` file (the given one, or the one found from the working directory) is
    loaded first without overriding variables that are already set.
    """

    if env_file is not None:
        load_dotenv(dotenv_path=env_file, override=False)
    else:
        load_dotenv(override=False)

    defaults = Settings()
    return Settings(
        keepalive_interval_sec=float(os.environ.get("QUIZBOARD_KEEPALIVE_SEC", defaults.keepalive_interval_sec)),
        subscriber_queue_size=int(
            os.environ.get("QUIZBOARD_SUBSCRIBER_QUEUE_SIZE", defaults.subscriber_queue_size)
        ),
        poll_interval_sec=float(os.environ.get("QUIZBOARD_POLL_INTERVAL_SEC", defaults.poll_interval_sec)),
        log_level=os.environ.get("QUIZBOARD_LOG_LEVEL", defaults.log_level).upper(),
    )
