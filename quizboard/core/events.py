from __future__ import annotations

STANDINGS_EVENT = "leaderboard"

# Comment frame; EventSource clients ignore it, proxies see traffic.
KEEPALIVE_FRAME = ": heartbeat\n\n"


def encode_event(event: str, payload_json: str) -> str:
    """Frame a single-line JSON payload as a Server-Sent Event."""

    if "\n" in payload_json or "\r" in payload_json:
        raise ValueError("SSE payload must be a single line")
    return f"event: {event}\ndata: {payload_json}\n\n"
