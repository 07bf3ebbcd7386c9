"""Core leaderboard primitives (session state, standings, wire events).

Kept free of FastAPI concerns so it can be reused by API routes, the broadcast hub, and tests.
"""
