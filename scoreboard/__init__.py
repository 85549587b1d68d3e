"""
scoreboard - Live broadcast server for the ringside match timer

Pushes state and history snapshots to every connected display over
WebSockets and takes commands from the admin channel. Finished matches go
into a small SQLite history.
"""

from .db import MatchHistoryStore
from .publisher import BroadcastPublisher
from .server import create_app
from .session import MatchSession

__all__ = ["create_app", "MatchHistoryStore", "BroadcastPublisher", "MatchSession"]
