"""
Persistence - Snapshots of the session in a key-value store.

The only persisted data is the latest session snapshot. Writes are
best-effort; a missing or unreadable snapshot means "no saved game".
"""

from .store import KeyValueStore, InMemoryStore, FileStore
from .snapshot import (
    TileModel,
    PuzzleModel,
    TicketModel,
    SessionSnapshot,
    encode_state,
    decode_state,
)

__all__ = [
    "KeyValueStore",
    "InMemoryStore",
    "FileStore",
    "TileModel",
    "PuzzleModel",
    "TicketModel",
    "SessionSnapshot",
    "encode_state",
    "decode_state",
]
