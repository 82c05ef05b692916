"""Postgres persistence for events and participant availability."""

from whenworks.db.availability import (
    NameTakenError,
    get_event_availability,
    get_participant_availability,
    upsert_availability,
)
from whenworks.db.core import close_pool, get_pool_stats, init_pool
from whenworks.db.events import create_event, get_event_by_slug

__all__ = [
    "NameTakenError",
    "close_pool",
    "create_event",
    "get_event_availability",
    "get_event_by_slug",
    "get_participant_availability",
    "get_pool_stats",
    "init_pool",
    "upsert_availability",
]
