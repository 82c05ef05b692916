import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import uuid
from datetime import UTC, datetime

import fakeredis.aioredis as fakeredis
import pytest
from fakeredis import FakeServer
from fastapi.testclient import TestClient

import whenworks.lifespan as lifespan
import whenworks.main as main
from whenworks import db
from whenworks.config import clear_settings_cache
from whenworks.models.events import EventConfig, ParticipantAvailability


class _AwaitableRedis:
    def __init__(self, client):
        self._client = client

    def __await__(self):
        async def _coro():
            return self._client

        return _coro().__await__()


class FakeStore:
    """In-memory stand-in for the whenworks.db store functions."""

    def __init__(self):
        self.events: dict[str, EventConfig] = {}
        self.records: dict[tuple[str, str], ParticipantAvailability] = {}
        self.tokens: dict[tuple[str, str], str | None] = {}

    def add_event(self, **overrides) -> EventConfig:
        fields = {
            "id": str(uuid.uuid4()),
            "name": "Team sync",
            "slug": "team-sync-abc123",
            "dates": ["2024-01-10", "2024-01-11"],
            "start_time": "09:00",
            "end_time": "12:00",
            "timezone": "UTC",
            "name_option": "required",
            "created_at": "2024-01-01T00:00:00+00:00",
        }
        fields.update(overrides)
        event = EventConfig(**fields)
        self.events[event.slug] = event
        return event

    async def create_event(self, name, dates, start_time, end_time, timezone, name_option="required"):
        return self.add_event(
            name=name,
            slug=f"{name.lower().replace(' ', '-')}-{uuid.uuid4().hex[:6]}",
            dates=dates,
            start_time=start_time,
            end_time=end_time,
            timezone=timezone,
            name_option=name_option,
        )

    async def get_event_by_slug(self, slug):
        return self.events.get(slug)

    async def get_event_availability(self, event_id):
        return [r for (eid, _), r in self.records.items() if eid == event_id]

    async def get_participant_availability(self, event_id, participant_name):
        return self.records.get((event_id, participant_name.lower()))

    async def upsert_availability(self, event_id, participant_name, slots, session_token=None):
        key = (event_id, participant_name.lower())
        owner = self.tokens.get(key)
        if owner and owner != session_token:
            raise db.NameTakenError(participant_name)
        existing = self.records.get(key)
        record = ParticipantAvailability(
            id=existing.id if existing else str(uuid.uuid4()),
            event_id=event_id,
            participant_name=existing.participant_name if existing else participant_name,
            slots=slots,
            submitted_at=datetime.now(UTC).isoformat(),
        )
        self.records[key] = record
        self.tokens[key] = owner or session_token
        return record


@pytest.fixture
def store(monkeypatch):
    fake = FakeStore()
    for name in (
        "create_event",
        "get_event_by_slug",
        "get_event_availability",
        "get_participant_availability",
        "upsert_availability",
    ):
        monkeypatch.setattr(db, name, getattr(fake, name))
    return fake


@pytest.fixture
def client(monkeypatch):
    server = FakeServer()

    def fake_redis_constructor(*_args, **_kwargs):
        fake = fakeredis.FakeRedis(server=server, decode_responses=True)
        return _AwaitableRedis(fake)

    monkeypatch.setenv("ENABLE_DB", "0")
    clear_settings_cache()
    monkeypatch.setattr(lifespan.redis, "Redis", fake_redis_constructor)

    with TestClient(main.app) as c:
        yield c
    clear_settings_cache()
