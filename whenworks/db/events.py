import logging
import re
import secrets
import uuid
from datetime import UTC, datetime

from psycopg import errors as pg_errors
from psycopg.types.json import Json

from whenworks.db.core import _get_connection
from whenworks.models.events import EventConfig

_logger = logging.getLogger(__name__)

_EVENT_COLUMNS = "id, name, slug, dates, start_time, end_time, timezone, name_option, created_at"


def make_slug(name: str) -> str:
    """URL slug from an event name plus a random suffix."""
    base = re.sub(r"\s+", "-", name.lower())
    base = re.sub(r"[^a-z0-9-]", "", base)[:50]
    return f"{base}-{secrets.token_hex(3)}"


def _row_to_event(row) -> EventConfig:
    return EventConfig(
        id=str(row[0]),
        name=row[1],
        slug=row[2],
        dates=row[3],
        start_time=row[4],
        end_time=row[5],
        timezone=row[6],
        name_option=row[7],
        created_at=row[8].astimezone(UTC).isoformat(),
    )


async def create_event(
    name: str,
    dates: list[str],
    start_time: str,
    end_time: str,
    timezone: str,
    name_option: str = "required",
) -> EventConfig:
    now = datetime.now(UTC)
    event_id = str(uuid.uuid4())
    async with _get_connection() as conn:
        for _ in range(10):
            slug = make_slug(name)
            try:
                await conn.execute(
                    f"""INSERT INTO events ({_EVENT_COLUMNS})
                       VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)""",
                    (event_id, name, slug, Json(dates), start_time, end_time, timezone, name_option, now),
                )
            except pg_errors.UniqueViolation:
                _logger.debug("Slug collision for %s, retrying", slug)
                continue
            return EventConfig(
                id=event_id,
                name=name,
                slug=slug,
                dates=dates,
                start_time=start_time,
                end_time=end_time,
                timezone=timezone,
                name_option=name_option,
                created_at=now.isoformat(),
            )
        raise RuntimeError("Failed to generate unique event slug")


async def get_event_by_slug(slug: str) -> EventConfig | None:
    async with _get_connection() as conn:
        cur = await conn.execute(f"SELECT {_EVENT_COLUMNS} FROM events WHERE slug = %s", (slug,))
        row = await cur.fetchone()
        return _row_to_event(row) if row else None
