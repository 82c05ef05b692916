"""Participant availability store.

One row per (event, participant); participant names are unique per event
regardless of case. The scheduling core only needs
``get_event_availability``: everything for one event, read in one query.
"""

import logging
import uuid
from datetime import UTC, datetime

from psycopg.types.json import Json

from whenworks.db.core import _get_connection, transaction
from whenworks.models.events import ParticipantAvailability

_logger = logging.getLogger(__name__)

_COLUMNS = "id, event_id, participant_name, slots, submitted_at"


class NameTakenError(Exception):
    """Another session already owns this participant name."""

    def __init__(self, participant_name: str) -> None:
        self.participant_name = participant_name
        super().__init__(f"name already taken: {participant_name}")


def _row_to_availability(row) -> ParticipantAvailability:
    return ParticipantAvailability(
        id=str(row[0]),
        event_id=str(row[1]),
        participant_name=row[2],
        slots=row[3],
        submitted_at=row[4].astimezone(UTC).isoformat(),
    )


async def get_event_availability(event_id: str) -> list[ParticipantAvailability]:
    async with _get_connection() as conn:
        rows = await conn.execute(
            f"SELECT {_COLUMNS} FROM availability WHERE event_id = %s ORDER BY submitted_at, id",
            (event_id,),
        )
        result = []
        async for row in rows:
            result.append(_row_to_availability(row))
        return result


async def get_participant_availability(
    event_id: str, participant_name: str
) -> ParticipantAvailability | None:
    async with _get_connection() as conn:
        cur = await conn.execute(
            f"""SELECT {_COLUMNS} FROM availability
               WHERE event_id = %s AND lower(participant_name) = lower(%s)""",
            (event_id, participant_name),
        )
        row = await cur.fetchone()
        return _row_to_availability(row) if row else None



async def upsert_availability(
    event_id: str,
    participant_name: str,
    slots: list[str],
    session_token: str | None = None,
) -> ParticipantAvailability:
    """Insert or replace a participant's slots.

    Raises:
        NameTakenError: The name was first submitted with a different
            session token.
    """
    now = datetime.now(UTC)
    async with transaction() as conn:
        cur = await conn.execute(
            """SELECT session_token FROM availability
               WHERE event_id = %s AND lower(participant_name) = lower(%s)
               FOR UPDATE""",
            (event_id, participant_name),
        )
        existing = await cur.fetchone()
        if existing and existing[0] and existing[0] != session_token:
            _logger.warning("Rejected submission for taken name %s on event %s", participant_name, event_id)
            raise NameTakenError(participant_name)

        cur = await conn.execute(
            f"""INSERT INTO availability (id, event_id, participant_name, slots, session_token, submitted_at)
               VALUES (%s, %s, %s, %s, %s, %s)
               ON CONFLICT (event_id, lower(participant_name)) DO UPDATE
               SET slots = EXCLUDED.slots,
                   session_token = COALESCE(availability.session_token, EXCLUDED.session_token),
                   submitted_at = EXCLUDED.submitted_at
               RETURNING {_COLUMNS}""",
            (str(uuid.uuid4()), event_id, participant_name, Json(slots), session_token, now),
        )
        row = await cur.fetchone()
        return _row_to_availability(row)
