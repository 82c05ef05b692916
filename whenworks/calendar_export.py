"""Calendar export for a chosen meeting block.

Builds an iCalendar payload and Google / Outlook compose links from a
best-time block. Times are local to the event's timezone; an end time of
``24:00`` means midnight at the end of the block's date.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from urllib.parse import urlencode
from zoneinfo import ZoneInfo

from ics import Calendar, Event

from whenworks.scheduling import TimeBlock
from whenworks.scheduling.slot_keys import minutes_of

GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"
OUTLOOK_CALENDAR_URL = "https://outlook.live.com/calendar/0/deeplink/compose"


@dataclass
class CalendarEvent:
    title: str
    date: str
    start_time: str
    end_time: str
    timezone: str
    description: str | None = None

    @classmethod
    def from_block(
        cls,
        block: TimeBlock,
        title: str,
        timezone: str,
        description: str | None = None,
    ) -> "CalendarEvent":
        return cls(
            title=title,
            date=block.date,
            start_time=block.start_time,
            end_time=block.end_time,
            timezone=timezone,
            description=description,
        )

    def _local(self, time: str) -> datetime:
        day = datetime.combine(date.fromisoformat(self.date), datetime.min.time())
        return (day + timedelta(minutes=minutes_of(time))).replace(tzinfo=ZoneInfo(self.timezone))

    @property
    def start(self) -> datetime:
        return self._local(self.start_time)

    @property
    def end(self) -> datetime:
        return self._local(self.end_time)


def generate_ics(event: CalendarEvent) -> str:
    calendar = Calendar(creator="-//WhenWorks//Meeting Scheduler//EN")
    vevent = Event(
        name=event.title,
        begin=event.start,
        end=event.end,
        description=event.description,
        status="CONFIRMED",
    )
    calendar.events.add(vevent)
    return calendar.serialize()


def ics_filename(event: CalendarEvent) -> str:
    """ASCII-only so the name is safe inside a Content-Disposition header."""
    base = re.sub(r"\s+", "-", event.title.lower())
    base = re.sub(r"[^a-z0-9-]", "", base).strip("-")
    return f"{base or 'event'}.ics"


def google_calendar_url(event: CalendarEvent) -> str:
    fmt = "%Y%m%dT%H%M%S"
    params = {
        "action": "TEMPLATE",
        "text": event.title,
        "dates": f"{event.start.strftime(fmt)}/{event.end.strftime(fmt)}",
        "ctz": event.timezone,
    }
    if event.description:
        params["details"] = event.description
    return f"{GOOGLE_CALENDAR_URL}?{urlencode(params)}"


def outlook_calendar_url(event: CalendarEvent) -> str:
    params = {
        "path": "/calendar/action/compose",
        "rru": "addevent",
        "subject": event.title,
        "startdt": event.start.isoformat(),
        "enddt": event.end.isoformat(),
    }
    if event.description:
        params["body"] = event.description
    return f"{OUTLOOK_CALENDAR_URL}?{urlencode(params)}"
