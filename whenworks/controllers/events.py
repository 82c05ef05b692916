import hashlib
import logging
import re
import secrets
from datetime import date
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Header, Query, Request, Response
from pydantic import BaseModel, field_validator, model_validator
from redis.exceptions import RedisError

from whenworks import db
from whenworks.calendar_export import (
    CalendarEvent,
    generate_ics,
    google_calendar_url,
    ics_filename,
    outlook_calendar_url,
)
from whenworks.config import get_settings
from whenworks.dependencies import EventLimiter, SubmitLimiter
from whenworks.errors import BadRequestError, ConflictError, NotFoundError, RateLimitedError
from whenworks.middleware import client_ip
from whenworks.models.events import (
    BestTime,
    BestTimesResponse,
    EventConfig,
    EventSummary,
    ExportLinks,
    NameOption,
    ParticipantAvailability,
    SlotSummary,
    sanitize_name,
)
from whenworks.rate_limit import RateLimiter
from whenworks.scheduling import TimeBlock, aggregate, availability_ratio, decode, find_best_blocks
from whenworks.scheduling.slot_keys import minutes_of, parse_time

logger = logging.getLogger("whenworks.events")
router = APIRouter(prefix="/events", tags=["events"])

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class CreateEventRequest(BaseModel):
    name: str
    dates: list[str]
    start_time: str
    end_time: str
    timezone: str = "UTC"
    name_option: NameOption = "required"

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = sanitize_name(v, max_length=200)
        if not v or len(v) > 100:
            raise ValueError("name must be 1-100 characters")
        return v

    @field_validator("dates")
    @classmethod
    def validate_dates(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("dates must not be empty")
        max_dates = get_settings().scheduling.max_dates
        for d in v:
            if not DATE_RE.match(d):
                raise ValueError(f"invalid date format: {d}")
            date.fromisoformat(d)
        unique = sorted(set(v))
        if len(unique) > max_dates:
            raise ValueError(f"at most {max_dates} dates are allowed")
        return unique

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v: str) -> str:
        parse_time(v)
        return v

    @field_validator("end_time")
    @classmethod
    def validate_end_time(cls, v: str) -> str:
        # 24:00 lets the grid include the 23:30 slot
        if v != "24:00":
            parse_time(v)
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError, OSError) as e:
            raise ValueError(f"unknown timezone: {v}") from e
        return v

    @model_validator(mode="after")
    def validate_time_range(self) -> "CreateEventRequest":
        if minutes_of(self.start_time) >= minutes_of(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self


class AvailabilityRequest(BaseModel):
    participant_name: str | None = None
    slots: list[str]

    @field_validator("participant_name")
    @classmethod
    def validate_participant_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return sanitize_name(v) or None

    @field_validator("slots")
    @classmethod
    def validate_slots(cls, v: list[str]) -> list[str]:
        for key in v:
            decode(key)
        return list(dict.fromkeys(v))


async def _enforce_rate_limit(limiter: RateLimiter, key: str) -> None:
    try:
        result = await limiter.check_and_consume(key)
    except RedisError as e:
        logger.warning("Rate limiter unavailable, allowing request key=%s err=%s", key, e)
        return
    if not result.allowed:
        raise RateLimitedError(
            detail=f"Too many requests. Try again in {result.reset_in} seconds.",
            reset_in=result.reset_in,
        )


async def _get_event_or_404(slug: str) -> EventConfig:
    event = await db.get_event_by_slug(slug)
    if not event:
        logger.warning("Event not found: %s", slug)
        raise NotFoundError(detail="Event not found", slug=slug)
    return event


def _resolve_limit(limit: int | None) -> int:
    scheduling = get_settings().scheduling
    if limit is None:
        return scheduling.default_best_times
    return min(limit, scheduling.max_best_times)


def _anonymous_name(session_token: str | None) -> str:
    # Same session, same anonymous identity, so resubmissions replace the record.
    if session_token:
        return f"Anonymous-{hashlib.sha256(session_token.encode()).hexdigest()[:8]}"
    return f"Anonymous-{secrets.token_hex(4)}"


def _resolve_participant_name(event: EventConfig, requested: str | None, session_token: str | None) -> str:
    if event.name_option == "anonymous":
        return _anonymous_name(session_token)
    if requested:
        return requested
    if event.name_option == "optional":
        return _anonymous_name(session_token)
    raise BadRequestError(detail="participant_name is required for this event")


async def _best_blocks(event: EventConfig, limit: int) -> tuple[int, list[TimeBlock]]:
    records = await db.get_event_availability(event.id)
    blocks = find_best_blocks(aggregate(records), len(records), limit)
    return len(records), blocks


@router.post("", status_code=201, response_model=EventConfig)
async def create_event(req: CreateEventRequest, request: Request, limiter: EventLimiter) -> EventConfig:
    ip = client_ip(request)
    logger.info("POST /events name=%s dates=%d ip=%s", req.name, len(req.dates), ip)
    await _enforce_rate_limit(limiter, ip)
    event = await db.create_event(
        name=req.name,
        dates=req.dates,
        start_time=req.start_time,
        end_time=req.end_time,
        timezone=req.timezone,
        name_option=req.name_option,
    )
    logger.info("Created event id=%s slug=%s", event.id, event.slug)
    return event


@router.get("/{slug}", response_model=EventConfig)
async def get_event(slug: str) -> EventConfig:
    return await _get_event_or_404(slug)


@router.get("/{slug}/summary", response_model=EventSummary)
async def get_event_summary(slug: str, limit: int | None = Query(None)) -> EventSummary:
    event = await _get_event_or_404(slug)
    records = await db.get_event_availability(event.id)
    total = len(records)
    slots = aggregate(records)
    blocks = find_best_blocks(slots, total, _resolve_limit(limit))
    logger.info("Summary for %s: participants=%d slots=%d blocks=%d", slug, total, len(slots), len(blocks))
    return EventSummary(
        event=event,
        participant_count=total,
        slots={
            key: SlotSummary(
                count=tally.count,
                participants=tally.participants,
                ratio=availability_ratio(tally, total),
            )
            for key, tally in sorted(slots.items())
        },
        best_times=[BestTime.from_block(b) for b in blocks],
        everyone_available=bool(blocks) and blocks[0].count == total,
    )


@router.get("/{slug}/best-times", response_model=BestTimesResponse)
async def get_best_times(slug: str, limit: int | None = Query(None)) -> BestTimesResponse:
    event = await _get_event_or_404(slug)
    total, blocks = await _best_blocks(event, _resolve_limit(limit))
    return BestTimesResponse(
        participant_count=total,
        best_times=[BestTime.from_block(b) for b in blocks],
    )


@router.post("/{slug}/availability", response_model=ParticipantAvailability)
async def submit_availability(
    slug: str,
    req: AvailabilityRequest,
    request: Request,
    limiter: SubmitLimiter,
    x_session_token: str | None = Header(None),
) -> ParticipantAvailability:
    event = await _get_event_or_404(slug)
    await _enforce_rate_limit(limiter, f"{event.id}:{client_ip(request)}")
    name = _resolve_participant_name(event, req.participant_name, x_session_token)
    logger.info("POST /events/%s/availability participant=%s slots=%d", slug, name, len(req.slots))

    grid = event.grid()
    for key in req.slots:
        if key not in grid:
            logger.warning("Invalid slot %s for event %s", key, slug)
            raise BadRequestError(detail=f"Invalid slot: {key}", slot=key)

    try:
        record = await db.upsert_availability(event.id, name, req.slots, x_session_token)
    except db.NameTakenError:
        raise ConflictError(detail="This name is already taken. Please use a different name.")
    logger.info("Upserted availability for %s on event %s", name, slug)
    return record


@router.get("/{slug}/availability/{participant_name}", response_model=ParticipantAvailability)
async def get_participant_availability(slug: str, participant_name: str) -> ParticipantAvailability:
    event = await _get_event_or_404(slug)
    record = await db.get_participant_availability(event.id, participant_name)
    if not record:
        raise NotFoundError(detail="Participant not found", participant_name=participant_name)
    return record


async def _calendar_event(slug: str, rank: int) -> CalendarEvent:
    event = await _get_event_or_404(slug)
    total, blocks = await _best_blocks(event, rank + 1)
    if len(blocks) <= rank:
        raise NotFoundError(detail="No meeting time available to export", rank=rank)
    block = blocks[rank]
    description = (
        f"Meeting scheduled via WhenWorks. {len(block.participants)}/{total} participant(s) "
        f"available: {', '.join(block.participants)}"
    )
    return CalendarEvent.from_block(block, title=event.name, timezone=event.timezone, description=description)


@router.get("/{slug}/export.ics")
async def export_ics(slug: str, rank: int = Query(0, ge=0)) -> Response:
    calendar_event = await _calendar_event(slug, rank)
    return Response(
        content=generate_ics(calendar_event),
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{ics_filename(calendar_event)}"'},
    )


@router.get("/{slug}/export-links", response_model=ExportLinks)
async def export_links(slug: str, request: Request, rank: int = Query(0, ge=0)) -> ExportLinks:
    calendar_event = await _calendar_event(slug, rank)
    return ExportLinks(
        google=google_calendar_url(calendar_event),
        outlook=outlook_calendar_url(calendar_event),
        ics=str(request.url_for("export_ics", slug=slug).include_query_params(rank=rank)),
    )
