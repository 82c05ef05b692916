import re
from typing import Literal

from pydantic import BaseModel, field_validator

from whenworks.scheduling import TimeBlock, decode
from whenworks.scheduling.slot_keys import grid_keys

NameOption = Literal["required", "optional", "anonymous"]

_INVISIBLE_RE = re.compile("[\u0000-\u001f\u007f-\u009f\u200b-\u200d\ufeff]")


def sanitize_name(name: str, max_length: int = 50) -> str:
    """Trim, drop control and zero-width characters, cap the length."""
    return _INVISIBLE_RE.sub("", name.strip())[:max_length]


class EventConfig(BaseModel):
    id: str
    name: str
    slug: str
    dates: list[str]
    start_time: str
    end_time: str
    timezone: str
    name_option: NameOption = "required"
    created_at: str

    def grid(self) -> set[str]:
        return set(grid_keys(self.dates, self.start_time, self.end_time))


class ParticipantAvailability(BaseModel):
    id: str
    event_id: str
    participant_name: str
    slots: list[str]
    submitted_at: str

    @field_validator("slots")
    @classmethod
    def validate_slots(cls, v: list[str]) -> list[str]:
        for key in v:
            decode(key)
        # dict.fromkeys keeps first occurrence order
        return list(dict.fromkeys(v))


class SlotSummary(BaseModel):
    count: int
    participants: list[str]
    ratio: float


class BestTime(BaseModel):
    date: str
    start_time: str
    end_time: str
    count: int
    participants: list[str]

    @classmethod
    def from_block(cls, block: TimeBlock) -> "BestTime":
        return cls(
            date=block.date,
            start_time=block.start_time,
            end_time=block.end_time,
            count=block.count,
            participants=block.participants,
        )


class EventSummary(BaseModel):
    event: EventConfig
    participant_count: int
    slots: dict[str, SlotSummary]
    best_times: list[BestTime]
    everyone_available: bool


class BestTimesResponse(BaseModel):
    participant_count: int
    best_times: list[BestTime]


class ExportLinks(BaseModel):
    google: str
    outlook: str
    ics: str
