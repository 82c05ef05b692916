"""Group availability aggregation.

Turns the full set of participant submissions for an event into a per-slot
tally of how many people (and who) marked each slot free. Slots nobody
selected never appear in the result.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from whenworks.scheduling.slot_keys import SlotKey


class AvailabilityRecord(Protocol):
    participant_name: str
    slots: list[SlotKey]


@dataclass
class SlotTally:
    count: int = 0
    participants: list[str] = field(default_factory=list)

    def add(self, participant_name: str) -> None:
        self.count += 1
        self.participants.append(participant_name)


SlotAggregate = dict[SlotKey, SlotTally]


def aggregate(records: Iterable[AvailabilityRecord]) -> SlotAggregate:
    """Tally every record's slots.

    Participant names are listed in the order records are given, so callers
    should pass records in a stable order (the store returns them by
    submission time). Each record's slots are expected to be unique; that
    is enforced where records are built, not here.
    """
    result: SlotAggregate = {}
    for record in records:
        for key in record.slots:
            tally = result.get(key)
            if tally is None:
                tally = result[key] = SlotTally()
            tally.add(record.participant_name)
    return result


def availability_ratio(tally: SlotTally | None, total_participants: int) -> float:
    """Share of participants free in a slot; 0.0 when nobody has responded."""
    if tally is None or total_participants <= 0:
        return 0.0
    return tally.count / total_participants
