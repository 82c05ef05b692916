"""Best meeting time selection.

Collapses a slot aggregate into contiguous blocks of equal availability and
ranks them. Blocks never cross a date boundary.
"""

from collections import defaultdict
from dataclasses import dataclass, field

from whenworks.scheduling.aggregation import SlotAggregate
from whenworks.scheduling.errors import InvalidLimitError
from whenworks.scheduling.slot_keys import minutes_of, slot_end_time, split_key

DEFAULT_LIMIT = 3


@dataclass
class TimeBlock:
    date: str
    start_time: str
    end_time: str
    count: int
    participants: list[str] = field(default_factory=list)

    @property
    def duration_minutes(self) -> int:
        return minutes_of(self.end_time) - minutes_of(self.start_time)

    def sort_key(self) -> tuple[int, int, str, str]:
        return (-self.count, -self.duration_minutes, self.date, self.start_time)


def _blocks_for_date(day: str, entries: list[tuple[str, int, list[str]]]) -> list[TimeBlock]:
    blocks: list[TimeBlock] = []
    current: TimeBlock | None = None
    for time, count, participants in sorted(entries, key=lambda e: e[0]):
        end = slot_end_time(time)
        if current is not None and time == current.end_time and count == current.count:
            current.end_time = end
            # Only people free for every slot of the block count towards it.
            names = set(participants)
            current.participants = [p for p in current.participants if p in names]
            continue
        if current is not None:
            blocks.append(current)
        current = TimeBlock(day, time, end, count, list(participants))
    if current is not None:
        blocks.append(current)
    return blocks


def find_best_blocks(
    aggregate: SlotAggregate,
    total_participants: int,
    limit: int = DEFAULT_LIMIT,
) -> list[TimeBlock]:
    """Rank contiguous equal-count blocks, best first.

    Ordering is count descending, then duration descending, then date and
    start time ascending.

    Args:
        aggregate: Output of ``aggregate``.
        total_participants: Number of submissions the aggregate was built
            from. Zero yields an empty result.
        limit: Maximum number of blocks to return.

    Raises:
        InvalidLimitError: If ``limit`` is not positive.
    """
    if limit <= 0:
        raise InvalidLimitError(f"limit must be positive, got {limit}")
    if total_participants <= 0:
        return []

    by_date: dict[str, list[tuple[str, int, list[str]]]] = defaultdict(list)
    for key, tally in aggregate.items():
        day, time = split_key(key)
        by_date[day].append((time, tally.count, tally.participants))

    blocks: list[TimeBlock] = []
    for day, entries in by_date.items():
        blocks.extend(_blocks_for_date(day, entries))

    blocks.sort(key=TimeBlock.sort_key)
    return blocks[:limit]
