"""Availability aggregation and best-time selection."""

from whenworks.scheduling.aggregation import SlotAggregate, SlotTally, aggregate, availability_ratio
from whenworks.scheduling.blocks import DEFAULT_LIMIT, TimeBlock, find_best_blocks
from whenworks.scheduling.errors import (
    InvalidLimitError,
    InvalidTimeError,
    MalformedKeyError,
    SchedulingError,
)
from whenworks.scheduling.slot_keys import SlotKey, decode, encode, end_of_slot

__all__ = [
    "DEFAULT_LIMIT",
    "InvalidLimitError",
    "InvalidTimeError",
    "MalformedKeyError",
    "SchedulingError",
    "SlotAggregate",
    "SlotKey",
    "SlotTally",
    "TimeBlock",
    "aggregate",
    "availability_ratio",
    "decode",
    "encode",
    "end_of_slot",
    "find_best_blocks",
]
