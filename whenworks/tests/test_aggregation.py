import itertools

import pytest
from pydantic import ValidationError

from whenworks.models.events import ParticipantAvailability
from whenworks.scheduling import SlotTally, aggregate, availability_ratio


def _record(name: str, *slots: str) -> ParticipantAvailability:
    return ParticipantAvailability(
        id=f"id-{name}",
        event_id="event-1",
        participant_name=name,
        slots=list(slots),
        submitted_at="2024-01-01T00:00:00+00:00",
    )


@pytest.fixture
def records():
    return [
        _record("P1", "2024-01-10T09:00", "2024-01-10T09:30"),
        _record("P2", "2024-01-10T09:00"),
        _record("P3", "2024-01-10T09:00", "2024-01-10T09:30", "2024-01-10T10:00"),
    ]


class TestAggregate:
    def test_counts_and_participants(self, records):
        result = aggregate(records)
        assert result == {
            "2024-01-10T09:00": SlotTally(3, ["P1", "P2", "P3"]),
            "2024-01-10T09:30": SlotTally(2, ["P1", "P3"]),
            "2024-01-10T10:00": SlotTally(1, ["P3"]),
        }

    def test_empty_input(self):
        assert aggregate([]) == {}

    def test_participant_without_slots_adds_nothing(self):
        assert aggregate([_record("Idle")]) == {}

    def test_counts_independent_of_record_order(self, records):
        expected = {key: tally.count for key, tally in aggregate(records).items()}
        for permutation in itertools.permutations(records):
            result = aggregate(list(permutation))
            assert {key: tally.count for key, tally in result.items()} == expected
            assert {key: set(t.participants) for key, t in result.items()} == {
                key: set(t.participants) for key, t in aggregate(records).items()
            }

    def test_participants_follow_input_order(self, records):
        result = aggregate(list(reversed(records)))
        assert result["2024-01-10T09:00"].participants == ["P3", "P2", "P1"]

    def test_count_matches_participants_without_duplicates(self, records):
        for tally in aggregate(records).values():
            assert tally.count == len(tally.participants)
            assert len(set(tally.participants)) == len(tally.participants)

    def test_does_not_mutate_input(self, records):
        before = [r.model_copy(deep=True) for r in records]
        aggregate(records)
        assert records == before


class TestRecordValidation:
    def test_duplicate_slots_collapsed(self):
        record = _record("P1", "2024-01-10T09:30", "2024-01-10T09:00", "2024-01-10T09:30")
        assert record.slots == ["2024-01-10T09:30", "2024-01-10T09:00"]
        assert aggregate([record])["2024-01-10T09:30"].participants == ["P1"]

    def test_malformed_slot_rejected_at_boundary(self):
        with pytest.raises(ValidationError):
            _record("P1", "0-1")

    def test_off_grid_slot_rejected_at_boundary(self):
        with pytest.raises(ValidationError):
            _record("P1", "2024-01-10T09:15")


class TestAvailabilityRatio:
    def test_ratio(self):
        assert availability_ratio(SlotTally(2, ["A", "B"]), 4) == 0.5

    def test_zero_participants_is_no_data(self):
        assert availability_ratio(SlotTally(0, []), 0) == 0.0

    def test_missing_slot(self):
        assert availability_ratio(None, 3) == 0.0
