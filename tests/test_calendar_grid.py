"""
Tests for slot grid generation.
"""

import pendulum
import pytest

from clinicbook.domain.calendar_grid import generate_slots, local_midnight_utc, to_local
from clinicbook.domain.models import AvailabilityWindow

DAY = pendulum.date(2024, 1, 1)


class TestGenerateSlots:
    """Tests for generate_slots."""

    def test_default_window_has_36_slots(self):
        """09:00-18:00 in 15 minute steps."""
        slots = generate_slots(DAY, AvailabilityWindow())

        assert len(slots) == 36
        assert slots[0] == pendulum.parse("2024-01-01T09:00:00Z")
        assert slots[-1] == pendulum.parse("2024-01-01T17:45:00Z")

    @pytest.mark.parametrize(
        "start_hour, end_hour, granularity, expected",
        [
            (9, 18, 15, 36),
            (9, 18, 30, 18),
            (8, 12, 60, 4),
            (0, 24, 10, 144),
            (12, 12, 15, 0),
            (18, 9, 15, 0),
            (9, 18, 0, 0),
            (9, 18, -15, 0),
        ],
    )
    def test_slot_count_matches_quotient(self, start_hour, end_hour, granularity, expected):
        window = AvailabilityWindow(start_hour=start_hour, end_hour=end_hour, granularity_minutes=granularity)

        assert len(generate_slots(DAY, window)) == expected

    @pytest.mark.parametrize(
        "granularity, expected",
        [
            (25, 22),
            (40, 14),
            (120, 5),
        ],
    )
    def test_uneven_granularity_rounds_up(self, granularity, expected):
        """Every start before closing time gets a slot, so the last one may run past 18:00."""
        slots = generate_slots(DAY, AvailabilityWindow(granularity_minutes=granularity))

        assert len(slots) == expected
        assert slots[-1] < pendulum.parse("2024-01-01T18:00:00Z")
        assert slots[-1].add(minutes=granularity) > pendulum.parse("2024-01-01T18:00:00Z")

    def test_slots_are_ordered_and_evenly_spaced(self):
        slots = generate_slots(DAY, AvailabilityWindow(granularity_minutes=20))

        gaps = {(b - a).total_seconds() for a, b in zip(slots, slots[1:])}
        assert gaps == {20 * 60}

    def test_tz_offset_shifts_local_midnight(self):
        """UTC+3 clients send -180; local 09:00 is 06:00 UTC."""
        slots = generate_slots(DAY, AvailabilityWindow(), tz_offset=-180)

        assert slots[0] == pendulum.parse("2024-01-01T06:00:00Z")

    def test_negative_utc_offset(self):
        """UTC-5 clients send 300; local 09:00 is 14:00 UTC."""
        slots = generate_slots(DAY, AvailabilityWindow(), tz_offset=300)

        assert slots[0] == pendulum.parse("2024-01-01T14:00:00Z")

    def test_repeated_calls_are_identical(self):
        window = AvailabilityWindow()

        assert generate_slots(DAY, window, 60) == generate_slots(DAY, window, 60)


def test_local_round_trip():
    midnight = local_midnight_utc(DAY, tz_offset=-180)

    assert midnight == pendulum.parse("2023-12-31T21:00:00Z")
    assert to_local(midnight, -180).format("YYYY-MM-DD HH:mm") == "2024-01-01 00:00"
