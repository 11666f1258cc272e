from __future__ import annotations

import pytest
from pydantic import ValidationError

from pyroomba.models.schedule import Schedule, ScheduleEntry
from pyroomba.models.state import CleanSchedule

WEEKDAYS_ONLY = 0b0111110


@pytest.mark.parametrize("mask", [0, 1, WEEKDAYS_ONLY, 0b1000001, 127])
def test_bitmask_survives_schedule_conversion(mask: int) -> None:
    assert Schedule.from_bitmask(mask).to_bitmask() == mask


def test_bit_zero_is_sunday() -> None:
    schedule = Schedule.from_bitmask(1)
    assert schedule.is_enabled(0)
    assert schedule.enabled_days() == frozenset({0})


@pytest.mark.parametrize("mask", [-1, 128, 1 << 10])
def test_bitmask_out_of_range_is_rejected(mask: int) -> None:
    with pytest.raises(ValueError):
        Schedule.from_bitmask(mask)


def test_schedule_requires_seven_entries() -> None:
    with pytest.raises(ValidationError):
        Schedule(entries=(ScheduleEntry(),) * 6)


def test_with_day_changes_only_that_day() -> None:
    schedule = Schedule.from_cycle(
        ["none", "start", "start", "none", "start", "none", "none"],
        hours=[9, 9, 9, 9, 9, 10, 10],
        minutes=[0, 30, 30, 30, 30, 0, 0],
    )

    toggled = schedule.with_day(3, True)

    assert len(toggled.entries) == 7
    assert toggled.enabled_days() == schedule.enabled_days() | {3}
    assert [e.hour for e in toggled.entries] == [e.hour for e in schedule.entries]
    assert schedule.is_enabled(3) is False


def test_with_day_rejects_bad_index() -> None:
    with pytest.raises(ValueError):
        Schedule.from_bitmask(0).with_day(7, True)


def test_with_bitmask_keeps_start_times() -> None:
    schedule = Schedule.from_cycle(["start"] * 7, hours=[8] * 7, minutes=[15] * 7)
    updated = schedule.with_bitmask(WEEKDAYS_ONLY)

    assert updated.to_bitmask() == WEEKDAYS_ONLY
    assert updated.to_payload() == {
        "cycle": ["none", "start", "start", "start", "start", "start", "none"],
        "h": [8] * 7,
        "m": [15] * 7,
    }


def test_payload_omits_times_when_unknown() -> None:
    assert Schedule.from_bitmask(1).to_payload() == {
        "cycle": ["start", "none", "none", "none", "none", "none", "none"],
    }


def test_from_cycle_ignores_partial_times() -> None:
    schedule = Schedule.from_cycle(["start"] * 7, hours=[8] * 3, minutes=[0] * 7)
    assert all(entry.hour is None for entry in schedule.entries)


def test_from_cycle_rejects_wrong_length() -> None:
    with pytest.raises(ValueError):
        Schedule.from_cycle(["start"] * 5)


def test_clean_schedule_without_cycle_has_no_schedule() -> None:
    assert CleanSchedule(h=[1] * 7, m=[0] * 7).to_schedule() is None
    assert CleanSchedule(cycle=["start"] * 3).to_schedule() is None


def test_clean_schedule_converts_wire_arrays() -> None:
    wire = CleanSchedule.model_validate(
        {"cycle": ["start", "none", "none", "none", "none", "none", "start"], "h": [9] * 7, "m": [0] * 7}
    )
    schedule = wire.to_schedule()
    assert schedule is not None
    assert schedule.to_bitmask() == 0b1000001
    assert schedule.entries[0].hour == 9


def test_toggle_single_day_of_empty_week() -> None:
    cached = Schedule.from_bitmask(0)
    toggled = cached.with_day(3, True)

    for day in range(7):
        if day != 3:
            assert toggled.entries[day] == cached.entries[day]
    assert toggled.is_enabled(3)
    assert len(toggled.to_payload()["cycle"]) == 7
