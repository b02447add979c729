from datetime import date, datetime

import pytest

from services.schedule import (
    candidate_bounds,
    format_hhmm,
    generate_slot_candidates,
    parse_hhmm,
)


def test_lunch_overlap_is_skipped():
    candidates = generate_slot_candidates(
        date(2025, 9, 15), date(2025, 9, 15), "09:00", "11:00", "10:00", "10:30", 30
    )
    assert [c.start for c in candidates] == ["09:00", "09:30", "10:30"]
    assert all(c.day == date(2025, 9, 15) for c in candidates)


def test_one_block_per_day_in_range():
    candidates = generate_slot_candidates(
        datetime(2025, 9, 15, 9, 0), datetime(2025, 9, 17, 18, 0), "09:00", "18:00", "12:00", "13:00", 30
    )
    days = sorted({c.day for c in candidates})
    assert days == [date(2025, 9, 15), date(2025, 9, 16), date(2025, 9, 17)]
    # 6 steps before lunch and 10 after it
    assert len(candidates) == 3 * 16
    assert candidates == sorted(candidates)


def test_last_step_must_fit_before_closing():
    candidates = generate_slot_candidates(
        date(2025, 9, 15), date(2025, 9, 15), "09:00", "10:00", "12:00", "13:00", 45
    )
    assert [c.start for c in candidates] == ["09:00"]


def test_partial_lunch_overlap_is_skipped():
    candidates = generate_slot_candidates(
        date(2025, 9, 15), date(2025, 9, 15), "11:00", "14:00", "12:15", "12:45", 60
    )
    assert [c.start for c in candidates] == ["11:00", "13:00"]


@pytest.mark.parametrize("duration", [15, 20, 30, 45, 60, 90, 120])
def test_every_candidate_stays_in_hours_and_off_lunch(duration):
    op_start, op_end = parse_hhmm("08:30"), parse_hhmm("19:00")
    lunch_start, lunch_end = parse_hhmm("12:10"), parse_hhmm("13:20")

    candidates = generate_slot_candidates(
        date(2025, 9, 15), date(2025, 9, 16), "08:30", "19:00", "12:10", "13:20", duration
    )
    assert candidates
    for c in candidates:
        start = parse_hhmm(c.start)
        end = start + duration
        assert op_start <= start and end <= op_end
        assert end <= lunch_start or start >= lunch_end


def test_generation_is_deterministic():
    args = (date(2025, 9, 15), date(2025, 9, 16), "09:00", "18:00", "12:00", "13:00", 30)
    assert generate_slot_candidates(*args) == generate_slot_candidates(*args)


@pytest.mark.parametrize("args", [
    (date(2025, 9, 15), date(2025, 9, 15), "09:00", "18:00", "12:00", "13:00", 0),
    (date(2025, 9, 16), date(2025, 9, 15), "09:00", "18:00", "12:00", "13:00", 30),
    (date(2025, 9, 15), date(2025, 9, 15), "18:00", "09:00", "12:00", "13:00", 30),
    (date(2025, 9, 15), date(2025, 9, 15), "9am", "18:00", "12:00", "13:00", 30),
    (date(2025, 9, 15), date(2025, 9, 15), "09:00", "18:00", "13:00", "12:00", 30),
])
def test_invalid_input_raises(args):
    with pytest.raises(ValueError):
        generate_slot_candidates(*args)


def test_hhmm_helpers():
    assert parse_hhmm("9:05") == 545
    assert format_hhmm(545) == "09:05"
    with pytest.raises(ValueError):
        parse_hhmm("24:00")


def test_candidate_bounds():
    (candidate,) = generate_slot_candidates(
        date(2025, 9, 15), date(2025, 9, 15), "10:30", "11:00", "12:00", "13:00", 30
    )
    start, end = candidate_bounds(candidate, 30)
    assert start == datetime(2025, 9, 15, 10, 30)
    assert end == datetime(2025, 9, 15, 11, 0)
