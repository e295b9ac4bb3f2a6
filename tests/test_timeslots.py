import datetime as dt

import pytest

from schedule_app.services.timeslots import (
    format_clock,
    generate_slots,
    parse_clock,
    slot_labels,
    start_options,
    time_options,
)


def test_one_hour_quarter_slots_exclude_window_end():
    assert slot_labels(parse_clock("09:00"), parse_clock("10:00"), 15) == ["09:00", "09:15", "09:30", "09:45"]


@pytest.mark.parametrize("granularity", [5, 10, 15, 20, 30, 60])
def test_empty_window_has_no_slots(granularity):
    assert generate_slots(540, 540, granularity) == ()


def test_inverted_window_has_no_slots():
    assert generate_slots(parse_clock("17:00"), parse_clock("09:00"), 15) == ()


def test_last_slot_is_kept_when_it_starts_before_window_end():
    # 09:00-10:10 with 20 minutes: 10:00 starts before 10:10 and is a full bucket
    assert slot_labels(540, 610, 20) == ["09:00", "09:20", "09:40", "10:00"]


def test_slot_equal_to_window_end_is_excluded():
    assert slot_labels(parse_clock("16:00"), parse_clock("17:00"), 20) == ["16:00", "16:20", "16:40"]


def test_same_inputs_same_sequence():
    assert generate_slots(540, 720, 30) == generate_slots(540, 720, 30)
    assert len(generate_slots(540, 720, 30)) == 6


@pytest.mark.parametrize("bad", [0, -15, 1.5, True, "15"])
def test_granularity_must_be_positive_int(bad):
    with pytest.raises(ValueError):
        generate_slots(540, 600, bad)


def test_parse_clock_accepts_common_forms():
    assert parse_clock("09:30") == 570
    assert parse_clock("09:30:45") == 570
    assert parse_clock("2024-05-01T09:30:00") == 570
    assert parse_clock("2000-01-01 13:05") == 785
    assert parse_clock(dt.time(8, 15)) == 495
    assert parse_clock(dt.datetime(2030, 1, 1, 23, 59)) == 1439


def test_parse_clock_end_of_day_only_when_allowed():
    assert parse_clock("24:00", allow_end_of_day=True) == 1440
    with pytest.raises(ValueError):
        parse_clock("24:00")


@pytest.mark.parametrize("bad", ["", "9", "ab:cd", "10:75", "25:00", None])
def test_parse_clock_rejects_garbage(bad):
    with pytest.raises(ValueError):
        parse_clock(bad)


def test_format_clock_pads():
    assert format_clock(5) == "00:05"
    assert format_clock(1440) == "24:00"


def test_time_options_cover_the_day_in_half_hours():
    options = time_options()
    assert options[0] == "00:00"
    assert options[-1] == "23:30"
    assert len(options) == 48


def test_start_options_drop_bookings_past_midnight():
    assert start_options(parse_clock("23:00"), 1440, 15, duration=30) == [1380, 1395, 1410]
