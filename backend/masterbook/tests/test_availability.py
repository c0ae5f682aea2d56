from datetime import date

import pytest

from masterbook.errors import ValidationError
from masterbook.services.scheduling.availability import (
    Availability,
    availability_from_stored,
    build_availability,
    default_availability,
    exceptions_to_json,
    ranges_for_date,
    template_to_json,
)

MONDAY = date(2024, 6, 10)


def _monday_master(**exceptions) -> Availability:
    return build_availability(7, 30, {"1": [["09:00", "13:00"]]}, exceptions)


def test_template_applies_without_exception() -> None:
    assert ranges_for_date(_monday_master(), MONDAY) == ((540, 780),)
    assert ranges_for_date(_monday_master(), date(2024, 6, 11)) == ()


def test_exception_overrides_instead_of_merging() -> None:
    availability = build_availability(
        7, 30, {"1": [["09:00", "13:00"]]}, {"2024-06-10": [["15:00", "16:00"]]}
    )
    assert ranges_for_date(availability, MONDAY) == ((900, 960),)


def test_empty_exception_closes_the_day() -> None:
    availability = build_availability(7, 30, {"1": [["09:00", "13:00"]]}, {"2024-06-10": []})
    assert ranges_for_date(availability, MONDAY) == ()


def test_default_schedule() -> None:
    availability = default_availability(3)

    assert availability.is_default
    assert availability.slot_minutes == 30
    assert availability.week_template[0] == ()
    assert availability.week_template[1] == ((540, 780), (840, 1080))
    assert availability.week_template[4] == ((540, 780), (840, 1080))
    assert availability.week_template[5] == ((600, 960),)
    assert availability.week_template[6] == ((600, 840),)


def test_week_template_as_list_and_missing_days_closed() -> None:
    as_list = build_availability(1, 60, [[], [["09:00", "10:00"]], [], [], [], [], []])
    as_map = build_availability(1, 60, {1: [["09:00", "10:00"]]})

    assert as_list.week_template == as_map.week_template
    assert len(as_map.week_template) == 7
    assert as_map.week_template[3] == ()


@pytest.mark.parametrize("slot_minutes", [0, 10, 121, True, "30"])
def test_slot_minutes_bounds(slot_minutes) -> None:
    with pytest.raises(ValidationError) as exc:
        build_availability(1, slot_minutes, {})
    assert exc.value.context["field"] == "slot_minutes"


@pytest.mark.parametrize("ranges", [
    [["24:00", "25:00"]],
    [["13:00", "09:00"]],
    [["09:00", "09:00"]],
    [["09:00"]],
    "09:00-13:00",
    [["09:00", "12:00"], ["11:00", "13:00"]],
])
def test_invalid_day_ranges_name_the_day(ranges) -> None:
    with pytest.raises(ValidationError) as exc:
        build_availability(1, 30, {"3": ranges})
    assert exc.value.context["day"] == 3


def test_unknown_day_key() -> None:
    with pytest.raises(ValidationError) as exc:
        build_availability(1, 30, {"7": []})
    assert exc.value.context["day"] == "7"


@pytest.mark.parametrize("key", ["2024-6-10", "2024-02-30", "monday"])
def test_invalid_exception_date(key: str) -> None:
    with pytest.raises(ValidationError) as exc:
        build_availability(1, 30, {}, {key: []})
    assert exc.value.context["date"] == key


def test_invalid_exception_ranges_name_the_date() -> None:
    with pytest.raises(ValidationError) as exc:
        build_availability(1, 30, {}, {"2024-06-10": [["18:00", "10:00"]]})
    assert exc.value.context["date"] == "2024-06-10"


def test_stored_form_round_trip_keeps_midnight_crossing_ranges() -> None:
    stored = availability_from_stored(
        5, 60, {"1": [["22:00", "01:00"]]}, {"2024-06-10": []}
    )
    assert stored.week_template[1] == ((1320, 60),)
    assert template_to_json(stored)["1"] == [["22:00", "01:00"]]
    assert exceptions_to_json(stored) == {"2024-06-10": []}
