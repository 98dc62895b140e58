"""Unit tests for the calendar week store."""

from __future__ import annotations

from datetime import date

from mealcal.db.calendar import get_week, initialise_weeks, list_weeks_descending, save_week
from mealcal.models.calendar import MealType, WeekEntry


def test_save_and_get_week():
    entry = WeekEntry(
        week_start=date(2025, 3, 10),
        lunch={date(2025, 3, 11): [3, 1]},
        dinner={date(2025, 3, 12): [2]},
    )

    saved = save_week(entry)
    fetched = get_week(date(2025, 3, 10))

    assert saved.last_updated is not None
    assert fetched.dishes_at(date(2025, 3, 11), MealType.LUNCH) == [3, 1]
    assert fetched.dishes_at(date(2025, 3, 12), MealType.DINNER) == [2]
    assert get_week(date(2025, 3, 17)) is None


def test_save_week_replaces_existing_slots():
    save_week(WeekEntry(week_start=date(2025, 3, 10), lunch={date(2025, 3, 10): [1]}))
    save_week(WeekEntry(week_start=date(2025, 3, 10), dinner={date(2025, 3, 10): [2]}))

    week = get_week(date(2025, 3, 10))
    assert week.lunch == {}
    assert week.dinner == {date(2025, 3, 10): [2]}


def test_list_weeks_descending_can_skip_empty_weeks():
    save_week(WeekEntry(week_start=date(2025, 3, 3), lunch={date(2025, 3, 3): [1]}))
    save_week(WeekEntry(week_start=date(2025, 3, 17)))
    save_week(WeekEntry(week_start=date(2025, 3, 10), dinner={date(2025, 3, 14): [2]}))

    all_weeks = [week.week_start for week in list_weeks_descending()]
    assert all_weeks == [date(2025, 3, 17), date(2025, 3, 10), date(2025, 3, 3)]

    non_empty = [week.week_start for week in list_weeks_descending(non_empty_only=True)]
    assert non_empty == [date(2025, 3, 10), date(2025, 3, 3)]


def test_initialise_weeks_creates_only_missing_weeks():
    save_week(WeekEntry(week_start=date(2025, 3, 17), lunch={date(2025, 3, 18): [4]}))

    created = initialise_weeks(date(2025, 3, 13), count=3)

    assert created == [date(2025, 3, 10), date(2025, 3, 24)]
    assert get_week(date(2025, 3, 17)).dishes_at(date(2025, 3, 18), MealType.LUNCH) == [4]
    assert initialise_weeks(date(2025, 3, 13), count=3) == []
