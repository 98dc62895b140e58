"""Fixtures wiring the consistency engine and editor to in-memory stores."""

from __future__ import annotations

import pytest

from mealcal.planner.consistency import ConsistencyEngine
from mealcal.planner.editor import MealPlanEditor
from tests.planner.fakes import FakeCalendarStore, FakeDishStore


@pytest.fixture()
def dish_store() -> FakeDishStore:
    return FakeDishStore()


@pytest.fixture()
def calendar_store() -> FakeCalendarStore:
    return FakeCalendarStore()


@pytest.fixture()
def engine(dish_store, calendar_store, today) -> ConsistencyEngine:
    return ConsistencyEngine(
        dish_finder=dish_store.find,
        dish_lister=dish_store.list,
        last_eaten_setter=dish_store.set_last_eaten,
        weeks_lister=calendar_store.list_descending,
        today=lambda: today,
    )


@pytest.fixture()
def editor(engine, dish_store, calendar_store, today) -> MealPlanEditor:
    return MealPlanEditor(
        engine=engine,
        week_getter=calendar_store.get,
        week_saver=calendar_store.save,
        dish_finder=dish_store.find,
        today=lambda: today,
    )
