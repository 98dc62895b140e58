"""Slot edits on the weekly calendar and their last-eaten side effects."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, List, Optional

from mealcal.dates import TodayProvider, server_today, week_start_for
from mealcal.db.calendar import get_week, save_week
from mealcal.db.dishes import get_dish
from mealcal.errors import NotFoundError, ValidationError
from mealcal.models.calendar import (
    MAX_DISHES_PER_SLOT,
    EditResult,
    MealType,
    RecomputeResult,
    WeekEntry,
)
from mealcal.models.dish import Dish
from mealcal.planner.consistency import ConsistencyEngine

logger = logging.getLogger(__name__)

WeekGetter = Callable[[date], Optional[WeekEntry]]
WeekSaver = Callable[[WeekEntry], WeekEntry]
DishFinder = Callable[[int], Optional[Dish]]


class MealPlanEditor:
    """Applies add/remove/clear/swap operations to calendar slots.

    Every operation writes the calendar first and then asks the engine to
    bring the affected dishes' ``last_eaten`` up to date. The weeks loaded
    while handling an operation are handed to the engine as its fallback
    snapshot.
    """

    def __init__(
        self,
        *,
        engine: Optional[ConsistencyEngine] = None,
        week_getter: WeekGetter = get_week,
        week_saver: WeekSaver = save_week,
        dish_finder: DishFinder = get_dish,
        today: TodayProvider = server_today,
    ) -> None:
        self._engine = engine or ConsistencyEngine(today=today)
        self._get_week = week_getter
        self._save_week = week_saver
        self._find_dish = dish_finder
        self._today = today

    def _load_week(self, day: date, loaded: Dict[date, WeekEntry]) -> WeekEntry:
        week_start = week_start_for(day)
        if week_start not in loaded:
            loaded[week_start] = self._get_week(week_start) or WeekEntry(week_start=week_start)
        return loaded[week_start]

    def _save(self, week: WeekEntry, loaded: Dict[date, WeekEntry]) -> WeekEntry:
        saved = self._save_week(week)
        loaded[saved.week_start] = saved
        return saved

    def _recompute_if_gone(
        self,
        week: WeekEntry,
        day: date,
        meal: MealType,
        dish_ids: List[int],
        loaded: Dict[date, WeekEntry],
    ) -> List[RecomputeResult]:
        if day != self._today():
            return []
        sibling = week.dishes_at(day, meal.sibling)
        return [
            self._engine.recompute_last_eaten(dish_id, in_memory_weeks=dict(loaded))
            for dish_id in dish_ids
            if dish_id not in sibling
        ]

    def add_dish(self, day: date, meal: MealType, dish_id: int) -> EditResult:
        if self._find_dish(dish_id) is None:
            raise NotFoundError(f"Dish {dish_id} not found")

        loaded: Dict[date, WeekEntry] = {}
        week = self._load_week(day, loaded)
        current = week.dishes_at(day, meal)
        if len(current) >= MAX_DISHES_PER_SLOT:
            raise ValidationError(f"Maximum of {MAX_DISHES_PER_SLOT} dishes per slot reached.")
        if dish_id in current:
            raise ValidationError("This dish is already added to this meal.")

        saved = self._save(week.with_slot(day, meal, current + [dish_id]), loaded)
        logger.info("Added dish %s to %s on %s", dish_id, meal.value, day.isoformat())

        occurrences = []
        if day <= self._today():
            occurrences.append(self._engine.record_occurrence(dish_id, day))
        return EditResult(weeks=[saved], occurrences=occurrences)

    def remove_dish(self, day: date, meal: MealType, dish_id: int) -> EditResult:
        loaded: Dict[date, WeekEntry] = {}
        week = self._load_week(day, loaded)
        current = week.dishes_at(day, meal)
        if dish_id not in current:
            raise NotFoundError(f"Dish {dish_id} is not in {meal.value} on {day.isoformat()}")

        remaining = [existing for existing in current if existing != dish_id]
        saved = self._save(week.with_slot(day, meal, remaining), loaded)
        logger.info("Removed dish %s from %s on %s", dish_id, meal.value, day.isoformat())

        recomputes = self._recompute_if_gone(saved, day, meal, [dish_id], loaded)
        return EditResult(weeks=[saved], recomputes=recomputes)

    def clear_slot(self, day: date, meal: MealType) -> EditResult:
        loaded: Dict[date, WeekEntry] = {}
        week = self._load_week(day, loaded)
        removed = week.dishes_at(day, meal)

        saved = self._save(week.with_slot(day, meal, []), loaded)
        logger.info("Cleared %s on %s (%s dish(es))", meal.value, day.isoformat(), len(removed))

        recomputes = self._recompute_if_gone(saved, day, meal, removed, loaded)
        return EditResult(weeks=[saved], recomputes=recomputes)

    def swap_slots(
        self,
        source_day: date,
        source_meal: MealType,
        target_day: date,
        target_meal: MealType,
    ) -> EditResult:
        """Exchange the dish lists of two slots, possibly across weeks."""

        if source_day == target_day and source_meal is target_meal:
            raise ValidationError("Cannot swap a slot with itself.")

        loaded: Dict[date, WeekEntry] = {}
        source_week = self._load_week(source_day, loaded)
        target_week = self._load_week(target_day, loaded)
        source_dishes = source_week.dishes_at(source_day, source_meal)
        target_dishes = target_week.dishes_at(target_day, target_meal)

        if source_week.week_start == target_week.week_start:
            swapped = source_week.with_slot(source_day, source_meal, target_dishes)
            swapped = swapped.with_slot(target_day, target_meal, source_dishes)
            weeks = [self._save(swapped, loaded)]
        else:
            weeks = [
                self._save(source_week.with_slot(source_day, source_meal, target_dishes), loaded),
                self._save(target_week.with_slot(target_day, target_meal, source_dishes), loaded),
            ]
        logger.info(
            "Swapped %s on %s with %s on %s",
            source_meal.value,
            source_day.isoformat(),
            target_meal.value,
            target_day.isoformat(),
        )

        today = self._today()
        occurrences = []
        if target_day <= today:
            occurrences.extend(
                self._engine.record_occurrence(dish_id, target_day) for dish_id in source_dishes
            )
        if source_day <= today:
            occurrences.extend(
                self._engine.record_occurrence(dish_id, source_day) for dish_id in target_dishes
            )
        return EditResult(weeks=weeks, occurrences=occurrences)


__all__ = ["MealPlanEditor"]
