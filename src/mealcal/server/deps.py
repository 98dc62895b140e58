"""Dependency definitions for the Mealcal API server."""

from __future__ import annotations

from datetime import date
from typing import Callable, List, Optional

from fastapi import Depends, HTTPException, Request, status

from mealcal.config import Settings, get_settings
from mealcal.dates import TodayProvider, server_today
from mealcal.db.calendar import get_week, initialise_weeks, save_week
from mealcal.db.dishes import (
    create_dish,
    delete_dish,
    get_dish,
    page_dishes,
    search_dishes,
    update_dish,
)
from mealcal.models.calendar import WeekEntry
from mealcal.models.dish import Dish, DishCreate, DishPage, DishUpdate
from mealcal.planner.consistency import ConsistencyEngine
from mealcal.planner.editor import MealPlanEditor

DishPageProvider = Callable[..., DishPage]
DishSearcher = Callable[[str], List[Dish]]
DishFetcher = Callable[[int], Optional[Dish]]
DishCreator = Callable[[DishCreate], Dish]
DishUpdater = Callable[[int, DishUpdate], Dish]
DishDeleter = Callable[[int], None]
WeekProvider = Callable[[date], Optional[WeekEntry]]
WeekSaver = Callable[[WeekEntry], WeekEntry]
WeekInitialiser = Callable[[], List[date]]


def get_today_provider() -> TodayProvider:
    """Return the clock used for all today/past/future decisions."""

    return server_today


def get_dish_page_provider() -> DishPageProvider:
    return lambda dish_filter, **kwargs: page_dishes(dish_filter, **kwargs)


def get_dish_searcher() -> DishSearcher:
    return search_dishes


def get_dish_fetcher() -> DishFetcher:
    return get_dish


def get_dish_creator() -> DishCreator:
    return create_dish


def get_dish_updater() -> DishUpdater:
    return lambda dish_id, payload: update_dish(dish_id, payload)


def get_dish_deleter() -> DishDeleter:
    return lambda dish_id: delete_dish(dish_id)


def get_week_provider() -> WeekProvider:
    return get_week


def get_week_saver() -> WeekSaver:
    return save_week


def get_week_initialiser(
    today: TodayProvider = Depends(get_today_provider),
    settings: Settings = Depends(get_settings),
) -> WeekInitialiser:
    return lambda: initialise_weeks(today(), count=settings.weeks_to_initialise)


def get_consistency_engine(
    today: TodayProvider = Depends(get_today_provider),
) -> ConsistencyEngine:
    return ConsistencyEngine(today=today)


def get_meal_plan_editor(
    engine: ConsistencyEngine = Depends(get_consistency_engine),
    today: TodayProvider = Depends(get_today_provider),
) -> MealPlanEditor:
    return MealPlanEditor(engine=engine, today=today)


def require_api_token(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    """Ensure requests carry the household secret when one is configured."""

    token = settings.api_token
    if not token:
        return

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.split("Bearer ")[-1].strip() == token:
        return

    if request.headers.get("X-API-Key") == token:
        return

    if request.query_params.get("api_token") == token:
        return

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
