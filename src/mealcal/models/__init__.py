"""Pydantic models defining shared data contracts."""

from mealcal.models.calendar import (
    MAX_DISHES_PER_SLOT,
    EditResult,
    MealType,
    OccurrenceResult,
    RecomputeResult,
    SlotMap,
    WeekEntry,
)
from mealcal.models.dish import (
    Cuisine,
    Dish,
    DishCreate,
    DishFilter,
    DishPage,
    DishUpdate,
    FamilyMember,
    Ingredient,
)

__all__ = [
    "MAX_DISHES_PER_SLOT",
    "EditResult",
    "MealType",
    "OccurrenceResult",
    "RecomputeResult",
    "SlotMap",
    "WeekEntry",
    "Cuisine",
    "Dish",
    "DishCreate",
    "DishFilter",
    "DishPage",
    "DishUpdate",
    "FamilyMember",
    "Ingredient",
]
