"""Dish catalogue data models."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 70


class Cuisine(str, Enum):
    ASIAN = "asian"
    CHINESE = "chinese"
    JAPANESE = "japanese"
    WESTERN = "western"


class Ingredient(str, Enum):
    RED_MEAT = "red meat"
    PORK = "pork"
    CHICKEN = "chicken"
    SEAFOOD = "seafood"
    EGGS = "eggs"
    BREAD = "bread"
    NOODLES = "noodles"
    PASTA = "pasta"
    RICE = "rice"
    SOUP = "soup"
    VEGETABLES = "vegetables"


class FamilyMember(str, Enum):
    HUBERT = "hubert"
    CHERRY = "cherry"
    HALEY = "haley"
    RYAN = "ryan"
    MEAGAN = "meagan"


def normalize_name(value: str) -> str:
    """Trim a dish name and enforce the length bounds."""

    name = (value or "").strip()
    if not name:
        raise ValueError("Dish name is required.")
    if len(name) < NAME_MIN_LENGTH:
        raise ValueError(f"Dish name must be at least {NAME_MIN_LENGTH} characters.")
    if len(name) > NAME_MAX_LENGTH:
        raise ValueError(f"Dish name cannot exceed {NAME_MAX_LENGTH} characters.")
    return name


def _dedupe(values: list) -> list:
    seen: list = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


class Dish(BaseModel):
    """Dish record as stored in the catalogue."""

    id: int
    name: str
    cuisine: Cuisine
    ingredients: list[Ingredient]
    preferences: list[FamilyMember]
    last_eaten: Optional[date] = Field(default=None)

    model_config = ConfigDict(frozen=True)


class DishCreate(BaseModel):
    """Payload accepted when adding a dish to the catalogue."""

    name: str
    cuisine: Cuisine = Field(default=Cuisine.ASIAN)
    ingredients: list[Ingredient] = Field(min_length=1)
    preferences: list[FamilyMember] = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return normalize_name(value)

    @field_validator("ingredients", "preferences")
    @classmethod
    def collapse_duplicates(cls, value: list) -> list:
        return _dedupe(value)


class DishUpdate(BaseModel):
    """Partial update payload; `last_eaten` is owned by the calendar and excluded."""

    name: Optional[str] = None
    cuisine: Optional[Cuisine] = None
    ingredients: Optional[list[Ingredient]] = Field(default=None, min_length=1)
    preferences: Optional[list[FamilyMember]] = Field(default=None, min_length=1)

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return normalize_name(value)

    @field_validator("ingredients", "preferences")
    @classmethod
    def collapse_duplicates(cls, value: Optional[list]) -> Optional[list]:
        if value is None:
            return value
        return _dedupe(value)


class DishFilter(BaseModel):
    """Predicate filter applied to dish listings."""

    cuisine: Optional[Cuisine] = None
    ingredients: list[Ingredient] = Field(default_factory=list)
    preferences: list[FamilyMember] = Field(default_factory=list)
    query: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def matches(self, dish: Dish) -> bool:
        if self.cuisine is not None and dish.cuisine != self.cuisine:
            return False
        if any(ingredient not in dish.ingredients for ingredient in self.ingredients):
            return False
        if any(member not in dish.preferences for member in self.preferences):
            return False
        needle = (self.query or "").strip().lower()
        if needle and needle not in dish.name.lower():
            return False
        return True


class DishPage(BaseModel):
    """One page of a filtered dish listing."""

    items: list[Dish]
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total: int = Field(ge=0)
    total_pages: int = Field(ge=0)

    model_config = ConfigDict(frozen=True)


__all__ = [
    "Cuisine",
    "Ingredient",
    "FamilyMember",
    "Dish",
    "DishCreate",
    "DishUpdate",
    "DishFilter",
    "DishPage",
    "normalize_name",
]
