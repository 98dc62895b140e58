"""Weekly calendar data models."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Iterator, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAX_DISHES_PER_SLOT = 5

# Day (``YYYY-MM-DD`` on the wire) -> ordered dish ids for one meal type.
SlotMap = Dict[date, List[int]]


class MealType(str, Enum):
    LUNCH = "lunch"
    DINNER = "dinner"

    @property
    def sibling(self) -> "MealType":
        return MealType.DINNER if self is MealType.LUNCH else MealType.LUNCH


class WeekEntry(BaseModel):
    """Both meal slots for every day of one ISO week, keyed by its Monday."""

    week_start: date
    lunch: SlotMap = Field(default_factory=dict)
    dinner: SlotMap = Field(default_factory=dict)
    last_updated: Optional[datetime] = Field(default=None)

    model_config = ConfigDict(frozen=True)

    @field_validator("week_start")
    @classmethod
    def week_starts_on_monday(cls, value: date) -> date:
        if value.weekday() != 0:
            raise ValueError(f"week_start {value.isoformat()} is not a Monday")
        return value

    @model_validator(mode="after")
    def validate_slots(self) -> "WeekEntry":
        week_end = self.week_start + timedelta(days=6)
        for meal in MealType:
            for day, dish_ids in self.slot(meal).items():
                if not self.week_start <= day <= week_end:
                    raise ValueError(
                        f"{meal.value} day {day.isoformat()} is outside week "
                        f"{self.week_start.isoformat()}"
                    )
                if len(dish_ids) > MAX_DISHES_PER_SLOT:
                    raise ValueError(
                        f"{meal.value} on {day.isoformat()} holds more than "
                        f"{MAX_DISHES_PER_SLOT} dishes"
                    )
                if len(set(dish_ids)) != len(dish_ids):
                    raise ValueError(f"{meal.value} on {day.isoformat()} repeats a dish")
        return self

    def slot(self, meal: MealType) -> SlotMap:
        return self.lunch if meal is MealType.LUNCH else self.dinner

    def dishes_at(self, day: date, meal: MealType) -> List[int]:
        return list(self.slot(meal).get(day, []))

    def with_slot(self, day: date, meal: MealType, dish_ids: List[int]) -> "WeekEntry":
        """Return a validated copy with one slot replaced."""

        updated = {key: list(value) for key, value in self.slot(meal).items()}
        updated[day] = list(dish_ids)
        payload = self.model_dump()
        payload[meal.value] = updated
        return WeekEntry.model_validate(payload)

    def occurrences(self, dish_id: int) -> Iterator[date]:
        """Yield every day holding ``dish_id``, lunch before dinner."""

        for meal in MealType:
            for day, dish_ids in self.slot(meal).items():
                if dish_id in dish_ids:
                    yield day

    @property
    def is_empty(self) -> bool:
        return not any(dish_ids for meal in MealType for dish_ids in self.slot(meal).values())


class OccurrenceResult(BaseModel):
    """Outcome of recording (or clearing) a dish occurrence."""

    dish_id: int
    applied: bool
    skipped: bool
    last_eaten: Optional[date] = None

    model_config = ConfigDict(frozen=True)


class RecomputeResult(BaseModel):
    """Outcome of re-deriving a dish's last-eaten date from the calendar."""

    dish_id: int
    outcome: Literal["recorded", "cleared", "unchanged"]
    source: Literal["store", "memory"]
    last_eaten: Optional[date] = None
    weeks_scanned: int = 0
    warning: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class EditResult(BaseModel):
    """Weeks written by a slot edit together with the last-eaten side effects."""

    weeks: List[WeekEntry]
    occurrences: List[OccurrenceResult] = Field(default_factory=list)
    recomputes: List[RecomputeResult] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


__all__ = [
    "MAX_DISHES_PER_SLOT",
    "SlotMap",
    "MealType",
    "WeekEntry",
    "OccurrenceResult",
    "RecomputeResult",
    "EditResult",
]
