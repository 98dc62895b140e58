"""Dish catalogue persistence helpers."""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mealcal.errors import DuplicateDishError, NotFoundError, ValidationError
from mealcal.models.dish import Dish, DishCreate, DishFilter, DishPage, DishUpdate

from .models import DishORM
from .repository import session_scope

logger = logging.getLogger(__name__)

SORT_KEYS = {"name", "last_eaten"}


def _normalize(name: str) -> str:
    return name.strip().lower()


def _to_model(row: DishORM) -> Dish:
    return Dish.model_validate(
        {
            "id": row.id,
            "name": row.name,
            "cuisine": row.cuisine,
            "ingredients": list(row.ingredients or []),
            "preferences": list(row.preferences or []),
            "last_eaten": row.last_eaten,
        }
    )


def _name_taken(session: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    query = select(DishORM.id).where(DishORM.normalized_name == _normalize(name))
    if exclude_id is not None:
        query = query.where(DishORM.id != exclude_id)
    return session.execute(query.limit(1)).first() is not None


def name_exists(name: str, exclude_id: Optional[int] = None) -> bool:
    """Return True when another dish already uses ``name`` (case-insensitive)."""

    if not name or not name.strip():
        return False
    with session_scope() as session:
        return _name_taken(session, name, exclude_id)


def list_dishes(dish_filter: Optional[DishFilter] = None, sort: str = "name") -> List[Dish]:
    """Return dishes matching ``dish_filter``.

    ``sort="last_eaten"`` orders least recently eaten first, with never-eaten
    dishes leading the list.
    """

    if sort not in SORT_KEYS:
        raise ValidationError(f"Unsupported sort key '{sort}'")

    with session_scope() as session:
        if sort == "last_eaten":
            order = (DishORM.last_eaten.is_not(None), DishORM.last_eaten.asc(), DishORM.normalized_name)
        else:
            order = (DishORM.normalized_name.asc(),)
        rows = session.execute(select(DishORM).order_by(*order)).scalars().all()
        dishes = [_to_model(row) for row in rows]

    if dish_filter is None:
        return dishes
    return [dish for dish in dishes if dish_filter.matches(dish)]


def page_dishes(
    dish_filter: Optional[DishFilter] = None,
    *,
    page: int = 1,
    page_size: int = 15,
    sort: str = "name",
) -> DishPage:
    """Return one page of the filtered dish listing."""

    if page < 1 or page_size < 1:
        raise ValidationError("page and page_size must be positive")

    dishes = list_dishes(dish_filter, sort=sort)
    total = len(dishes)
    start = (page - 1) * page_size
    return DishPage(
        items=dishes[start : start + page_size],
        page=page,
        page_size=page_size,
        total=total,
        total_pages=math.ceil(total / page_size),
    )


def search_dishes(query: str) -> List[Dish]:
    """Case-insensitive substring search on dish names, ordered by name."""

    needle = (query or "").strip()
    if not needle:
        raise ValidationError("search query is required")

    with session_scope() as session:
        rows = (
            session.execute(
                select(DishORM)
                .where(DishORM.normalized_name.contains(needle.lower(), autoescape=True))
                .order_by(DishORM.normalized_name.asc())
            )
            .scalars()
            .all()
        )
        return [_to_model(row) for row in rows]


def get_dish(dish_id: int) -> Optional[Dish]:
    with session_scope() as session:
        row = session.get(DishORM, dish_id)
        if row is None:
            return None
        return _to_model(row)


def create_dish(payload: DishCreate) -> Dish:
    with session_scope() as session:
        if _name_taken(session, payload.name):
            raise DuplicateDishError("Dish with this name already exists")

        db_dish = DishORM(
            name=payload.name,
            normalized_name=_normalize(payload.name),
            cuisine=payload.cuisine.value,
            ingredients=[ingredient.value for ingredient in payload.ingredients],
            preferences=[member.value for member in payload.preferences],
            last_eaten=None,
        )
        session.add(db_dish)
        try:
            session.flush()
        except IntegrityError as exc:
            raise DuplicateDishError("Dish with this name already exists") from exc
        logger.info("Created dish id=%s name=%s", db_dish.id, db_dish.name)
        return _to_model(db_dish)


def update_dish(dish_id: int, payload: DishUpdate) -> Dish:
    """Apply the fields set on ``payload`` to an existing dish."""

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    with session_scope() as session:
        db_dish = session.get(DishORM, dish_id)
        if db_dish is None:
            raise NotFoundError(f"Dish {dish_id} not found")

        if "name" in changes:
            name = changes["name"]
            if _normalize(name) != db_dish.normalized_name and _name_taken(session, name, dish_id):
                raise DuplicateDishError("a dish with this name already exists")
            db_dish.name = name
            db_dish.normalized_name = _normalize(name)
        if "cuisine" in changes:
            db_dish.cuisine = payload.cuisine.value
        if "ingredients" in changes:
            db_dish.ingredients = [ingredient.value for ingredient in payload.ingredients]
        if "preferences" in changes:
            db_dish.preferences = [member.value for member in payload.preferences]

        try:
            session.flush()
        except IntegrityError as exc:
            raise DuplicateDishError("a dish with this name already exists") from exc
        return _to_model(db_dish)


def set_last_eaten(dish_id: int, last_eaten: Optional[date]) -> Optional[Dish]:
    """Overwrite a dish's last-eaten date; returns None when the dish is missing."""

    with session_scope() as session:
        db_dish = session.get(DishORM, dish_id)
        if db_dish is None:
            return None
        db_dish.last_eaten = last_eaten
        session.flush()
        return _to_model(db_dish)


def delete_dish(dish_id: int) -> None:
    with session_scope() as session:
        db_dish = session.get(DishORM, dish_id)
        if db_dish is None:
            raise NotFoundError(f"Dish {dish_id} not found")
        session.delete(db_dish)


__all__ = [
    "name_exists",
    "list_dishes",
    "page_dishes",
    "search_dishes",
    "get_dish",
    "create_dish",
    "update_dish",
    "set_last_eaten",
    "delete_dish",
]
