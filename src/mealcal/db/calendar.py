"""Calendar week persistence helpers."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Dict, List

from sqlalchemy import select

from mealcal.dates import week_start_for
from mealcal.models.calendar import SlotMap, WeekEntry

from .models import CalendarWeekORM
from .repository import session_scope

logger = logging.getLogger(__name__)


def _encode_slots(slots: SlotMap) -> Dict[str, List[int]]:
    return {day.isoformat(): list(dish_ids) for day, dish_ids in sorted(slots.items())}


def _to_model(row: CalendarWeekORM) -> WeekEntry:
    return WeekEntry.model_validate(
        {
            "week_start": row.week_start,
            "lunch": dict(row.lunch or {}),
            "dinner": dict(row.dinner or {}),
            "last_updated": row.last_updated,
        }
    )


def get_week(week_start: date) -> WeekEntry | None:
    """Return the stored week starting on ``week_start``, if any."""

    with session_scope() as session:
        row = session.get(CalendarWeekORM, week_start)
        if row is None:
            return None
        return _to_model(row)


def save_week(entry: WeekEntry) -> WeekEntry:
    """Insert or replace a week's slot maps (upsert on week_start)."""

    now = datetime.now()
    with session_scope() as session:
        row = session.get(CalendarWeekORM, entry.week_start)
        if row is None:
            row = CalendarWeekORM(week_start=entry.week_start)
            session.add(row)
        row.lunch = _encode_slots(entry.lunch)
        row.dinner = _encode_slots(entry.dinner)
        row.last_updated = now
        session.flush()
        logger.debug("Saved calendar week %s", entry.week_start.isoformat())
        return _to_model(row)


def list_weeks_descending(non_empty_only: bool = False) -> List[WeekEntry]:
    """Return every stored week, most recent ``week_start`` first."""

    with session_scope() as session:
        rows = (
            session.execute(select(CalendarWeekORM).order_by(CalendarWeekORM.week_start.desc()))
            .scalars()
            .all()
        )
        weeks = [_to_model(row) for row in rows]

    if non_empty_only:
        return [week for week in weeks if not week.is_empty]
    return weeks


def initialise_weeks(today: date, count: int = 3) -> List[date]:
    """Create empty entries for the current week and the following ones.

    Returns the ``week_start`` of every week that was newly created; weeks
    already present are left untouched.
    """

    current = week_start_for(today)
    created: List[date] = []
    with session_scope() as session:
        for offset in range(count):
            week_start = current + timedelta(weeks=offset)
            if session.get(CalendarWeekORM, week_start) is not None:
                continue
            session.add(
                CalendarWeekORM(
                    week_start=week_start,
                    lunch={},
                    dinner={},
                    last_updated=datetime.now(),
                )
            )
            created.append(week_start)

    if created:
        logger.info("Initialised calendar weeks %s", ", ".join(day.isoformat() for day in created))
    return created


__all__ = ["get_week", "save_week", "list_weeks_descending", "initialise_weeks"]
