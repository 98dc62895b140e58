"""Keeps each dish's last-eaten date consistent with the weekly calendar.

A dish's ``last_eaten`` must equal the most recent day before today on which
its id sits in any lunch or dinner slot of any stored week, or be empty when
there is no such day. Slot edits call into :class:`ConsistencyEngine` right
after the calendar write; the two writes are separate steps, so a failure in
between leaves ``last_eaten`` stale until the next recompute touching that dish
(``mealcal resync`` repairs every dish at once).
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from mealcal import metrics
from mealcal.dates import TodayProvider, server_today
from mealcal.db.calendar import list_weeks_descending
from mealcal.db.dishes import get_dish, list_dishes, set_last_eaten
from mealcal.errors import StoreUnavailableError
from mealcal.models.calendar import OccurrenceResult, RecomputeResult, WeekEntry
from mealcal.models.dish import Dish

logger = logging.getLogger(__name__)

DishFinder = Callable[[int], Optional[Dish]]
DishLister = Callable[[], List[Dish]]
LastEatenSetter = Callable[[int, Optional[date]], Optional[Dish]]
WeeksLister = Callable[[], List[WeekEntry]]


def _non_empty_weeks() -> List[WeekEntry]:
    return list_weeks_descending(non_empty_only=True)


def latest_occurrence(
    weeks: Iterable[WeekEntry],
    dish_id: int,
    before: date,
) -> Tuple[Optional[date], int]:
    """Return the latest day strictly before ``before`` holding ``dish_id``.

    Weeks are scanned newest first; once a week ends before the best candidate
    no older week can beat it and the scan stops. Returns the candidate (or
    None) and the number of weeks inspected.
    """

    best: Optional[date] = None
    scanned = 0
    for week in sorted(weeks, key=lambda entry: entry.week_start, reverse=True):
        if best is not None and week.week_start + timedelta(days=6) < best:
            break
        scanned += 1
        for day in week.occurrences(dish_id):
            if day < before and (best is None or day > best):
                best = day
    return best, scanned


class ConsistencyEngine:
    """Propagates slot edits into dish ``last_eaten`` values."""

    def __init__(
        self,
        *,
        dish_finder: DishFinder = get_dish,
        dish_lister: DishLister = list_dishes,
        last_eaten_setter: LastEatenSetter = set_last_eaten,
        weeks_lister: WeeksLister = _non_empty_weeks,
        today: TodayProvider = server_today,
    ) -> None:
        self._find_dish = dish_finder
        self._list_dishes = dish_lister
        self._set_last_eaten = last_eaten_setter
        self._list_weeks = weeks_lister
        self._today = today

    def record_occurrence(self, dish_id: int, day: Optional[date]) -> OccurrenceResult:
        """Set ``last_eaten`` to ``day`` (or clear it when ``day`` is None).

        Future days are skipped: a planned meal has not been eaten yet. The
        write is unconditional otherwise, so callers pass the day that should
        win. A missing dish is logged and reported, never raised.
        """

        if day is not None and day > self._today():
            logger.debug("Skipping future occurrence dish=%s day=%s", dish_id, day)
            metrics.LAST_EATEN_WRITES.labels(outcome="skipped").inc()
            return OccurrenceResult(dish_id=dish_id, applied=False, skipped=True)

        dish = self._set_last_eaten(dish_id, day)
        if dish is None:
            logger.warning(
                "Dish %s not found; last_eaten left as is",
                dish_id,
                extra={"dish_id": dish_id},
            )
            metrics.LAST_EATEN_WRITES.labels(outcome="not_found").inc()
            return OccurrenceResult(dish_id=dish_id, applied=False, skipped=False)

        outcome = "cleared" if day is None else "recorded"
        metrics.LAST_EATEN_WRITES.labels(outcome=outcome).inc()
        logger.info("last_eaten %s dish=%s day=%s", outcome, dish_id, day)
        return OccurrenceResult(
            dish_id=dish_id,
            applied=True,
            skipped=False,
            last_eaten=dish.last_eaten,
        )

    def recompute_last_eaten(
        self,
        dish_id: int,
        in_memory_weeks: Optional[Mapping[date, WeekEntry]] = None,
        *,
        in_memory_complete: bool = False,
    ) -> RecomputeResult:
        """Re-derive ``last_eaten`` after a dish left its latest known slot.

        The stored calendar is scanned newest to oldest. When the store fails
        or holds no weeks, the caller's already-loaded weeks are scanned
        instead. With that fallback, ``last_eaten`` is only cleared when the
        store answered (empty) or the caller vouches that ``in_memory_weeks``
        is complete; otherwise the prior value is kept and a warning returned.
        """

        today = self._today()
        weeks: Optional[List[WeekEntry]]
        try:
            weeks = self._list_weeks()
        except StoreUnavailableError as exc:
            logger.warning(
                "Calendar scan failed for dish %s, falling back to loaded weeks: %s",
                dish_id,
                exc,
                extra={"dish_id": dish_id},
            )
            weeks = None

        if weeks:
            source = "store"
            exhaustive = True
            candidate, scanned = latest_occurrence(weeks, dish_id, today)
        else:
            source = "memory"
            exhaustive = weeks is not None or in_memory_complete
            snapshot = list((in_memory_weeks or {}).values())
            candidate, scanned = latest_occurrence(snapshot, dish_id, today)

        if candidate is not None:
            return self._finish(dish_id, candidate, "recorded", source, scanned)
        if exhaustive:
            return self._finish(dish_id, None, "cleared", source, scanned)

        warning = (
            f"No earlier occurrence of dish {dish_id} in {scanned} loaded week(s); "
            "calendar history unavailable so last_eaten was left unchanged"
        )
        logger.warning("%s", warning, extra={"dish_id": dish_id})
        metrics.RECOMPUTE_RUNS.labels(outcome="unchanged", source=source).inc()
        try:
            dish = self._find_dish(dish_id)
        except StoreUnavailableError:
            dish = None
        return RecomputeResult(
            dish_id=dish_id,
            outcome="unchanged",
            source=source,
            last_eaten=dish.last_eaten if dish else None,
            weeks_scanned=scanned,
            warning=warning,
        )

    def _finish(
        self,
        dish_id: int,
        day: Optional[date],
        outcome: str,
        source: str,
        scanned: int,
    ) -> RecomputeResult:
        occurrence = self.record_occurrence(dish_id, day)
        if not occurrence.applied:
            metrics.RECOMPUTE_RUNS.labels(outcome="unchanged", source=source).inc()
            return RecomputeResult(
                dish_id=dish_id,
                outcome="unchanged",
                source=source,
                weeks_scanned=scanned,
                warning=f"Dish {dish_id} not found",
            )

        metrics.RECOMPUTE_RUNS.labels(outcome=outcome, source=source).inc()
        return RecomputeResult(
            dish_id=dish_id,
            outcome=outcome,
            source=source,
            last_eaten=occurrence.last_eaten,
            weeks_scanned=scanned,
        )

    def resync_all(self) -> List[RecomputeResult]:
        """Recompute every dish from one pass over the stored calendar.

        Only dishes whose value actually changes are written. Store failures
        propagate; there is no partial fallback for a full resync.
        """

        today = self._today()
        weeks = self._list_weeks()
        latest: Dict[int, date] = {}
        for week in weeks:
            for meal_slots in (week.lunch, week.dinner):
                for day, dish_ids in meal_slots.items():
                    if day >= today:
                        continue
                    for dish_id in dish_ids:
                        if dish_id not in latest or day > latest[dish_id]:
                            latest[dish_id] = day

        results: List[RecomputeResult] = []
        for dish in self._list_dishes():
            expected = latest.get(dish.id)
            if dish.last_eaten == expected:
                continue
            outcome = "cleared" if expected is None else "recorded"
            results.append(self._finish(dish.id, expected, outcome, "store", len(weeks)))

        logger.info("Resynced last_eaten for %s dish(es)", len(results))
        return results


__all__ = ["ConsistencyEngine", "latest_occurrence"]
