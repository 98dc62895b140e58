"""ASGI application for Mealcal."""
# mypy: ignore-errors

from __future__ import annotations

import logging
from datetime import date
from time import perf_counter
from typing import Any, Literal, Optional
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field

from mealcal import __version__, metrics
from mealcal.config import Settings, get_settings
from mealcal.errors import (
    DuplicateDishError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from mealcal.logging_utils import configure_logging as configure_app_logging
from mealcal.models.calendar import EditResult, MealType, OccurrenceResult, RecomputeResult, WeekEntry
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
from mealcal.planner.consistency import ConsistencyEngine
from mealcal.planner.editor import MealPlanEditor
from mealcal.server import deps

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    """Convert non-serializable values into JSON-safe representations."""

    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (list, tuple)):
        return [_json_safe(entry) for entry in value]
    if isinstance(value, dict):
        return {key: _json_safe(sub_value) for key, sub_value in value.items()}
    return repr(value)


def _normalize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Ensure validation error payloads can be serialized to JSON."""

    return [{key: _json_safe(value) for key, value in error.items()} for error in errors]


def _configure_logging(settings: Settings) -> None:
    configure_app_logging(settings.log_level, settings.log_format, [settings.api_token or ""])


def _request_log_kwargs(request: Request) -> dict[str, Any]:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        return {"extra": {"request_id": request_id}}
    return {}


def create_app() -> FastAPI:
    """Create and configure a FastAPI application instance."""

    settings = get_settings()
    _configure_logging(settings)

    application = FastAPI(title="Mealcal Household Meal Calendar", version=__version__)
    logger.debug("Application created with log level %s", settings.log_level)

    access_logger = logging.getLogger("mealcal.access")

    def _observe(request: Request, status_code: int, started: float) -> None:
        elapsed = perf_counter() - started
        path, method = request.url.path, request.method
        metrics.REQUEST_COUNT.labels(method=method, path=path, status=str(status_code)).inc()
        metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(elapsed)
        if settings.log_requests:
            access_logger.log(
                logging.ERROR if status_code >= 500 else logging.INFO,
                "%s %s -> %s in %.1fms",
                method,
                path,
                status_code,
                elapsed * 1000,
                **_request_log_kwargs(request),
            )

    @application.middleware("http")
    async def trace_requests(request: Request, call_next):
        """Tag every request with an id, time it and count it."""

        request.state.request_id = request.headers.get("X-Request-ID") or uuid4().hex
        started = perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            _observe(request, status.HTTP_500_INTERNAL_SERVER_ERROR, started)
            raise
        response.headers.setdefault("X-Request-ID", request.state.request_id)
        _observe(request, response.status_code, started)
        return response

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        body_preview: str | None = None
        raw_body = await request.body()
        if raw_body:
            decoded = raw_body.decode("utf-8", errors="replace")
            if len(decoded) > 2048:
                decoded = decoded[:2048] + "...(truncated)"
            body_preview = decoded

        logger.warning(
            "Validation error on %s %s: %s | body=%s",
            request.method,
            request.url.path,
            exc.errors(),
            body_preview,
            **_request_log_kwargs(request),
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": _normalize_validation_errors(exc.errors())},
        )

    @application.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @application.exception_handler(DuplicateDishError)
    async def duplicate_dish_handler(request: Request, exc: DuplicateDishError):
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    @application.exception_handler(ValidationError)
    async def edit_rejected_handler(request: Request, exc: ValidationError):
        logger.info(
            "Rejected %s %s: %s",
            request.method,
            request.url.path,
            exc,
            **_request_log_kwargs(request),
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @application.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        logger.error(
            "Store unavailable during %s %s: %s",
            request.method,
            request.url.path,
            exc,
            **_request_log_kwargs(request),
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "storage unavailable"},
        )

    @application.get("/health", summary="Liveness probe")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @application.get("/dishes", response_model=DishPage, summary="List dishes")
    def dishes_list(
        cuisine: Optional[Cuisine] = Query(default=None),
        ingredients: Optional[list[Ingredient]] = Query(default=None),
        preferences: Optional[list[FamilyMember]] = Query(default=None),
        q: Optional[str] = Query(default=None, max_length=70),
        sort: Literal["name", "last_eaten"] = Query(default="name"),
        page: int = Query(default=1, ge=1),
        page_size: Optional[int] = Query(default=None, ge=1, le=100),
        provider: deps.DishPageProvider = Depends(deps.get_dish_page_provider),
        settings: Settings = Depends(get_settings),
    ) -> DishPage:
        dish_filter = DishFilter(
            cuisine=cuisine,
            ingredients=ingredients or [],
            preferences=preferences or [],
            query=q,
        )
        return provider(
            dish_filter,
            page=page,
            page_size=page_size or settings.dishes_page_size,
            sort=sort,
        )

    @application.get("/dishes/search", response_model=list[Dish], summary="Search dishes by name")
    def dishes_search(
        q: str = Query(default=""),
        searcher: deps.DishSearcher = Depends(deps.get_dish_searcher),
    ) -> list[Dish]:
        results = searcher(q)
        if not results:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="no dishes found matching your search",
            )
        return results

    @application.get("/dishes/{dish_id}", response_model=Dish, summary="Fetch a dish")
    def dishes_get(
        dish_id: int,
        fetcher: deps.DishFetcher = Depends(deps.get_dish_fetcher),
    ) -> Dish:
        dish = fetcher(dish_id)
        if dish is None:
            raise NotFoundError(f"Dish {dish_id} not found")
        return dish

    @application.post(
        "/dishes",
        response_model=Dish,
        status_code=status.HTTP_201_CREATED,
        summary="Create a dish",
    )
    def dishes_create(
        payload: DishCreate,
        auth: None = Depends(deps.require_api_token),
        creator: deps.DishCreator = Depends(deps.get_dish_creator),
    ) -> Dish:
        logger.debug("Creating dish payload=%s", payload.model_dump(mode="json"))
        return creator(payload)

    @application.patch("/dishes/{dish_id}", response_model=Dish, summary="Update a dish")
    def dishes_update(
        dish_id: int,
        payload: DishUpdate,
        auth: None = Depends(deps.require_api_token),
        updater: deps.DishUpdater = Depends(deps.get_dish_updater),
    ) -> Dish:
        if not payload.model_dump(exclude_unset=True, exclude_none=True):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No fields provided for update",
            )
        return updater(dish_id, payload)

    @application.delete(
        "/dishes/{dish_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Delete a dish",
    )
    def dishes_delete(
        dish_id: int,
        auth: None = Depends(deps.require_api_token),
        deleter: deps.DishDeleter = Depends(deps.get_dish_deleter),
    ) -> None:
        deleter(dish_id)

    @application.patch(
        "/dishes/{dish_id}/last-eaten",
        response_model=OccurrenceResult,
        summary="Record or clear the day a dish was last eaten",
    )
    def dishes_last_eaten(
        dish_id: int,
        payload: LastEatenRequest,
        auth: None = Depends(deps.require_api_token),
        fetcher: deps.DishFetcher = Depends(deps.get_dish_fetcher),
        engine: ConsistencyEngine = Depends(deps.get_consistency_engine),
    ) -> OccurrenceResult:
        if fetcher(dish_id) is None:
            raise NotFoundError(f"Dish {dish_id} not found")
        result = engine.record_occurrence(dish_id, payload.last_eaten)
        if not result.applied and not result.skipped:
            raise NotFoundError(f"Dish {dish_id} not found")
        return result

    @application.post(
        "/dishes/{dish_id}/recompute-last-eaten",
        response_model=RecomputeResult,
        summary="Re-derive last eaten from the calendar",
    )
    def dishes_recompute_last_eaten(
        dish_id: int,
        auth: None = Depends(deps.require_api_token),
        fetcher: deps.DishFetcher = Depends(deps.get_dish_fetcher),
        engine: ConsistencyEngine = Depends(deps.get_consistency_engine),
    ) -> RecomputeResult:
        if fetcher(dish_id) is None:
            raise NotFoundError(f"Dish {dish_id} not found")
        return engine.recompute_last_eaten(dish_id)

    @application.post("/calendar/initialise-weeks", summary="Create upcoming empty weeks")
    def calendar_initialise(
        auth: None = Depends(deps.require_api_token),
        initialiser: deps.WeekInitialiser = Depends(deps.get_week_initialiser),
    ) -> dict[str, Any]:
        created = initialiser()
        return {
            "message": "finished initialising weeks",
            "initialised_weeks": [week_start.isoformat() for week_start in created],
        }

    @application.get("/calendar/{week_start}", response_model=WeekEntry, summary="Fetch a week")
    def calendar_get(
        week_start: date,
        provider: deps.WeekProvider = Depends(deps.get_week_provider),
    ):
        if week_start.weekday() != 0:
            raise ValidationError(f"week_start {week_start.isoformat()} is not a Monday")
        week = provider(week_start)
        if week is None:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={
                    "detail": "no meal plan found for this week",
                    "week_start": week_start.isoformat(),
                    "lunch": {},
                    "dinner": {},
                },
            )
        return week

    @application.post("/calendar", response_model=WeekEntry, summary="Save a whole week")
    def calendar_save(
        payload: WeekEntry,
        auth: None = Depends(deps.require_api_token),
        saver: deps.WeekSaver = Depends(deps.get_week_saver),
    ) -> WeekEntry:
        return saver(payload)

    @application.post("/calendar/slots/add", response_model=EditResult, summary="Add a dish to a slot")
    def slots_add(
        payload: SlotDishRequest,
        auth: None = Depends(deps.require_api_token),
        editor: MealPlanEditor = Depends(deps.get_meal_plan_editor),
    ) -> EditResult:
        return editor.add_dish(payload.date, payload.meal, payload.dish_id)

    @application.post(
        "/calendar/slots/remove",
        response_model=EditResult,
        summary="Remove a dish from a slot",
    )
    def slots_remove(
        payload: SlotDishRequest,
        auth: None = Depends(deps.require_api_token),
        editor: MealPlanEditor = Depends(deps.get_meal_plan_editor),
    ) -> EditResult:
        return editor.remove_dish(payload.date, payload.meal, payload.dish_id)

    @application.post("/calendar/slots/clear", response_model=EditResult, summary="Empty a slot")
    def slots_clear(
        payload: SlotRequest,
        auth: None = Depends(deps.require_api_token),
        editor: MealPlanEditor = Depends(deps.get_meal_plan_editor),
    ) -> EditResult:
        return editor.clear_slot(payload.date, payload.meal)

    @application.post("/calendar/slots/swap", response_model=EditResult, summary="Swap two slots")
    def slots_swap(
        payload: SwapRequest,
        auth: None = Depends(deps.require_api_token),
        editor: MealPlanEditor = Depends(deps.get_meal_plan_editor),
    ) -> EditResult:
        return editor.swap_slots(
            payload.source.date,
            payload.source.meal,
            payload.target.date,
            payload.target.meal,
        )

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return application


class LastEatenRequest(BaseModel):
    last_eaten: Optional[date] = Field(default=None)


class SlotRequest(BaseModel):
    date: date
    meal: MealType


class SlotDishRequest(SlotRequest):
    dish_id: int = Field(ge=1)


class SwapRequest(BaseModel):
    source: SlotRequest
    target: SlotRequest


app = create_app()

__all__ = ["app", "create_app"]
