"""SQLAlchemy models representing Mealcal persistence tables."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import JSON, Date, DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base class for Mealcal ORM models."""


class DishORM(Base):
    """Dish in the household catalogue."""

    __tablename__ = "dishes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(70), nullable=False)
    normalized_name: Mapped[str] = mapped_column(String(70), nullable=False, unique=True)
    cuisine: Mapped[str] = mapped_column(String(32), nullable=False, default="asian")
    ingredients: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    preferences: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    last_eaten: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class CalendarWeekORM(Base):
    """Lunch/dinner slot maps for one ISO week, keyed by its Monday."""

    __tablename__ = "calendar_weeks"

    week_start: Mapped[date] = mapped_column(Date, primary_key=True)
    lunch: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    dinner: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=False,
    )


__all__ = ["Base", "DishORM", "CalendarWeekORM"]
