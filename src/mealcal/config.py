"""Application configuration helpers."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))


class Settings(BaseModel):
    """Runtime settings; every field can be overridden by a ``MEALCAL_*`` variable."""

    database_path: Path = Field(
        default=Path("./data/mealcal.db"),
        description="SQLite database location.",
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Shared household secret required for mutating endpoints.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(default="plain", description="Logging format (plain/json).")
    log_requests: bool = Field(default=True, description="Emit request access logs when true.")
    weeks_to_initialise: int = Field(
        default=3,
        ge=1,
        description="Weeks (starting with the current one) created by week initialisation.",
    )
    dishes_page_size: int = Field(
        default=15,
        ge=1,
        description="Default page size for dish listings.",
    )

    model_config = ConfigDict(frozen=True)


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


# Environment variable -> (settings field, converter).
ENV_FIELDS: Dict[str, Tuple[str, Callable[[str], object]]] = {
    "MEALCAL_DATABASE_PATH": ("database_path", Path),
    "MEALCAL_API_TOKEN": ("api_token", str),
    "MEALCAL_LOG_LEVEL": ("log_level", str),
    "MEALCAL_LOG_FORMAT": ("log_format", str),
    "MEALCAL_LOG_REQUESTS": ("log_requests", _as_bool),
    "MEALCAL_WEEKS_TO_INITIALISE": ("weeks_to_initialise", int),
    "MEALCAL_DISHES_PAGE_SIZE": ("dishes_page_size", int),
}


def _read_env_file(path: Path) -> Dict[str, str]:
    if not path.is_file():
        return {}
    values: Dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip().strip("\"'")
    return values


def _collect_overrides() -> Dict[str, object]:
    """Resolve ``MEALCAL_*`` values; the process environment beats ``.env`` files."""

    file_values: Dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        file_values.update(_read_env_file(candidate))

    overrides: Dict[str, object] = {}
    for key, (field, convert) in ENV_FIELDS.items():
        raw = os.environ.get(key) or file_values.get(key)
        if not raw:
            continue
        try:
            overrides[field] = convert(raw)
        except ValueError:
            logger.warning("Ignoring invalid value for %s: %r", key, raw)
    return overrides


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_collect_overrides())


__all__ = ["Settings", "ENV_FIELDS", "get_settings"]
