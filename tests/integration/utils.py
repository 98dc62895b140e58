"""Shared helpers for integration tests."""

from __future__ import annotations

from mealcal.config import get_settings


def auth_headers() -> dict[str, str]:
    token = get_settings().api_token
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


def create_dish(client, name: str, **overrides) -> dict:
    payload = {
        "name": name,
        "cuisine": "asian",
        "ingredients": ["rice"],
        "preferences": ["ryan"],
    }
    payload.update(overrides)
    response = client.post("/dishes", json=payload, headers=auth_headers())
    assert response.status_code == 201, response.text
    return response.json()
