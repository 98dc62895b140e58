"""Integration tests for calendar weeks and slot edits."""

from __future__ import annotations

from fastapi import status

from tests.integration.utils import auth_headers, create_dish


def _slot(client, action: str, payload: dict):
    return client.post(f"/calendar/slots/{action}", json=payload, headers=auth_headers())


def _last_eaten(client, dish_id: int):
    return client.get(f"/dishes/{dish_id}").json()["last_eaten"]


def test_initialise_weeks_creates_current_and_upcoming(client):
    response = client.post("/calendar/initialise-weeks", headers=auth_headers())
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["initialised_weeks"] == ["2025-03-10", "2025-03-17", "2025-03-24"]

    response = client.post("/calendar/initialise-weeks", headers=auth_headers())
    assert response.json()["initialised_weeks"] == []

    response = client.get("/calendar/2025-03-17")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["lunch"] == {}


def test_get_missing_week_returns_empty_plan(client):
    response = client.get("/calendar/2025-01-06")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    body = response.json()
    assert body["detail"] == "no meal plan found for this week"
    assert body["lunch"] == {} and body["dinner"] == {}


def test_week_start_must_be_monday(client):
    response = client.get("/calendar/2025-03-11")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_save_week_round_trip_and_validation(client):
    payload = {"week_start": "2025-03-03", "lunch": {"2025-03-04": [1, 2]}, "dinner": {}}
    response = client.post("/calendar", json=payload, headers=auth_headers())
    assert response.status_code == status.HTTP_200_OK

    response = client.get("/calendar/2025-03-03")
    assert response.json()["lunch"] == {"2025-03-04": [1, 2]}

    outside = {"week_start": "2025-03-03", "lunch": {"2025-03-12": [1]}}
    response = client.post("/calendar", json=outside, headers=auth_headers())
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_add_then_remove_today_clears_last_eaten(client, today):
    dish = create_dish(client, "Hainanese Chicken")
    slot = {"date": today.isoformat(), "meal": "lunch", "dish_id": dish["id"]}

    response = _slot(client, "add", slot)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["weeks"][0]["lunch"][today.isoformat()] == [dish["id"]]
    assert _last_eaten(client, dish["id"]) == today.isoformat()

    response = _slot(client, "remove", slot)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["recomputes"][0]["outcome"] == "cleared"
    assert _last_eaten(client, dish["id"]) is None


def test_remove_today_recomputes_from_earlier_week(client, today):
    dish = create_dish(client, "Nasi Lemak")
    _slot(client, "add", {"date": "2025-03-04", "meal": "dinner", "dish_id": dish["id"]})
    _slot(client, "add", {"date": today.isoformat(), "meal": "lunch", "dish_id": dish["id"]})
    assert _last_eaten(client, dish["id"]) == today.isoformat()

    _slot(client, "remove", {"date": today.isoformat(), "meal": "lunch", "dish_id": dish["id"]})

    assert _last_eaten(client, dish["id"]) == "2025-03-04"

    response = client.post(f"/dishes/{dish['id']}/recompute-last-eaten", headers=auth_headers())
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["last_eaten"] == "2025-03-04"
    assert response.json()["source"] == "store"


def test_swap_past_slots_updates_both_dishes(client):
    first = create_dish(client, "Gyoza")
    second = create_dish(client, "Shepherd's Pie", cuisine="western")
    _slot(client, "add", {"date": "2025-03-10", "meal": "lunch", "dish_id": first["id"]})
    _slot(client, "add", {"date": "2025-03-12", "meal": "dinner", "dish_id": second["id"]})

    response = _slot(
        client,
        "swap",
        {
            "source": {"date": "2025-03-10", "meal": "lunch"},
            "target": {"date": "2025-03-12", "meal": "dinner"},
        },
    )
    assert response.status_code == status.HTTP_200_OK
    week = client.get("/calendar/2025-03-10").json()
    assert week["lunch"]["2025-03-10"] == [second["id"]]
    assert week["dinner"]["2025-03-12"] == [first["id"]]
    assert _last_eaten(client, first["id"]) == "2025-03-12"
    assert _last_eaten(client, second["id"]) == "2025-03-10"


def test_add_to_future_slot_keeps_last_eaten(client):
    dish = create_dish(client, "Tom Yum")

    response = _slot(client, "add", {"date": "2025-03-20", "meal": "dinner", "dish_id": dish["id"]})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["occurrences"] == []
    assert _last_eaten(client, dish["id"]) is None


def test_slot_edit_rejections(client, today):
    dish = create_dish(client, "Dumplings")
    slot = {"date": today.isoformat(), "meal": "dinner", "dish_id": dish["id"]}
    _slot(client, "add", slot)

    response = _slot(client, "add", slot)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "This dish is already added to this meal."

    response = _slot(client, "add", {**slot, "dish_id": 999})
    assert response.status_code == status.HTTP_404_NOT_FOUND

    response = _slot(client, "remove", {**slot, "meal": "lunch"})
    assert response.status_code == status.HTTP_404_NOT_FOUND

    response = _slot(client, "add", {**slot, "meal": "brunch"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    same = {"date": today.isoformat(), "meal": "dinner"}
    response = _slot(client, "swap", {"source": same, "target": same})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_clear_slot_today(client, today):
    dish = create_dish(client, "Congee")
    _slot(client, "add", {"date": today.isoformat(), "meal": "lunch", "dish_id": dish["id"]})

    response = _slot(client, "clear", {"date": today.isoformat(), "meal": "lunch"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["weeks"][0]["lunch"][today.isoformat()] == []
    assert _last_eaten(client, dish["id"]) is None
