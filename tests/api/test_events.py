from datetime import date, timedelta

import pytest


def event_payload(days_from_today: int, **overrides):
    payload = {
        "title": "AI Revolution Summit",
        "description": "Keynotes and demos.",
        "date": (date.today() + timedelta(days=days_from_today)).isoformat(),
        "timeRange": "09:00 - 17:00",
        "location": "San Francisco",
        "type": "conference",
        "maxAttendees": 300,
    }
    payload.update(overrides)
    return payload


async def create(client, headers, days_from_today: int, **overrides):
    resp = await client.post("/api/admin/events", json=event_payload(days_from_today, **overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_status_derived_from_date(client, auth_headers):
    upcoming = await create(client, auth_headers, 10)
    today = await create(client, auth_headers, 0, title="Today Demo", type="demo")
    past = await create(client, auth_headers, -10, title="Past Workshop", type="workshop")

    assert upcoming["status"] == "upcoming"
    assert today["status"] == "upcoming"
    assert past["status"] == "past"

    resp = await client.get(f"/api/events/{past['id']}")
    assert resp.status_code == 200
    assert resp.json()["status"] == "past"


@pytest.mark.asyncio
async def test_upcoming_listed_soonest_first(client, auth_headers):
    later = await create(client, auth_headers, 30, title="Later")
    sooner = await create(client, auth_headers, 5, title="Sooner")
    await create(client, auth_headers, -3, title="Done")

    resp = await client.get("/api/events?status=upcoming")
    assert resp.status_code == 200
    assert [e["id"] for e in resp.json()["items"]] == [sooner["id"], later["id"]]

    resp = await client.get("/api/events?status=past")
    assert [e["title"] for e in resp.json()["items"]] == ["Done"]


@pytest.mark.asyncio
async def test_type_and_date_range_filters(client, auth_headers):
    await create(client, auth_headers, 3, title="Webinar One", type="webinar")
    await create(client, auth_headers, 20, title="Conference")

    resp = await client.get("/api/events?type=webinar")
    assert [e["title"] for e in resp.json()["items"]] == ["Webinar One"]

    start = (date.today() + timedelta(days=10)).isoformat()
    resp = await client.get(f"/api/events?from={start}")
    assert [e["title"] for e in resp.json()["items"]] == ["Conference"]

    end = (date.today() + timedelta(days=10)).isoformat()
    resp = await client.get(f"/api/events?to={end}")
    assert [e["title"] for e in resp.json()["items"]] == ["Webinar One"]


@pytest.mark.asyncio
async def test_invalid_filters_rejected(client):
    resp = await client.get("/api/events?status=soon")
    assert resp.status_code == 400
    resp = await client.get("/api/events?type=party")
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_invalid_type_on_create_rejected(client, auth_headers):
    resp = await client.post(
        "/api/admin/events", json=event_payload(5, type="party"), headers=auth_headers
    )
    assert resp.status_code == 400
    assert any(d["key"] == "type" for d in resp.json()["details"])


@pytest.mark.asyncio
async def test_update_keeps_omitted_fields(client, auth_headers):
    created = await create(client, auth_headers, 7)
    resp = await client.put(
        f"/api/admin/events/{created['id']}",
        json={"location": "Online", "attendees": 42},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["location"] == "Online"
    assert updated["attendees"] == 42
    assert updated["title"] == created["title"]
    assert updated["date"] == created["date"]
    assert updated["timeRange"] == "09:00 - 17:00"


@pytest.mark.asyncio
async def test_event_image_modes(client, auth_headers):
    created = await create(client, auth_headers, 7, imageUrl="https://cdn.example.com/e.png")
    assert created["imageUrl"] == "https://cdn.example.com/e.png"

    resp = await client.put(
        f"/api/admin/events/{created['id']}",
        data={"title": "With Upload"},
        files={"image": ("stage.jpg", b"jpeg-bytes", "image/jpeg")},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["imageUrl"].startswith("/uploads/events/")

    resp = await client.put(
        f"/api/admin/events/{created['id']}", json={"clearImage": True}, headers=auth_headers
    )
    assert resp.json()["imageUrl"] is None


@pytest.mark.asyncio
async def test_missing_event_is_404(client, auth_headers):
    resp = await client.get("/api/events/12345")
    assert resp.status_code == 404
    resp = await client.delete("/api/admin/events/12345", headers=auth_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_event(client, auth_headers):
    created = await create(client, auth_headers, 7)
    resp = await client.delete(f"/api/admin/events/{created['id']}", headers=auth_headers)
    assert resp.status_code == 200
    resp = await client.get(f"/api/events/{created['id']}")
    assert resp.status_code == 404
