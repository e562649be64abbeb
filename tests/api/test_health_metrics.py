from datetime import date, timedelta

import pytest
from sqlalchemy import text


@pytest.mark.asyncio
async def test_root_banner(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "running"


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


@pytest.mark.asyncio
async def test_health_db_reports_table_counts(client):
    resp = await client.get("/api/health/db")
    assert resp.status_code == 200
    tables = resp.json()["tables"]
    assert tables["admins"] == 1
    assert tables["customer_inquiries"] == 0
    assert set(tables) == {
        "admins", "articles", "events", "feedback", "customer_inquiries", "gallery_images",
    }


@pytest.mark.asyncio
async def test_health_db_marks_missing_table(client, engine):
    async with engine.begin() as conn:
        await conn.execute(text("DROP TABLE gallery_images"))

    resp = await client.get("/api/health/db")
    assert resp.json()["tables"]["gallery_images"] is None


@pytest.mark.asyncio
async def test_unknown_route_is_json_404(client):
    resp = await client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert "error" in resp.json()


@pytest.mark.asyncio
async def test_metrics(client, auth_headers):
    inquiry = {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "jobDetails": "We need a chatbot for customer support.",
    }
    first = (await client.post("/api/inquiries", json=inquiry)).json()
    await client.post("/api/inquiries", json=inquiry)
    await client.patch(f"/api/admin/inquiries/{first['id']}", json={"status": "completed"}, headers=auth_headers)

    await client.post(
        "/api/feedback", json={"name": "Al", "rating": 4, "comment": "Nice"},
    )
    await client.post(
        "/api/admin/events",
        json={"title": "Summit", "date": (date.today() + timedelta(days=3)).isoformat(), "type": "conference"},
        headers=auth_headers,
    )

    resp = await client.get("/api/admin/metrics", headers=auth_headers)
    assert resp.status_code == 200
    metrics = resp.json()
    assert metrics["totalInquiries"] == 2
    assert metrics["byStatus"] == {"new": 1, "in-progress": 0, "completed": 1, "archived": 0}
    assert len(metrics["last7Days"]) == 7
    assert sum(d["count"] for d in metrics["last7Days"]) == 2
    assert metrics["pendingFeedback"] == 1
    assert metrics["totalEvents"] == 1
    assert metrics["upcomingEvents"] == 1
    assert metrics["galleryImages"] == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "origin,allowed",
    [
        ("http://localhost:5173", True),
        ("https://preview-42.vercel.app", True),
        ("https://evil.example.com", False),
    ],
)
async def test_cors_allow_list(client, origin, allowed):
    resp = await client.get("/api/health", headers={"Origin": origin})
    assert resp.status_code == 200
    if allowed:
        assert resp.headers.get("access-control-allow-origin") == origin
    else:
        assert "access-control-allow-origin" not in resp.headers
