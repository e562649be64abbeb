import pytest

FEEDBACK = {
    "name": "Alice",
    "company": "Initech",
    "project": "Support bot",
    "rating": 5,
    "comment": "Great work on our assistant.",
}


async def submit(client, **overrides):
    resp = await client.post("/api/feedback", json={**FEEDBACK, **overrides})
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_feedback_hidden_until_approved(client, auth_headers):
    created = await submit(client)
    assert created["status"] == "pending"

    resp = await client.get("/api/feedback")
    assert resp.status_code == 200
    assert resp.json() == []

    resp = await client.patch(
        f"/api/admin/feedback/{created['id']}", json={"status": "approved"}, headers=auth_headers
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"

    resp = await client.get("/api/feedback")
    items = resp.json()
    assert [f["id"] for f in items] == [created["id"]]
    assert items[0]["comment"] == FEEDBACK["comment"]


@pytest.mark.asyncio
async def test_denied_feedback_stays_hidden(client, auth_headers):
    created = await submit(client)
    await client.patch(f"/api/admin/feedback/{created['id']}", json={"status": "denied"}, headers=auth_headers)

    resp = await client.get("/api/feedback")
    assert resp.json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [0, 6])
async def test_rating_out_of_range_rejected(client, rating):
    resp = await client.post("/api/feedback", json={**FEEDBACK, "rating": rating})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_invalid_status_rejected(client, auth_headers):
    created = await submit(client)
    resp = await client.patch(
        f"/api/admin/feedback/{created['id']}", json={"status": "maybe"}, headers=auth_headers
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid status"}


@pytest.mark.asyncio
async def test_admin_filters(client, auth_headers):
    first = await submit(client)
    await submit(client, name="Bob")
    await client.patch(f"/api/admin/feedback/{first['id']}", json={"status": "approved"}, headers=auth_headers)

    resp = await client.get("/api/admin/feedback", headers=auth_headers)
    assert resp.json()["total"] == 2

    resp = await client.get("/api/admin/feedback?status=pending", headers=auth_headers)
    assert [f["name"] for f in resp.json()["items"]] == ["Bob"]

    resp = await client.get("/api/admin/feedback?approved=true", headers=auth_headers)
    assert [f["id"] for f in resp.json()["items"]] == [first["id"]]

    resp = await client.get("/api/admin/feedback?approved=false", headers=auth_headers)
    assert [f["name"] for f in resp.json()["items"]] == ["Bob"]


@pytest.mark.asyncio
async def test_delete_feedback(client, auth_headers):
    created = await submit(client)
    resp = await client.delete(f"/api/admin/feedback/{created['id']}", headers=auth_headers)
    assert resp.status_code == 200

    resp = await client.delete(f"/api/admin/feedback/{created['id']}", headers=auth_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_public_feedback_is_paged(client, auth_headers):
    ids = []
    for n in range(5):
        created = await submit(client, name=f"Client {n}")
        await client.patch(
            f"/api/admin/feedback/{created['id']}", json={"status": "approved"}, headers=auth_headers
        )
        ids.append(created["id"])

    resp = await client.get("/api/feedback?limit=3&page=2")
    assert resp.status_code == 200
    assert sorted(f["id"] for f in resp.json()) == sorted(ids[:2])

    resp = await client.get("/api/feedback?limit=3")
    assert [f["id"] for f in resp.json()] == ids[:1:-1]

    resp = await client.get("/api/feedback")
    assert len(resp.json()) == 5
