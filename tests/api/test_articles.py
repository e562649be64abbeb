from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ARTICLE = {
    "title": "The Future of AI: Healthcare!",
    "excerpt": "How AI changes patient care.",
    "content": "word " * 450,
    "author": "Dr. Sarah Chen",
    "category": "Healthcare AI",
    "tags": "ai, healthcare, ai",
}


async def create(client, headers, **overrides):
    resp = await client.post("/api/admin/articles", json={**ARTICLE, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_create_then_read_by_slug(client, auth_headers):
    created = await create(client, auth_headers)
    assert created["slug"] == "the-future-of-ai-healthcare"
    assert created["tags"] == ["ai", "healthcare"]
    assert created["readTime"] == 3
    assert created["publishedAt"]

    resp = await client.get(f"/api/articles/{created['slug']}")
    assert resp.status_code == 200
    fetched = resp.json()
    assert fetched["id"] == created["id"]
    assert fetched["title"] == ARTICLE["title"]
    assert fetched["content"] == ARTICLE["content"]

    resp = await client.get(f"/api/articles/slug/{created['slug']}")
    assert resp.status_code == 200
    assert resp.json()["id"] == created["id"]


@pytest.mark.asyncio
async def test_public_read_counts_views(client, auth_headers):
    created = await create(client, auth_headers)
    await client.get(f"/api/articles/{created['slug']}")
    resp = await client.get(f"/api/articles/{created['slug']}")
    assert resp.json()["views"] == 2


@pytest.mark.asyncio
async def test_unknown_slug_is_404(client):
    resp = await client.get("/api/articles/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Article not found"}


@pytest.mark.asyncio
async def test_duplicate_slug_conflicts(client, auth_headers):
    await create(client, auth_headers)
    resp = await client.post("/api/admin/articles", json=ARTICLE, headers=auth_headers)
    assert resp.status_code == 409
    assert resp.json() == {"error": "Slug already exists"}


@pytest.mark.asyncio
async def test_update_to_existing_slug_conflicts(client, auth_headers):
    first = await create(client, auth_headers)
    second = await create(client, auth_headers, title="Fraud Detection with ML")

    resp = await client.put(
        f"/api/admin/articles/{second['id']}",
        json={"slug": first["slug"], "title": "Renamed"},
        headers=auth_headers,
    )
    assert resp.status_code == 409
    assert resp.json() == {"error": "Slug already exists"}

    # nothing from the rejected update was written
    resp = await client.get(f"/api/admin/articles/{second['id']}", headers=auth_headers)
    assert resp.json()["slug"] == "fraud-detection-with-ml"
    assert resp.json()["title"] == "Fraud Detection with ML"


@pytest.mark.asyncio
async def test_conflicting_create_removes_uploaded_image(client, auth_headers, settings):
    await create(client, auth_headers)
    resp = await client.post(
        "/api/admin/articles",
        data={"title": ARTICLE["title"]},
        files={"image": ("cover.png", b"\x89PNG fake", "image/png")},
        headers=auth_headers,
    )
    assert resp.status_code == 409
    folder = Path(settings.upload_dir) / "articles"
    assert not folder.exists() or list(folder.iterdir()) == []


@pytest.mark.asyncio
async def test_conflicting_update_keeps_old_image_and_drops_new_one(client, auth_headers, settings):
    first = await create(client, auth_headers)
    resp = await client.post(
        "/api/admin/articles",
        data={"title": "With Cover"},
        files={"image": ("old.png", b"old", "image/png")},
        headers=auth_headers,
    )
    article = resp.json()
    folder = Path(settings.upload_dir) / "articles"
    old_name = article["imageUrl"].rsplit("/", 1)[1]

    resp = await client.put(
        f"/api/admin/articles/{article['id']}",
        data={"slug": first["slug"]},
        files={"image": ("new.png", b"new", "image/png")},
        headers=auth_headers,
    )
    assert resp.status_code == 409
    assert [p.name for p in folder.iterdir()] == [old_name]

    resp = await client.get(f"/api/admin/articles/{article['id']}", headers=auth_headers)
    assert resp.json()["imageUrl"] == article["imageUrl"]


@pytest.mark.asyncio
async def test_explicit_slug_is_normalised(client, auth_headers):
    created = await create(client, auth_headers, slug="My Custom Slug")
    assert created["slug"] == "my-custom-slug"


@pytest.mark.asyncio
async def test_missing_title_rejected(client, auth_headers):
    resp = await client.post("/api/admin/articles", json={"content": "x"}, headers=auth_headers)
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Validation failed"
    assert any(d["key"] == "title" for d in body["details"])


@pytest.mark.asyncio
async def test_update_keeps_omitted_fields_and_slug(client, auth_headers):
    created = await create(client, auth_headers)
    resp = await client.put(
        f"/api/admin/articles/{created['id']}",
        json={"title": "A Completely New Title"},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["title"] == "A Completely New Title"
    assert updated["slug"] == created["slug"]
    assert updated["author"] == ARTICLE["author"]
    assert updated["tags"] == ["ai", "healthcare"]


@pytest.mark.asyncio
async def test_update_missing_article_is_404(client, auth_headers):
    resp = await client.put("/api/admin/articles/999", json={"title": "Nope"}, headers=auth_headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_image_url_then_clear(client, auth_headers):
    created = await create(client, auth_headers, imageUrl="https://cdn.example.com/a.png")
    assert created["imageUrl"] == "https://cdn.example.com/a.png"

    resp = await client.put(
        f"/api/admin/articles/{created['id']}",
        json={"imageUrl": "https://cdn.example.com/b.png"},
        headers=auth_headers,
    )
    assert resp.json()["imageUrl"] == "https://cdn.example.com/b.png"

    resp = await client.put(
        f"/api/admin/articles/{created['id']}", json={"clearImage": True}, headers=auth_headers
    )
    assert resp.json()["imageUrl"] is None


@pytest.mark.asyncio
async def test_multipart_upload_wins_over_url(client, auth_headers, settings):
    resp = await client.post(
        "/api/admin/articles",
        data={"title": "Upload Test", "imageUrl": "https://cdn.example.com/ignored.png", "tags": "a,b"},
        files={"image": ("Photo One.PNG", b"\x89PNG fake", "image/png")},
        headers=auth_headers,
    )
    assert resp.status_code == 201, resp.text
    article = resp.json()
    assert article["imageUrl"].startswith("/uploads/articles/")
    assert article["imageUrl"].endswith("photo_one.png")
    assert article["tags"] == ["a", "b"]

    stored = Path(settings.upload_dir) / "articles" / article["imageUrl"].rsplit("/", 1)[1]
    assert stored.read_bytes() == b"\x89PNG fake"

    resp = await client.get(article["imageUrl"])
    assert resp.status_code == 200

    # replacing the image removes the old local file
    resp = await client.put(
        f"/api/admin/articles/{article['id']}",
        json={"imageUrl": "https://cdn.example.com/new.png"},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert not stored.exists()


@pytest.mark.asyncio
async def test_delete_article(client, auth_headers):
    created = await create(client, auth_headers)
    resp = await client.delete(f"/api/admin/articles/{created['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["ok"] is True

    resp = await client.get(f"/api/articles/{created['slug']}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_public_list_filters_and_hides_scheduled(client, auth_headers):
    await create(client, auth_headers)
    await create(client, auth_headers, title="Fraud Detection with ML", category="FinTech")
    await create(client, auth_headers, title="Coming Soon", publishedAt="2999-01-01T00:00:00Z")

    resp = await client.get("/api/articles")
    page = resp.json()
    assert page["total"] == 2
    assert "Coming Soon" not in [a["title"] for a in page["items"]]

    resp = await client.get("/api/articles?category=FinTech")
    assert [a["title"] for a in resp.json()["items"]] == ["Fraud Detection with ML"]

    resp = await client.get("/api/articles?q=fraud")
    assert resp.json()["total"] == 1

    resp = await client.get("/api/admin/articles", headers=auth_headers)
    assert resp.json()["total"] == 3


@pytest.mark.asyncio
async def test_scheduled_article_hidden_by_slug(client, auth_headers):
    future = (datetime.now(timezone.utc) + timedelta(days=30)).isoformat()
    created = await create(client, auth_headers, title="Launch Notes", publishedAt=future)

    for path in (f"/api/articles/{created['slug']}", f"/api/articles/slug/{created['slug']}"):
        resp = await client.get(path)
        assert resp.status_code == 404
        assert resp.json() == {"error": "Article not found"}

    resp = await client.get(f"/api/admin/articles/{created['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["views"] == 0


@pytest.mark.asyncio
async def test_public_list_limit_clamped(client, auth_headers):
    await create(client, auth_headers)
    resp = await client.get("/api/articles?limit=500&page=-3")
    page = resp.json()
    assert page["limit"] == 100
    assert page["page"] == 1
