from __future__ import annotations

import json
from pathlib import Path

from fastapi.testclient import TestClient

from conftest import make_image_bytes


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def test_category_lifecycle(client: TestClient, admin_headers) -> None:
    created = client.post("/api/categories/admin", json={"name": "Sports & Recreation"}, headers=admin_headers)
    assert created.status_code == 201
    category = created.json()["data"]
    assert category["slug"] == "sports-recreation"

    same_name = client.put(
        f"/api/categories/admin/{category['id']}", json={"name": "Sports & Recreation"}, headers=admin_headers
    ).json()["data"]
    assert same_name["slug"] == "sports-recreation"

    renamed = client.put(
        f"/api/categories/admin/{category['id']}", json={"name": "Sport"}, headers=admin_headers
    ).json()["data"]
    assert renamed["slug"] == "sport"

    listing = client.get("/api/categories").json()["data"]
    assert listing == [
        {
            "id": category["id"],
            "name": "Sport",
            "slug": "sport",
            "projectCount": 0,
            "createdAt": category["createdAt"],
            "updatedAt": renamed["updatedAt"],
        }
    ]

    assert client.delete(f"/api/categories/admin/{category['id']}", headers=admin_headers).status_code == 200
    assert client.get("/api/categories").json()["data"] == []


def test_duplicate_category_name_conflicts(client: TestClient, admin_headers) -> None:
    client.post("/api/categories/admin", json={"name": "Retail"}, headers=admin_headers)

    response = client.post("/api/categories/admin", json={"name": "Retail"}, headers=admin_headers)

    assert response.status_code == 409


def test_category_in_use_cannot_be_deleted(client: TestClient, admin_headers) -> None:
    category = client.post("/api/categories/admin", json={"name": "Cultural"}, headers=admin_headers).json()["data"]
    client.post(
        "/api/projects/admin",
        data={
            "title": "Museum",
            "description": "Galleries",
            "location": "Accra",
            "status": "published",
            "categoryIds": json.dumps([category["id"]]),
        },
        headers=admin_headers,
    )

    response = client.delete(f"/api/categories/admin/{category['id']}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot delete category with associated projects"
    assert client.get("/api/categories").json()["data"][0]["projectCount"] == 1


# ---------------------------------------------------------------------------
# Team
# ---------------------------------------------------------------------------


def test_team_member_photo_lifecycle(client: TestClient, admin_headers, upload_dir: Path) -> None:
    created = client.post(
        "/api/team/admin",
        data={"name": "Ada Obi", "title": "Principal", "order": "2"},
        files={"image": ("ada.png", make_image_bytes((800, 600), image_format="PNG"), "image/png")},
        headers=admin_headers,
    )
    assert created.status_code == 201, created.text
    member = created.json()["data"]
    assert member["order"] == 2
    assert member["photo"].endswith("_team.jpg")
    first_photo = upload_dir / member["photo"].rsplit("/", 1)[-1]
    assert first_photo.exists()

    replaced = client.put(
        f"/api/team/admin/{member['id']}",
        data={"bio": "Founding partner"},
        files={"image": ("new.jpg", make_image_bytes(), "image/jpeg")},
        headers=admin_headers,
    ).json()["data"]
    assert replaced["bio"] == "Founding partner"
    assert replaced["name"] == "Ada Obi"
    assert replaced["photo"] != member["photo"]
    assert not first_photo.exists()

    removed = client.put(
        f"/api/team/admin/{member['id']}", data={"removePhoto": "true"}, headers=admin_headers
    ).json()["data"]
    assert removed["photo"] is None
    assert list(upload_dir.iterdir()) == []


def test_team_listing_is_ordered(client: TestClient, admin_headers) -> None:
    for name, order in (("Second", "2"), ("First", "1"), ("Third", "3")):
        client.post("/api/team/admin", data={"name": name, "title": "Architect", "order": order}, headers=admin_headers)

    names = [member["name"] for member in client.get("/api/team").json()["data"]]

    assert names == ["First", "Second", "Third"]


def test_team_member_requires_name(client: TestClient, admin_headers) -> None:
    response = client.post("/api/team/admin", data={"title": "Architect"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Name is required"


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def test_service_catalog(client: TestClient, admin_headers) -> None:
    active = client.post(
        "/api/services/admin",
        json={"title": "Master planning", "description": "Large sites", "features": ["Zoning"], "order": 1},
        headers=admin_headers,
    )
    assert active.status_code == 201
    hidden = client.post(
        "/api/services/admin",
        json={"title": "Interiors", "description": "Fit-out", "features": "FF&E, Lighting", "isActive": False},
        headers=admin_headers,
    ).json()["data"]
    assert hidden["features"] == ["FF&E", "Lighting"]

    public = client.get("/api/services").json()["data"]
    assert [service["title"] for service in public] == ["Master planning"]
    assert public[0]["order"] == 1

    everything = client.get("/api/services/admin/all", headers=admin_headers).json()["data"]
    assert len(everything) == 2

    updated = client.put(
        f"/api/services/admin/{hidden['id']}", json={"isActive": True}, headers=admin_headers
    ).json()["data"]
    assert updated["isActive"] is True
    assert updated["title"] == "Interiors"

    assert client.delete(f"/api/services/admin/{hidden['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/services/admin/{hidden['id']}", headers=admin_headers).status_code == 404


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------


def _article(client: TestClient, headers, files=None, **fields: str) -> dict:
    data = {"title": "Designing for Heat", "content": "Long form text", "publishedAt": "2024-04-01"}
    data.update(fields)
    response = client.post("/api/articles/admin", data=data, files=files, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_article_listing_and_detail(client: TestClient, admin_headers) -> None:
    author = client.post(
        "/api/team/admin", data={"name": "Ada Obi", "title": "Principal"}, headers=admin_headers
    ).json()["data"]
    _article(client, admin_headers, tags="climate, housing", authorId=author["id"])
    _article(client, admin_headers, title="Draft thoughts", publishedAt="")

    listing = client.get("/api/articles").json()
    assert listing["pagination"]["total"] == 1
    article = listing["data"][0]
    assert article["slug"] == "designing-for-heat"
    assert article["tags"] == ["climate", "housing"]
    assert article["author"]["name"] == "Ada Obi"

    assert client.get("/api/articles", params={"tag": "housing"}).json()["pagination"]["total"] == 1
    assert client.get("/api/articles", params={"tag": "retail"}).json()["pagination"]["total"] == 0
    assert client.get("/api/articles/designing-for-heat").status_code == 200
    assert client.get("/api/articles/draft-thoughts").status_code == 404


def test_article_unknown_author_rejected(client: TestClient, admin_headers) -> None:
    response = client.post(
        "/api/articles/admin",
        data={"title": "Orphan", "content": "Text", "authorId": "missing"},
        headers=admin_headers,
    )

    assert response.status_code == 400


def test_article_image_replaced_and_removed(client: TestClient, admin_headers, upload_dir: Path) -> None:
    article = _article(client, admin_headers, files={"image": ("a.jpg", make_image_bytes(), "image/jpeg")})
    first = upload_dir / article["featuredImage"].rsplit("/", 1)[-1]
    assert first.exists()

    replaced = client.put(
        f"/api/articles/admin/{article['id']}",
        files={"image": ("b.jpg", make_image_bytes(), "image/jpeg")},
        headers=admin_headers,
    ).json()["data"]
    assert replaced["featuredImage"] != article["featuredImage"]
    assert replaced["slug"] == article["slug"]
    assert not first.exists()

    assert client.delete(f"/api/articles/admin/{article['id']}", headers=admin_headers).status_code == 200
    assert list(upload_dir.iterdir()) == []
