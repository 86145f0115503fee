from __future__ import annotations

import re

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import Session as OrmSession
from sqlalchemy.pool import NullPool

from conftest import ADMIN_EMAIL, ADMIN_KEY, ADMIN_PASSWORD, FakeRedis
from studio.core.database import Base, build_session_factory
from studio.core.security import get_password_hash
from studio.main import app
from studio.models.admin_user import AdminUser
from studio.services.lead_service import LeadIntakePipeline
from studio.services.local_cache import LocalCache
from studio.services.remote_store import RemoteStore
from studio.services.site_context import SiteContext


@pytest.fixture
def client(tmp_path):
    db_path = tmp_path / "api.db"
    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    with OrmSession(sync_engine) as db:
        db.add(AdminUser(email=ADMIN_EMAIL, hashed_password=get_password_hash(ADMIN_PASSWORD)))
        db.commit()
    sync_engine.dispose()

    # NullPool: every request opens its connection on the client's own loop
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    context = SiteContext(RemoteStore(build_session_factory(engine)), LocalCache(FakeRedis(), prefix="api"))
    app.state.site_context = context
    app.state.lead_pipeline = LeadIntakePipeline(context)
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.state.site_context = None
        app.state.lead_pipeline = None


def _login(client) -> dict:
    res = client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


def test_public_config_and_meta(client) -> None:
    config = client.get("/site/config").json()
    meta = client.get("/site/meta").json()

    assert config["siteName"] == "Lino Studio NG"
    assert config["couponPrefix"] == "LINO-"
    assert meta["documentTitle"] == config["seo"]["metaTitle"]
    assert meta["darkMode"] is False
    assert len(client.get("/site/testimonials").json()) == 3


def test_root_and_health(client) -> None:
    assert client.get("/").json()["status"] == "running"
    assert "status" in client.get("/health").json()


def test_lead_submission_returns_reference_code(client) -> None:
    res = client.post("/leads", json={
        "name": "Jane",
        "email": "jane@example.com",
        "message": "Website please",
        "budget": "Premium",
        "type": "HIRE_ME",
    })

    assert res.status_code == 201
    body = res.json()
    assert body["state"] == "success"
    assert re.match(r"^LINO-[A-Z0-9]{6,8}$", body["referenceCode"])
    assert body["followUpUrl"].startswith("https://wa.me/")


def test_lead_submission_validates_input(client) -> None:
    res = client.post("/leads", json={"name": "Jane", "email": "nope", "message": "Hi"})
    assert res.status_code == 422


def test_wrong_credentials_are_denied(client) -> None:
    res = client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong"})
    assert res.status_code == 401
    assert res.json()["detail"] == "Access denied"


def test_admin_routes_need_a_session(client) -> None:
    assert client.get("/admin/draft").status_code == 401
    assert client.post("/admin/draft/save").status_code == 401
    assert client.get("/admin/leads", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_draft_is_published_only_after_save(client) -> None:
    headers = _login(client)

    res = client.patch("/admin/draft", json={"path": "siteName", "value": "Acme Studio"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["dirty"] is True
    assert client.get("/site/config").json()["siteName"] == "Lino Studio NG"

    res = client.post("/admin/draft/save", headers=headers)
    assert res.status_code == 200
    assert client.get("/site/config").json()["siteName"] == "Acme Studio"
    assert client.get("/admin/draft", headers=headers).json()["dirty"] is False


def test_bad_draft_edit_is_unprocessable(client) -> None:
    headers = _login(client)
    res = client.patch("/admin/draft", json={"path": "skills.0.level", "value": "high"}, headers=headers)
    assert res.status_code == 422
    res = client.patch("/admin/draft", json={"path": "skills.0.level", "value": None}, headers=headers)
    assert res.status_code == 422


def test_discard_resets_draft(client) -> None:
    headers = _login(client)
    client.patch("/admin/draft", json={"path": "tagline", "value": "Scratch"}, headers=headers)

    res = client.post("/admin/draft/discard", headers=headers)

    assert res.json()["dirty"] is False
    assert res.json()["draft"]["tagline"] == client.get("/site/config").json()["tagline"]


def test_project_crud_is_immediate(client) -> None:
    headers = _login(client)

    res = client.post("/admin/projects", json={"title": "API Project", "category": "Web Development"}, headers=headers)
    assert res.status_code == 201
    project_id = res.json()["id"]
    assert any(p["id"] == project_id for p in client.get("/site/config").json()["projects"])

    res = client.patch(f"/admin/projects/{project_id}", json={"title": "Renamed"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["title"] == "Renamed"

    assert client.delete(f"/admin/projects/{project_id}", headers=headers).status_code == 204
    assert all(p["id"] != project_id for p in client.get("/site/config").json()["projects"])


def test_service_crud_is_immediate(client) -> None:
    headers = _login(client)

    res = client.post("/admin/services", json={"title": "Motion Design"}, headers=headers)
    assert res.status_code == 201
    service_id = res.json()["id"]

    res = client.patch(f"/admin/services/{service_id}", json={"icon": "🎬"}, headers=headers)
    assert res.json()["icon"] == "🎬"

    assert client.delete(f"/admin/services/{service_id}", headers=headers).status_code == 204
    assert client.patch(f"/admin/services/{service_id}", json={"icon": "x"}, headers=headers).status_code == 404


def test_lead_inbox_lists_submissions(client) -> None:
    client.post("/leads", json={"name": "Ada", "email": "ada@example.com", "message": "Logo please"})
    headers = _login(client)

    leads = client.get("/admin/leads", headers=headers).json()

    assert [l["name"] for l in leads] == ["Ada"]
    assert leads[0]["type"] == "CONTACT_FORM"


def test_key_unlock(client) -> None:
    assert client.post("/auth/unlock", json={"key": ADMIN_KEY.upper()}).status_code == 401

    res = client.post("/auth/unlock", json={"key": ADMIN_KEY})

    assert res.status_code == 200
    assert res.json()["mode"] == "key"


def test_session_refresh_and_logout(client) -> None:
    headers = _login(client)
    assert client.get("/auth/session", headers=headers).json()["state"] == "authenticated"

    res = client.post("/auth/refresh", headers=headers)
    assert res.status_code == 200
    new_headers = {"Authorization": f"Bearer {res.json()['access_token']}"}
    assert client.get("/admin/draft", headers=headers).status_code == 401
    assert client.get("/admin/draft", headers=new_headers).status_code == 200

    assert client.post("/auth/logout", headers=new_headers).status_code == 204
    assert client.get("/admin/draft", headers=new_headers).status_code == 401
    assert client.get("/auth/session", headers=new_headers).json()["state"] == "anonymous"


def test_dashboard_stats(client) -> None:
    client.post("/leads", json={"name": "Ada", "email": "ada@example.com", "message": "Logo please"})
    headers = _login(client)
    config = client.get("/site/config").json()

    stats = client.get("/admin/stats", headers=headers).json()

    assert stats == {
        "totalLeads": 1,
        "projectsLive": len(config["projects"]),
        "servicesOffered": len(config["services"]),
    }
    assert client.get("/admin/stats").status_code == 401


def test_deleting_unknown_project_is_not_found(client) -> None:
    headers = _login(client)
    assert client.delete("/admin/projects/missing", headers=headers).status_code == 404
