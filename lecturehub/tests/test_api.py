"""
HTTP contract tests

Exercises the FastAPI surface with dependency overrides pointing at the
per-test database. Asserts status codes and error envelopes, not service
internals.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from lecturehub.database import get_db, get_session_factory
from lecturehub.main import app
from lecturehub.routes.auth import create_access_token
from lecturehub.services import module_photo_integration


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def draft_payload(**overrides) -> dict:
    data = {
        "slug": "descriptive-statistics",
        "title": "Descriptive Statistics",
        "description": "Summarising data",
        "discipline": "statistics",
        "concepts": ["mean", "median"],
        "tags": ["stats"],
        "learningOutcomes": ["Compute a mean"],
        "estimatedTime": 30,
        "lessons": [{"slug": "l1", "title": "L1"}, {"slug": "l2", "title": "L2"}],
        "exercises": [{"slug": "e1", "title": "E1"}],
    }
    data.update(overrides)
    return data


def append_payload(target: str, **overrides) -> dict:
    overrides.setdefault("slug", "")
    overrides.setdefault("title", "More Statistics")
    overrides.setdefault("consolidation", {"action": "append-to", "targetModuleSlug": target})
    return draft_payload(**overrides)


PHOTO = {"filename": "board.jpg", "mimeType": "image/jpeg", "base64": "QUJDRA=="}


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


class TestAuth:

    @pytest.mark.asyncio
    async def test_publish_requires_token(self, client):
        response = await client.post("/api/modules/publish", json={"module": draft_payload()})

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "AUTH_REQUIRED"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get(
            "/api/users/me/contributions", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["code"] == "AUTH_INVALID"


class TestPublish:

    @pytest.mark.asyncio
    async def test_publish_with_photo(self, client, user):
        response = await client.post(
            "/api/modules/publish",
            json={"module": draft_payload(), "photos": [PHOTO], "generationContext": {"topic": "stats"}},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["action"] == "create-new"
        assert body["module"]["slug"] == "descriptive-statistics"
        assert body["module"]["photo_groups"] == [body["photo_group"]["id"]]
        assert len(body["photos"]) == 1

        discipline = await client.get("/api/disciplines/statistics")
        assert discipline.json()["module_count"] == 1

    @pytest.mark.asyncio
    async def test_append_to_missing_target(self, client, user):
        response = await client.post(
            "/api/modules/publish",
            json={"module": append_payload("intro-to-stats"), "photos": [PHOTO]},
            headers=auth_headers(user),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "TARGET_NOT_FOUND"
        assert body["details"]["target_module_slug"] == "intro-to-stats"

        modules = await client.get("/api/modules")
        assert modules.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_duplicate_append_conflict(self, client, user):
        headers = auth_headers(user)
        await client.post("/api/modules/publish", json={"module": draft_payload()}, headers=headers)

        addition = {"module": append_payload("descriptive-statistics", lessons=[{"title": "L3"}])}
        first = await client.post("/api/modules/publish", json=addition, headers=headers)
        second = await client.post("/api/modules/publish", json=addition, headers=headers)

        assert first.status_code == 200
        assert first.json()["action"] == "append-to"
        assert second.status_code == 409
        assert second.json()["code"] == "DUPLICATE_APPEND"

    @pytest.mark.asyncio
    async def test_photo_without_content(self, client, user):
        response = await client.post(
            "/api/modules/publish",
            json={"module": draft_payload(), "photos": [{"filename": "empty.jpg"}]},
            headers=auth_headers(user),
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_partial_failure_then_complete(self, client, user, other_user, monkeypatch):
        async def failing_record(*args, **kwargs):
            raise RuntimeError("ledger unavailable")

        monkeypatch.setattr(module_photo_integration, "record_user_contribution", failing_record)
        headers = auth_headers(user)

        response = await client.post(
            "/api/modules/publish",
            json={"module": draft_payload(), "photos": [PHOTO]},
            headers=headers,
        )

        assert response.status_code == 202
        body = response.json()
        assert body["code"] == "PARTIAL_ATTRIBUTION"
        assert body["details"]["failed_step"] == "link"
        assert body["details"]["module"]["slug"] == "descriptive-statistics"
        group_id = body["details"]["photo_group_id"]

        monkeypatch.undo()

        forbidden = await client.post(
            "/api/modules/descriptive-statistics/attribution/complete",
            json={"photoGroupId": group_id},
            headers=auth_headers(other_user),
        )
        assert forbidden.status_code == 403
        assert forbidden.json()["code"] == "PHOTO_GROUP_FORBIDDEN"

        repaired = await client.post(
            "/api/modules/descriptive-statistics/attribution/complete",
            json={"photoGroupId": group_id},
            headers=headers,
        )
        assert repaired.status_code == 200
        assert repaired.json()["module"]["photo_groups"] == [group_id]


class TestModuleRoutes:

    @pytest.mark.asyncio
    async def test_unknown_module(self, client):
        response = await client.get("/api/modules/nope")

        assert response.status_code == 404
        assert response.json()["code"] == "MODULE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_save_draft(self, client, user):
        response = await client.post(
            "/api/modules/drafts", json=draft_payload(draft=True), headers=auth_headers(user)
        )

        assert response.status_code == 201
        assert response.json()["module"]["draft"] is True

        published = await client.get("/api/modules")
        assert published.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_save_draft_rejects_published_flag(self, client, user):
        response = await client.post(
            "/api/modules/drafts", json=draft_payload(draft=False), headers=auth_headers(user)
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_edit_module(self, client, user):
        headers = auth_headers(user)
        await client.post("/api/modules/publish", json={"module": draft_payload()}, headers=headers)

        response = await client.patch(
            "/api/modules/descriptive-statistics",
            json={"discipline": "psychology"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["module"]["discipline"] == "psychology"
        stats = await client.get("/api/disciplines/statistics")
        psych = await client.get("/api/disciplines/psychology")
        assert stats.json()["module_count"] == 0
        assert psych.json()["module_count"] == 1

    @pytest.mark.asyncio
    async def test_delete_requires_admin(self, client, user, admin_user, monkeypatch):
        monkeypatch.setenv("ADMIN_EMAILS", "admin@lecturehub.test")
        await client.post(
            "/api/modules/publish", json={"module": draft_payload()}, headers=auth_headers(user)
        )

        forbidden = await client.delete("/api/modules/descriptive-statistics", headers=auth_headers(user))
        assert forbidden.status_code == 403
        assert forbidden.json()["code"] == "ADMIN_REQUIRED"

        deleted = await client.delete("/api/modules/descriptive-statistics", headers=auth_headers(admin_user))
        assert deleted.status_code == 200

        missing = await client.delete("/api/modules/descriptive-statistics", headers=auth_headers(admin_user))
        assert missing.status_code == 404

        stats = await client.get("/api/disciplines/statistics")
        assert stats.json()["module_count"] == 0

    @pytest.mark.asyncio
    async def test_contributors(self, client, user):
        await client.post(
            "/api/modules/publish",
            json={"module": draft_payload(), "photos": [PHOTO, PHOTO]},
            headers=auth_headers(user),
        )

        response = await client.get("/api/modules/descriptive-statistics/contributors")

        contributors = response.json()["contributors"]
        assert [(c["user_name"], c["photo_count"]) for c in contributors] == [("Ada Lovelace", 2)]


class TestDisciplineRoutes:

    @pytest.mark.asyncio
    async def test_catalog(self, client):
        response = await client.get("/api/disciplines")

        assert response.status_code == 200
        assert response.json()["total"] == 3

    @pytest.mark.asyncio
    async def test_unknown_discipline_context(self, client):
        response = await client.get("/api/disciplines/astrology/context")

        assert response.status_code == 404
        assert response.json()["code"] == "DISCIPLINE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_reconcile_sweep(self, client, user):
        response = await client.post("/api/disciplines/reconcile", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json()["module_counts"] == {
            "computer-science": 0,
            "psychology": 0,
            "statistics": 0,
        }


class TestUserRoutes:

    @pytest.mark.asyncio
    async def test_my_ledger(self, client, user):
        headers = auth_headers(user)
        await client.post(
            "/api/modules/publish",
            json={"module": draft_payload(), "photos": [PHOTO]},
            headers=headers,
        )

        contributions = await client.get("/api/users/me/contributions", headers=headers)
        modules = await client.get("/api/users/me/modules", headers=headers)
        photos = await client.get("/api/users/me/photos", headers=headers)

        assert len(contributions.json()["contributions"]) == 3
        assert [m["slug"] for m in modules.json()["modules"]] == ["descriptive-statistics"]
        assert len(photos.json()["photos"]) == 1

    @pytest.mark.asyncio
    async def test_update_display_name(self, client, user):
        response = await client.put(
            "/api/users/me", json={"displayName": "Countess"}, headers=auth_headers(user)
        )

        assert response.status_code == 200
        assert response.json()["user"]["display_name"] == "Countess"

    @pytest.mark.asyncio
    async def test_recent_photos(self, client, user):
        await client.post(
            "/api/photos/upload",
            json={"title": "Board", "photos": [PHOTO, PHOTO, PHOTO]},
            headers=auth_headers(user),
        )

        response = await client.get("/api/photos/recent", params={"limit": 2})

        assert response.status_code == 200
        assert len(response.json()["photos"]) == 2


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, client, monkeypatch):
        async def ok():
            return True

        monkeypatch.setattr("lecturehub.main.check_db", ok)
        response = await client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_degraded(self, client, monkeypatch):
        async def down():
            return False

        monkeypatch.setattr("lecturehub.main.check_db", down)
        response = await client.get("/healthz")

        assert response.status_code == 503
        assert response.json()["database"] == "unavailable"
