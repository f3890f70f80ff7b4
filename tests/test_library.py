"""
Tests for the library service and library, dashboard and waitlist routes
"""
from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from app.models import GeneratedIdea, SavedIdea
from app.services.library_service import LibraryService
from app.services.view_cache import DASHBOARD_VIEW, LIBRARY_VIEW
from conftest import auth_header, generation_body


EMAIL = "founder@example.com"


def generated_idea(title, created_at=None, email=EMAIL):
    return GeneratedIdea(
        email=email,
        title=title,
        description=f"{title} solution",
        market_size="Large",
        target_audience="Everyone",
        revenue_streams=["Subscription"],
        validation_data={"market_trends": [], "competitor_analysis": "None", "demand_indicators": []},
        created_at=created_at or datetime.utcnow(),
    )


def saved_pointer(idea, created_at=None):
    return SavedIdea(
        user_email=idea.email,
        idea_id=idea.id,
        title=idea.title,
        description=idea.description,
        created_at=created_at or idea.created_at,
    )


class TestLibraryService:
    """Test library queries and maintenance"""

    @pytest.fixture
    def library(self):
        return LibraryService()

    @pytest.mark.asyncio
    async def test_list_saved_ideas_newest_first_with_details(self, library, session):
        older = generated_idea("Older", datetime.utcnow() - timedelta(days=1))
        newer = generated_idea("Newer")
        session.add_all([older, newer, saved_pointer(older), saved_pointer(newer)])
        await session.commit()

        entries = await library.list_saved_ideas(session, EMAIL)

        assert [entry["title"] for entry in entries] == ["Newer", "Older"]
        assert entries[0]["generated_idea"]["description"] == "Newer solution"

    @pytest.mark.asyncio
    async def test_dangling_pointer_has_no_details(self, library, session):
        session.add(SavedIdea(user_email=EMAIL, idea_id=uuid4(), title="Gone", description="Deleted idea"))
        await session.commit()

        entries = await library.list_saved_ideas(session, EMAIL)

        assert len(entries) == 1
        assert entries[0]["generated_idea"] is None

    @pytest.mark.asyncio
    async def test_list_is_scoped_to_owner(self, library, session):
        idea = generated_idea("Someone else's", email="other@example.com")
        session.add_all([idea, saved_pointer(idea)])
        await session.commit()

        assert await library.list_saved_ideas(session, EMAIL) == []

    @pytest.mark.asyncio
    async def test_toggle_like(self, library, session):
        idea = generated_idea("Liked")
        pointer = saved_pointer(idea)
        session.add_all([idea, pointer])
        await session.commit()

        first = await library.toggle_like(session, EMAIL, pointer.id)
        assert first.is_liked is True
        second = await library.toggle_like(session, EMAIL, pointer.id)
        assert second.is_liked is False

    @pytest.mark.asyncio
    async def test_toggle_like_of_other_user(self, library, session):
        idea = generated_idea("Private", email="other@example.com")
        pointer = saved_pointer(idea)
        session.add_all([idea, pointer])
        await session.commit()

        assert await library.toggle_like(session, EMAIL, pointer.id) is None

    @pytest.mark.asyncio
    async def test_reconcile_creates_missing_pointers(self, library, session):
        with_pointer = generated_idea("Has pointer")
        without_pointer = generated_idea("Lost pointer")
        session.add_all([with_pointer, without_pointer, saved_pointer(with_pointer)])
        await session.commit()

        assert await library.reconcile(session, EMAIL) == 1
        assert await library.reconcile(session, EMAIL) == 0

        titles = sorted(entry["title"] for entry in await library.list_saved_ideas(session, EMAIL))
        assert titles == ["Has pointer", "Lost pointer"]

    @pytest.mark.asyncio
    async def test_counts(self, library, session):
        first = generated_idea("First")
        second = generated_idea("Second")
        session.add_all([first, second, saved_pointer(first)])
        await session.commit()

        assert await library.count_generated(session, EMAIL) == 2
        assert await library.count_saved(session, EMAIL) == 1


class TestLibraryRoutes:
    """HTTP tests for /library and /dashboard"""

    def test_library_requires_session(self, client):
        assert client.get("/library/").status_code == 401

    def test_library_view_is_cached_until_invalidated(self, client, view_cache):
        assert client.get("/library/", headers=auth_header()).json()["total"] == 0
        assert view_cache.get(LIBRARY_VIEW, EMAIL) is not None

        client.post("/ideas/generate", json=generation_body(), headers=auth_header())

        assert view_cache.get(LIBRARY_VIEW, EMAIL) is None
        assert client.get("/library/", headers=auth_header()).json()["total"] == 1

    def test_toggle_like(self, client):
        client.post("/ideas/generate", json=generation_body(), headers=auth_header())
        saved_id = client.get("/library/", headers=auth_header()).json()["saved_ideas"][0]["id"]

        response = client.put(f"/library/{saved_id}/like", headers=auth_header())

        assert response.status_code == 200
        assert response.json() == {"id": saved_id, "is_liked": True}
        assert client.get("/library/", headers=auth_header()).json()["saved_ideas"][0]["is_liked"] is True

    def test_toggle_like_unknown_entry(self, client):
        response = client.put(f"/library/{uuid4()}/like", headers=auth_header())
        assert response.status_code == 404

    def test_dashboard(self, client, view_cache):
        client.post("/ideas/generate", json=generation_body(), headers=auth_header())

        response = client.get("/dashboard", headers=auth_header())

        assert response.status_code == 200
        assert response.json() == {
            "email": EMAIL,
            "has_active_subscription": False,
            "generated_ideas_count": 1,
            "saved_ideas_count": 1,
            "has_generated_idea": True,
            "remaining_ideas": 11,
            "limit_type": None,
        }
        assert view_cache.get(DASHBOARD_VIEW, EMAIL) is not None

    def test_dashboard_requires_session(self, client):
        assert client.get("/dashboard").status_code == 401


class TestLeadRoutes:
    """HTTP tests for waitlist signups"""

    def test_submit_lead(self, client):
        response = client.post("/leads/", json={"email": "early@example.com", "source": "pricing_page"})

        assert response.status_code == 200
        assert response.json() == {"success": True}

    def test_duplicate_lead(self, client):
        client.post("/leads/", json={"email": "early@example.com"})
        response = client.post("/leads/", json={"email": "Early@example.com"})

        assert response.status_code == 409
        assert "already on our waitlist" in response.json()["detail"]

    def test_invalid_email(self, client):
        response = client.post("/leads/", json={"email": "not-an-email"})
        assert response.status_code == 422

    def test_submission_rate_limit(self, client):
        for attempt in range(5):
            client.post("/leads/", json={"email": "spam@example.com", "source": f"try-{attempt}"})

        response = client.post("/leads/", json={"email": "spam@example.com"})

        assert response.status_code == 429
