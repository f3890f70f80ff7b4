"""
Unit tests for waitlist capture
"""
import pytest
from sqlmodel import select

from app.errors import RateLimitExceeded
from app.models import EmailLead
from app.services.lead_service import DuplicateLeadError, LeadService, clean_source
from app.services.rate_limiter import InMemoryRateLimiter


class TestLeadService:
    """Test waitlist signups"""

    @pytest.fixture
    def service(self):
        return LeadService(InMemoryRateLimiter(), submission_limit=5)

    @pytest.mark.asyncio
    async def test_submit_stores_lead(self, service, session):
        lead = await service.submit(session, "Early@Example.com", "pricing_page")

        stored = (await session.execute(select(EmailLead))).scalar_one()
        assert stored.id == lead.id
        assert stored.email == "early@example.com"
        assert stored.source == "pricing_page"

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, service, session):
        await service.submit(session, "early@example.com")

        with pytest.raises(DuplicateLeadError):
            await service.submit(session, "early@example.com")

    @pytest.mark.asyncio
    async def test_rate_limited_per_email(self, session):
        service = LeadService(InMemoryRateLimiter(), submission_limit=1)
        await service.submit(session, "early@example.com")

        with pytest.raises(RateLimitExceeded):
            await service.submit(session, "early@example.com")


def test_clean_source():
    assert clean_source(None) == "landing_page"
    assert clean_source("   ") == "landing_page"
    assert clean_source("<b>ad</b>") == "&lt;b&gt;ad&lt;/b&gt;"
    assert len(clean_source("x" * 80)) == 50
