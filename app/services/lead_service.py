"""
Waitlist (email lead) capture
"""
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.config import settings
from app.logging_config import logger
from app.models import EmailLead
from app.services.rate_limiter import RateLimiter
from app.services.validation import sanitize_html


EMAIL_SUBMISSION_OPERATION = "email_submission"
DEFAULT_SOURCE = "landing_page"
MAX_SOURCE_LENGTH = 50


class DuplicateLeadError(Exception):
    """Raised when the email is already on the waitlist"""


def clean_source(source: Optional[str]) -> str:
    """Sanitize and bound the signup source label"""
    if not source or not source.strip():
        return DEFAULT_SOURCE
    return sanitize_html(source.strip())[:MAX_SOURCE_LENGTH]


class LeadService:
    """Adds emails to the waitlist"""

    def __init__(self, rate_limiter: RateLimiter, submission_limit: Optional[int] = None):
        self.rate_limiter = rate_limiter
        self.submission_limit = submission_limit or settings.email_submission_rate_limit

    async def submit(self, session: AsyncSession, email: str, source: Optional[str] = None) -> EmailLead:
        """
        Store a waitlist signup

        Args:
            session: Database session
            email: Validated email address
            source: Where the signup came from

        Returns:
            The stored EmailLead

        Raises:
            RateLimitExceeded: If the email submitted too often in the window
            DuplicateLeadError: If the email is already on the waitlist
        """
        email = email.lower()
        await self.rate_limiter.check(EMAIL_SUBMISSION_OPERATION, email, self.submission_limit)

        existing = await session.execute(select(EmailLead.id).where(EmailLead.email == email))
        if existing.first() is not None:
            raise DuplicateLeadError(email)

        lead = EmailLead(email=email, source=clean_source(source))
        try:
            session.add(lead)
            await session.commit()
        except IntegrityError as e:
            # Concurrent signup with the same email won the insert
            await session.rollback()
            raise DuplicateLeadError(email) from e

        logger.info(f"Waitlist signup stored from {lead.source}")
        return lead
