"""
API routes for waitlist signups
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.errors import RateLimitExceeded
from app.logging_config import logger
from app.schemas import LeadRequest
from app.services.lead_service import DuplicateLeadError, LeadService
from app.services.rate_limiter import RateLimiter, get_rate_limiter

router = APIRouter(prefix="/leads", tags=["leads"])


def get_lead_service(rate_limiter: RateLimiter = Depends(get_rate_limiter)) -> LeadService:
    """Dependency returning the waitlist service"""
    return LeadService(rate_limiter)


@router.post("/")
async def submit_lead(
    lead: LeadRequest,
    db: AsyncSession = Depends(get_db),
    service: LeadService = Depends(get_lead_service),
):
    """Add an email to the waitlist"""
    try:
        await service.submit(db, str(lead.email), lead.source)
        return {"success": True}

    except RateLimitExceeded:
        raise HTTPException(status_code=429, detail="Too many submissions. Please try again in a minute.")
    except DuplicateLeadError:
        raise HTTPException(status_code=409, detail="This email is already on our waitlist")
    except Exception as e:
        logger.error(f"Error storing waitlist signup: {str(e)}")
        raise HTTPException(status_code=500, detail="Error joining the waitlist")
