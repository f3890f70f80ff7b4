"""
API routes for the caller's dashboard summary
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthenticatedUser, get_current_user
from app.database import get_db
from app.errors import QuotaCheckError
from app.logging_config import logger
from app.services.library_service import LibraryService, get_library_service
from app.services.quota_service import QuotaEvaluator, get_quota_evaluator
from app.services.subscription_service import SubscriptionProvider, get_subscription_provider
from app.services.view_cache import DASHBOARD_VIEW, ViewCache, get_view_cache

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
async def get_dashboard(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    library: LibraryService = Depends(get_library_service),
    quota_evaluator: QuotaEvaluator = Depends(get_quota_evaluator),
    subscriptions: SubscriptionProvider = Depends(get_subscription_provider),
    cache: ViewCache = Depends(get_view_cache),
):
    """Get usage and library statistics for the caller"""
    cached = cache.get(DASHBOARD_VIEW, user.email)
    if cached is not None:
        return cached

    try:
        has_subscription = await subscriptions.has_active_subscription(db, user.id)
        generated_count = await library.count_generated(db, user.email)
        saved_count = await library.count_saved(db, user.email)
        quota = await quota_evaluator.evaluate(db, user.email, has_subscription)

        payload = {
            "email": user.email,
            "has_active_subscription": has_subscription,
            "generated_ideas_count": generated_count,
            "saved_ideas_count": saved_count,
            "has_generated_idea": generated_count > 0,
            "remaining_ideas": "unlimited" if quota.is_unlimited else quota.remaining,
            "limit_type": quota.limit_kind,
        }
        cache.set(DASHBOARD_VIEW, user.email, payload)
        return payload

    except QuotaCheckError:
        raise HTTPException(status_code=503, detail="Usage check failed, please retry")
    except Exception as e:
        logger.error(f"Error fetching dashboard for {user.email}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error fetching dashboard")
