"""
API routes for the caller's idea library
"""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthenticatedUser, get_current_user
from app.database import get_db
from app.logging_config import logger
from app.services.library_service import LibraryService, get_library_service
from app.services.view_cache import (
    LIBRARY_VIEW,
    CacheInvalidator,
    ViewCache,
    get_cache_invalidator,
    get_view_cache,
)

router = APIRouter(prefix="/library", tags=["library"])


@router.get("/")
async def get_library(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    library: LibraryService = Depends(get_library_service),
    cache: ViewCache = Depends(get_view_cache),
):
    """Get the caller's saved ideas with their generated idea details"""
    cached = cache.get(LIBRARY_VIEW, user.email)
    if cached is not None:
        return cached

    try:
        saved_ideas = await library.list_saved_ideas(db, user.email)
        payload = {"saved_ideas": saved_ideas, "total": len(saved_ideas)}
        cache.set(LIBRARY_VIEW, user.email, payload)
        return payload

    except Exception as e:
        logger.error(f"Error fetching library for {user.email}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error fetching library")


@router.put("/{saved_id}/like")
async def toggle_like(
    saved_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    library: LibraryService = Depends(get_library_service),
    invalidator: CacheInvalidator = Depends(get_cache_invalidator),
):
    """Toggle the liked status of a saved idea"""
    try:
        saved = await library.toggle_like(db, user.email, saved_id)

        if not saved:
            raise HTTPException(status_code=404, detail="Saved idea not found")

        invalidator.invalidate_user_views(user.email)

        return {
            "id": str(saved.id),
            "is_liked": saved.is_liked
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error toggling like for {saved_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error updating liked status")


@router.post("/reconcile")
async def reconcile_library(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    library: LibraryService = Depends(get_library_service),
    invalidator: CacheInvalidator = Depends(get_cache_invalidator),
):
    """Restore library entries for generated ideas that are missing one"""
    try:
        created = await library.reconcile(db, user.email)
        if created:
            invalidator.invalidate_user_views(user.email)
        return {"created": created}

    except Exception as e:
        logger.error(f"Error reconciling library for {user.email}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error reconciling library")
