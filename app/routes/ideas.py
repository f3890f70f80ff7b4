"""
API routes for idea generation and generated ideas
"""
from typing import Optional
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.auth import AuthenticatedUser, get_current_user, get_optional_user
from app.database import get_db
from app.errors import IdeaServiceError
from app.logging_config import logger
from app.models import GeneratedIdea
from app.services.ai_service import AIService, get_ai_service
from app.services.idea_pipeline import IdeaGenerationPipeline
from app.services.idea_writer import IdeaWriter, get_idea_writer
from app.services.market_research import MarketResearchClient, get_market_research_client
from app.services.quota_service import QuotaEvaluator, get_quota_evaluator
from app.services.rate_limiter import RateLimiter, get_rate_limiter
from app.services.subscription_service import SubscriptionProvider, get_subscription_provider
from app.services.view_cache import CacheInvalidator, get_cache_invalidator

router = APIRouter(prefix="/ideas", tags=["ideas"])

STATIC_SERVER_ERROR = '{"error": "Internal server error"}'


def get_pipeline(
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    quota_evaluator: QuotaEvaluator = Depends(get_quota_evaluator),
    subscription_provider: SubscriptionProvider = Depends(get_subscription_provider),
    market_research: MarketResearchClient = Depends(get_market_research_client),
    ai_service: Optional[AIService] = Depends(get_ai_service),
    writer: IdeaWriter = Depends(get_idea_writer),
    invalidator: CacheInvalidator = Depends(get_cache_invalidator),
) -> IdeaGenerationPipeline:
    """Dependency assembling the generation pipeline"""
    return IdeaGenerationPipeline(
        rate_limiter=rate_limiter,
        quota_evaluator=quota_evaluator,
        subscription_provider=subscription_provider,
        market_research=market_research,
        ai_service=ai_service,
        writer=writer,
        invalidator=invalidator,
    )


@router.post("/generate")
async def generate_idea(
    request: Request,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    pipeline: IdeaGenerationPipeline = Depends(get_pipeline),
):
    """Generate a new startup idea for the signed-in user"""
    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    try:
        try:
            payload = await request.json()
        except ValueError:
            # Not JSON; rejected by request validation after the session check
            payload = None

        return await pipeline.generate(user, payload, db)

    except IdeaServiceError as e:
        logger.info(
            f"Idea generation refused with {e.status_code}: {e.error}",
            extra={"request_id": request_id}
        )
        return JSONResponse(status_code=e.status_code, content=e.to_body())
    except Exception as e:
        logger.error(
            f"Unexpected error generating idea: {str(e)}",
            exc_info=True,
            extra={"request_id": request_id}
        )
        try:
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "message": "Something went wrong while generating your idea. Please try again.",
                },
            )
        except Exception:
            return Response(content=STATIC_SERVER_ERROR, media_type="application/json", status_code=500)


@router.get("/generate")
async def generate_idea_wrong_method():
    """Generation only accepts POST"""
    return JSONResponse(status_code=405, content={"error": "Method not allowed"}, headers={"Allow": "POST"})


@router.get("/")
async def get_ideas(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the caller's generated ideas, newest first"""
    try:
        total_result = await db.execute(
            select(func.count()).select_from(GeneratedIdea).where(GeneratedIdea.email == user.email)
        )
        total = int(total_result.scalar_one())

        offset = (page - 1) * limit
        result = await db.execute(
            select(GeneratedIdea)
            .where(GeneratedIdea.email == user.email)
            .order_by(GeneratedIdea.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        ideas = [idea.model_dump() for idea in result.scalars().all()]

        return {
            "ideas": ideas,
            "page": page,
            "limit": limit,
            "total": total
        }

    except Exception as e:
        logger.error(f"Error fetching ideas for {user.email}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error fetching ideas")


@router.get("/{idea_id}")
async def get_idea(
    idea_id: UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get one generated idea owned by the caller"""
    try:
        result = await db.execute(
            select(GeneratedIdea)
            .where(GeneratedIdea.id == idea_id)
            .where(GeneratedIdea.email == user.email)
        )
        idea = result.scalar_one_or_none()

        if not idea:
            raise HTTPException(status_code=404, detail="Idea not found")

        return idea.model_dump()

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching idea {idea_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error fetching idea")
