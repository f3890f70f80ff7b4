"""
Quota evaluation for free-tier idea generation.

Free users may generate a limited number of ideas per trailing hour and per
calendar day. Subscribers are never metered.
"""
import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.config import settings
from app.errors import QuotaCheckError
from app.logging_config import logger
from app.models import GeneratedIdea


HOURLY = "hourly"
DAILY = "daily"


@dataclass
class QuotaStatus:
    can_generate: bool
    remaining: Union[int, float]
    limit_kind: Optional[str]
    has_active_subscription: bool = False
    hourly_remaining: Union[int, float] = math.inf
    daily_remaining: Union[int, float] = math.inf

    @property
    def is_unlimited(self) -> bool:
        return self.remaining == math.inf


def start_of_local_day(now_utc: datetime) -> datetime:
    """
    Midnight of the evaluating process's local day, as naive UTC.

    Args:
        now_utc: Current time as naive UTC

    Returns:
        Naive UTC datetime comparable with stored created_at values
    """
    local_now = now_utc.replace(tzinfo=timezone.utc).astimezone()
    # Naive local midnight takes its own UTC offset, which differs from now on DST change days
    local_midnight = datetime.combine(local_now.date(), time.min).astimezone()
    return local_midnight.astimezone(timezone.utc).replace(tzinfo=None)


class QuotaEvaluator:
    """Computes whether a caller may generate another idea now"""

    def __init__(self, hourly_limit: Optional[int] = None, daily_limit: Optional[int] = None):
        self.hourly_limit = hourly_limit if hourly_limit is not None else settings.hourly_idea_limit
        self.daily_limit = daily_limit if daily_limit is not None else settings.daily_idea_limit

    async def count_ideas_since(self, session: AsyncSession, email: str, since: datetime) -> int:
        """
        Count ideas generated for an email at or after a point in time

        Raises:
            QuotaCheckError: If the count query fails
        """
        try:
            result = await session.execute(
                select(func.count())
                .select_from(GeneratedIdea)
                .where(GeneratedIdea.email == email)
                .where(GeneratedIdea.created_at >= since)
            )
            return int(result.scalar_one())
        except Exception as e:
            logger.error(f"Usage count failed for {email}: {str(e)}")
            raise QuotaCheckError() from e

    async def evaluate(
        self,
        session: AsyncSession,
        email: str,
        has_active_subscription: bool,
        now: Optional[datetime] = None,
    ) -> QuotaStatus:
        """
        Evaluate the caller's quota

        Args:
            session: Database session
            email: Caller's email
            has_active_subscription: Whether the caller pays for premium
            now: Current naive UTC time (defaults to the clock)

        Returns:
            QuotaStatus describing what the caller may do

        Raises:
            QuotaCheckError: If usage cannot be counted
        """
        if has_active_subscription:
            return QuotaStatus(
                can_generate=True,
                remaining=math.inf,
                limit_kind=None,
                has_active_subscription=True,
            )

        now = now or datetime.utcnow()
        hourly_used = await self.count_ideas_since(session, email, now - timedelta(hours=1))
        daily_used = await self.count_ideas_since(session, email, start_of_local_day(now))

        hourly_remaining = max(0, self.hourly_limit - hourly_used)
        daily_remaining = max(0, self.daily_limit - daily_used)

        if hourly_remaining == 0:
            limit_kind = HOURLY
        elif daily_remaining == 0:
            limit_kind = DAILY
        else:
            limit_kind = None

        status = QuotaStatus(
            can_generate=hourly_remaining > 0 and daily_remaining > 0,
            remaining=min(hourly_remaining, daily_remaining),
            limit_kind=limit_kind,
            has_active_subscription=False,
            hourly_remaining=hourly_remaining,
            daily_remaining=daily_remaining,
        )

        logger.debug(
            f"Quota for {email}: hourly {hourly_used}/{self.hourly_limit}, "
            f"daily {daily_used}/{self.daily_limit}, can_generate={status.can_generate}"
        )
        return status

    def limit_message(self, status: QuotaStatus) -> str:
        """Human readable remediation for a blocked caller"""
        tiers = (
            f"Free users can generate up to {self.hourly_limit} ideas per hour "
            f"and {self.daily_limit} ideas per day."
        )
        if status.limit_kind == HOURLY:
            return (
                f"You have reached your hourly limit of {self.hourly_limit} ideas. {tiers} "
                "Upgrade to Pro for unlimited generations!"
            )
        if status.limit_kind == DAILY:
            return (
                f"You have reached your daily limit of {self.daily_limit} ideas. {tiers} "
                "Upgrade to Pro for unlimited generations!"
            )
        return "You have reached your generation limit. Upgrade to Pro for unlimited idea generations!"


def get_quota_evaluator() -> QuotaEvaluator:
    """Dependency returning a quota evaluator using the configured limits"""
    return QuotaEvaluator()
