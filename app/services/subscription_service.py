"""
Subscription status lookup
"""
from abc import ABC, abstractmethod

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models import Subscription
from app.logging_config import logger


ACTIVE_STATUS = "active"


class SubscriptionProvider(ABC):
    """Answers whether a user currently holds an active premium subscription"""

    @abstractmethod
    async def has_active_subscription(self, session: AsyncSession, user_id: str) -> bool:
        """Return True if the user has an active subscription"""


class DatabaseSubscriptionProvider(SubscriptionProvider):
    """Reads the subscriptions table mirrored from the billing provider"""

    async def has_active_subscription(self, session: AsyncSession, user_id: str) -> bool:
        if not user_id:
            return False

        try:
            result = await session.execute(
                select(Subscription.id)
                .where(Subscription.user_id == user_id)
                .where(Subscription.status == ACTIVE_STATUS)
                .limit(1)
            )
            return result.first() is not None
        except Exception as e:
            # Unknown status falls back to the free tier so the quota still applies
            logger.warning(f"Subscription lookup failed for user {user_id}, treating as free: {str(e)}")
            await session.rollback()
            return False


subscription_provider = DatabaseSubscriptionProvider()


def get_subscription_provider() -> SubscriptionProvider:
    """Dependency returning the subscription provider"""
    return subscription_provider
