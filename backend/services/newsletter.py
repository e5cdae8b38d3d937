"""
Newsletter subscription service.

Only the subscriber list is managed here; sending mail is somebody else's job.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFoundError
from infrastructure.database.models.activity import ActivityAction, EntityType
from infrastructure.database.models.newsletter import NewsletterSubscriber
from services.activity_log import ActivityLogService

logger = logging.getLogger(__name__)


def _new_token() -> str:
    return secrets.token_urlsafe(32)


class NewsletterService:
    def __init__(self, db: AsyncSession, ip_address: Optional[str] = None):
        self.db = db
        self.activity = ActivityLogService(db, ip_address=ip_address)

    async def _by_email(self, email: str) -> Optional[NewsletterSubscriber]:
        result = await self.db.execute(
            select(NewsletterSubscriber).where(NewsletterSubscriber.email == email)
        )
        return result.scalar_one_or_none()

    async def subscribe(
        self, email: str, name: Optional[str] = None
    ) -> Tuple[NewsletterSubscriber, str]:
        """
        Subscribe an address.

        Returns the subscriber and one of ``"created"``, ``"reactivated"`` or
        ``"already_subscribed"``.  Reactivation issues a fresh unsubscribe token.
        """
        email = email.strip().lower()
        existing = await self._by_email(email)

        if existing and existing.is_active:
            return existing, "already_subscribed"

        if existing:
            existing.is_active = True
            existing.name = name or existing.name
            existing.subscribed_at = datetime.now(timezone.utc)
            existing.unsubscribed_at = None
            existing.unsubscribe_token = _new_token()
            subscriber, outcome = existing, "reactivated"
        else:
            subscriber = NewsletterSubscriber(
                email=email,
                name=name,
                unsubscribe_token=_new_token(),
            )
            self.db.add(subscriber)
            outcome = "created"

        await self.db.flush()
        self.activity.log(
            ActivityAction.SUBSCRIBE,
            EntityType.SUBSCRIBER,
            entity_id=subscriber.id,
            details={"outcome": outcome},
        )
        await self.db.flush()
        return subscriber, outcome

    async def unsubscribe(self, token: str) -> NewsletterSubscriber:
        result = await self.db.execute(
            select(NewsletterSubscriber).where(NewsletterSubscriber.unsubscribe_token == token)
        )
        subscriber = result.scalar_one_or_none()
        if not subscriber:
            raise NotFoundError("Subscription")

        if subscriber.is_active:
            subscriber.is_active = False
            subscriber.unsubscribed_at = datetime.now(timezone.utc)
            self.activity.log(
                ActivityAction.UNSUBSCRIBE,
                EntityType.SUBSCRIBER,
                entity_id=subscriber.id,
            )
            await self.db.flush()
        return subscriber

    async def list_subscribers(
        self,
        active_only: bool = False,
        page: int = 1,
        page_size: int = 50,
    ) -> Tuple[List[NewsletterSubscriber], int]:
        conditions = [NewsletterSubscriber.is_active.is_(True)] if active_only else []

        total_result = await self.db.execute(
            select(func.count(NewsletterSubscriber.id)).where(*conditions)
        )
        total = total_result.scalar() or 0

        result = await self.db.execute(
            select(NewsletterSubscriber)
            .where(*conditions)
            .order_by(NewsletterSubscriber.subscribed_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total

    async def delete(self, subscriber_id: str, actor_id: Optional[str]) -> None:
        subscriber = await self.db.get(NewsletterSubscriber, subscriber_id)
        if not subscriber:
            raise NotFoundError("Subscriber", subscriber_id)
        self.activity.log(
            ActivityAction.DELETE,
            EntityType.SUBSCRIBER,
            entity_id=subscriber.id,
            user_id=actor_id,
        )
        await self.db.delete(subscriber)
        await self.db.flush()
        logger.info("Subscriber %s removed", subscriber_id)
