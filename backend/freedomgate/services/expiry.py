import logging
from datetime import datetime
from typing import Optional
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from freedomgate.core.timeutil import utcnow
from freedomgate.models.subscription import Subscription, SubscriptionStatus

logger = logging.getLogger(__name__)


async def expire_subscriptions(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Mark every active subscription whose end date has passed as expired.

    Returns the number of rows updated; a second run right after returns 0.
    """
    now = now or utcnow()
    result = await db.execute(
        update(Subscription)
        .where(
            Subscription.status == SubscriptionStatus.active,
            Subscription.end_date < now,
        )
        .values(status=SubscriptionStatus.expired, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0


async def run_expiry_sweep(sessionmaker: async_sessionmaker) -> int:
    """Scheduler entrypoint: sweep in a fresh session."""
    async with sessionmaker() as db:
        count = await expire_subscriptions(db)
    if count:
        logger.info("Expiry sweep marked %d subscriptions expired", count)
    return count
