import logging
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from freedomgate.catalog import Plan, DEFAULT_CURRENCY, add_plan_duration
from freedomgate.core.timeutil import utcnow, as_utc
from freedomgate.models.subscription import Subscription, SubscriptionStatus
from freedomgate.models.transaction import Transaction, TransactionStatus
from freedomgate.services.exceptions import PaymentProcessingError

logger = logging.getLogger(__name__)

# Stored on the transaction only; nothing expires payments automatically.
PAYMENT_WINDOW = timedelta(minutes=30)


async def find_active_subscription(db: AsyncSession, user_id: int) -> Optional[Subscription]:
    return await db.scalar(
        select(Subscription)
        .where(Subscription.user_id == user_id, Subscription.status == SubscriptionStatus.active)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .limit(1)
    )


async def complete_payment(
    db: AsyncSession,
    user_id: int,
    plan: Plan,
    payment_method: str,
    wallet_address: str,
    transaction_hash: Optional[str],
    order_ref: str,
    now: Optional[datetime] = None,
) -> tuple[Transaction, Subscription]:
    """Record a completed payment and create or extend the user's subscription.

    All writes happen in one database transaction. An active subscription is
    extended from the later of its end date and ``now`` and switched to the
    purchased plan; otherwise a new active subscription starts at ``now``.
    The transaction row is linked to the resulting subscription. The client's
    hash is stored as given, it is not checked on-chain.

    Any failure (including a duplicate ``order_ref``) rolls everything back
    and raises PaymentProcessingError.
    """
    now = now or utcnow()
    try:
        txn = Transaction(
            user_id=user_id,
            amount=plan.price,
            currency=DEFAULT_CURRENCY,
            payment_method=payment_method,
            wallet_address=wallet_address,
            transaction_hash=transaction_hash,
            status=TransactionStatus.completed,
            order_ref=order_ref,
            expires_at=now + PAYMENT_WINDOW,
        )
        db.add(txn)
        await db.flush()

        subscription = await find_active_subscription(db, user_id)
        if subscription:
            base = max(as_utc(subscription.end_date), now)
            subscription.end_date = add_plan_duration(base, plan.id)
            subscription.plan_id = plan.id
            subscription.status = SubscriptionStatus.active
        else:
            subscription = Subscription(
                user_id=user_id,
                plan_id=plan.id,
                status=SubscriptionStatus.active,
                start_date=now,
                end_date=add_plan_duration(now, plan.id),
                auto_renew=True,
            )
            db.add(subscription)
        await db.flush()

        txn.subscription_id = subscription.id
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.exception("Payment completion failed for user %s order %s", user_id, order_ref)
        raise PaymentProcessingError() from e

    logger.info(
        "Payment %s completed for user %s: subscription %s on plan %s until %s",
        order_ref, user_id, subscription.id, plan.id, subscription.end_date,
    )
    return txn, subscription
