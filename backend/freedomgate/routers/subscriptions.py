from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from freedomgate.database import get_db
from freedomgate.core.deps import get_current_user
from freedomgate.core.timeutil import isoformat
from freedomgate.models.user import User
from freedomgate.models.subscription import Subscription, SubscriptionStatus
from freedomgate.models.transaction import Transaction
from freedomgate.serializers import subscription_dict
from freedomgate.services.expiry import expire_subscriptions

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])

RECENT_TRANSACTIONS = 10


@router.get("")
async def my_subscription(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    sub = await db.scalar(
        select(Subscription)
        .where(
            Subscription.user_id == user.id,
            Subscription.status.in_([SubscriptionStatus.active, SubscriptionStatus.pending]),
        )
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .limit(1)
    )
    transactions = list(await db.scalars(
        select(Transaction)
        .where(Transaction.user_id == user.id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(RECENT_TRANSACTIONS)
    ))
    return {
        "success": True,
        "subscription": subscription_dict(sub, with_plan=True) if sub else None,
        "transactions": [{
            "id": t.id,
            "amount": float(t.amount),
            "currency": t.currency,
            "paymentMethod": t.payment_method,
            "status": t.status,
            "orderRef": t.order_ref,
            "createdAt": isoformat(t.created_at),
            "transactionHash": t.transaction_hash,
        } for t in transactions],
    }


@router.post("/check-expiry")
async def check_expiry(db: AsyncSession = Depends(get_db)):
    count = await expire_subscriptions(db)
    return {"success": True, "updated": count, "message": f"Updated {count} expired subscriptions"}
