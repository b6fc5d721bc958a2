"""Back-office mutations on users, subscriptions and transactions.

These are unconditional single-row writes: an admin may activate a
subscription whose end date has passed, or cancel one still referenced by a
completed transaction. Only ``approve_transaction`` touches two rows, and it
does so in one database transaction.
"""
import logging
from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from freedomgate.core.timeutil import utcnow
from freedomgate.models import User, Subscription, SubscriptionStatus, Transaction, TransactionStatus
from freedomgate.schemas.admin import UserUpdateData
from freedomgate.services.exceptions import InvalidRequest, RecordNotFound

logger = logging.getLogger(__name__)

USER_ACTIONS = ("verify", "unverify", "update")
SUBSCRIPTION_ACTIONS = ("updateStatus", "updatePlan", "cancel")
TRANSACTION_ACTIONS = ("updateStatus", "updateHash", "approve", "reject")

ACTIVE_CONFLICT = "User already has an active subscription"


async def _commit(db: AsyncSession) -> None:
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise


async def load_subscription(db: AsyncSession, subscription_id: int) -> Optional[Subscription]:
    return await db.scalar(
        select(Subscription)
        .options(selectinload(Subscription.user))
        .where(Subscription.id == subscription_id)
        .execution_options(populate_existing=True)
    )


async def load_transaction(db: AsyncSession, transaction_id: int) -> Optional[Transaction]:
    return await db.scalar(
        select(Transaction)
        .options(selectinload(Transaction.user), selectinload(Transaction.subscription))
        .where(Transaction.id == transaction_id)
        .execution_options(populate_existing=True)
    )


# ── Users ─────────────────────────────────────────────────────────────

async def apply_user_action(
    db: AsyncSession, user_id: int, action: str, data: Optional[UserUpdateData] = None,
) -> User:
    if action not in USER_ACTIONS:
        raise InvalidRequest("Invalid action")
    user = await db.get(User, user_id)
    if not user:
        raise RecordNotFound("User not found")

    if action == "verify":
        user.is_verified = True
    elif action == "unverify":
        user.is_verified = False
    else:
        if data is None:
            raise InvalidRequest("Missing update data")
        for k, v in data.model_dump(exclude_none=True).items():
            setattr(user, k, v)

    try:
        await _commit(db)
    except IntegrityError:
        raise InvalidRequest("Email is already in use")
    logger.info("Admin action %s on user %s", action, user_id)
    return user


# ── Subscriptions ─────────────────────────────────────────────────────

async def apply_subscription_action(
    db: AsyncSession,
    subscription_id: int,
    action: str,
    new_status: Optional[str] = None,
    new_plan: Optional[str] = None,
) -> Subscription:
    if action not in SUBSCRIPTION_ACTIONS:
        raise InvalidRequest("Invalid action")
    sub = await db.get(Subscription, subscription_id)
    if not sub:
        raise RecordNotFound("Subscription not found")

    if action == "updateStatus":
        if new_status not in SubscriptionStatus.ALL:
            raise InvalidRequest("Invalid status")
        sub.status = new_status
    elif action == "updatePlan":
        # plan ids are not checked against the catalog
        if not new_plan:
            raise InvalidRequest("Missing plan")
        sub.plan_id = new_plan
    else:
        sub.status = SubscriptionStatus.cancelled
        sub.end_date = utcnow()

    try:
        await _commit(db)
    except IntegrityError:
        raise InvalidRequest(ACTIVE_CONFLICT)
    logger.info("Admin action %s on subscription %s", action, subscription_id)
    return await load_subscription(db, subscription_id)


# ── Transactions ──────────────────────────────────────────────────────

async def approve_transaction(db: AsyncSession, transaction_id: int) -> Transaction:
    """Mark the transaction completed and activate its linked subscription.

    Subscription dates are left as they are.
    """
    txn = await db.get(Transaction, transaction_id)
    if not txn:
        raise RecordNotFound("Transaction not found")

    txn.status = TransactionStatus.completed
    if txn.subscription_id is not None:
        sub = await db.get(Subscription, txn.subscription_id)
        if sub:
            sub.status = SubscriptionStatus.active
    try:
        await _commit(db)
    except IntegrityError:
        raise InvalidRequest(ACTIVE_CONFLICT)
    return txn


async def apply_transaction_action(
    db: AsyncSession,
    transaction_id: int,
    action: str,
    new_status: Optional[str] = None,
    transaction_hash: Optional[str] = None,
) -> Transaction:
    if action not in TRANSACTION_ACTIONS:
        raise InvalidRequest("Invalid action")

    if action == "approve":
        await approve_transaction(db, transaction_id)
    else:
        txn = await db.get(Transaction, transaction_id)
        if not txn:
            raise RecordNotFound("Transaction not found")
        if action == "updateStatus":
            if new_status not in TransactionStatus.ALL:
                raise InvalidRequest("Invalid status")
            txn.status = new_status
        elif action == "updateHash":
            txn.transaction_hash = transaction_hash
        else:
            txn.status = TransactionStatus.failed
        await _commit(db)

    logger.info("Admin action %s on transaction %s", action, transaction_id)
    return await load_transaction(db, transaction_id)
