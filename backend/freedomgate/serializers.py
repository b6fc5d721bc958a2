"""JSON shapes returned by the API (camelCase keys on the wire)."""
from typing import Optional
from freedomgate.catalog import plan_summary
from freedomgate.core.timeutil import isoformat
from freedomgate.models import User, AdminUser, Subscription, Transaction


def _money(value) -> float:
    return float(value) if value is not None else 0.0


def user_dict(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "isVerified": user.is_verified,
        "language": user.language,
        "createdAt": isoformat(user.created_at),
        "updatedAt": isoformat(user.updated_at),
    }


def admin_dict(admin: AdminUser) -> dict:
    return {
        "id": admin.id,
        "name": admin.name,
        "email": admin.email,
        "role": admin.role,
        "isActive": admin.is_active,
        "createdAt": isoformat(admin.created_at),
        "updatedAt": isoformat(admin.updated_at),
    }


def user_ref(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email}


def subscription_dict(sub: Subscription, with_plan: bool = False) -> dict:
    d = {
        "id": sub.id,
        "userId": sub.user_id,
        "planId": sub.plan_id,
        "status": sub.status,
        "startDate": isoformat(sub.start_date),
        "endDate": isoformat(sub.end_date),
        "autoRenew": sub.auto_renew,
        "createdAt": isoformat(sub.created_at),
        "updatedAt": isoformat(sub.updated_at),
    }
    if with_plan:
        d["plan"] = plan_summary(sub.plan_id)
    return d


def subscription_ref(sub: Optional[Subscription]) -> Optional[dict]:
    if sub is None:
        return None
    return {"id": sub.id, "planId": sub.plan_id, "status": sub.status}


def transaction_dict(t: Transaction) -> dict:
    return {
        "id": t.id,
        "userId": t.user_id,
        "subscriptionId": t.subscription_id,
        "amount": _money(t.amount),
        "currency": t.currency,
        "paymentMethod": t.payment_method,
        "walletAddress": t.wallet_address,
        "transactionHash": t.transaction_hash,
        "status": t.status,
        "orderRef": t.order_ref,
        "expiresAt": isoformat(t.expires_at),
        "createdAt": isoformat(t.created_at),
        "updatedAt": isoformat(t.updated_at),
    }
