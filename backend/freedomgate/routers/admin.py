import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from freedomgate.config import Settings
from freedomgate.database import get_db
from freedomgate.core.cookies import set_token_cookie, clear_token_cookie
from freedomgate.core.deps import get_current_admin, app_settings, get_tokens, ADMIN_COOKIE
from freedomgate.core.security import TokenService, hash_password, verify_password
from freedomgate.models.admin import AdminUser
from freedomgate.schemas.admin import (
    AdminLoginRequest, UserActionRequest, SubscriptionActionRequest, TransactionActionRequest,
)
from freedomgate.serializers import (
    admin_dict, user_dict, user_ref, subscription_dict, subscription_ref, transaction_dict,
)
from freedomgate.services.exceptions import ServiceError
from freedomgate.services import admin_actions, listing
from freedomgate.services.listing import PageRequest, UserFilter, SubscriptionFilter, TransactionFilter
from freedomgate.services.stats import dashboard_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> PageRequest:
    return PageRequest(page=page, limit=limit)


# ── Session ───────────────────────────────────────────────────────────

@router.post("/login")
async def login(
    body: AdminLoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
    settings: Settings = Depends(app_settings),
):
    admin = await db.scalar(select(AdminUser).where(AdminUser.email == body.email))
    if not admin or not admin.is_active or not verify_password(body.password, admin.password_hash):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid email or password")

    token = tokens.create_admin_token(admin.id, admin.email, admin.name, admin.role)
    set_token_cookie(response, ADMIN_COOKIE, token, settings, tokens.max_age_seconds)
    logger.info("Admin %s logged in", admin.id)
    return {"success": True, "message": "Login successful", "admin": admin_dict(admin), "token": token}


@router.post("/logout")
async def logout(response: Response, settings: Settings = Depends(app_settings)):
    clear_token_cookie(response, ADMIN_COOKIE, settings)
    return {"success": True, "message": "Logged out"}


@router.get("/me")
async def me(admin: AdminUser = Depends(get_current_admin)):
    return {"success": True, "admin": admin_dict(admin)}


@router.post("/seed")
async def seed(db: AsyncSession = Depends(get_db), settings: Settings = Depends(app_settings)):
    """Create the first superadmin. Refuses once any admin exists."""
    count = await db.scalar(select(func.count(AdminUser.id)))
    if count:
        raise HTTPException(400, "Admin users already exist. This endpoint can only be used once.")

    admin = AdminUser(
        email=settings.DEFAULT_ADMIN_EMAIL.strip().lower(),
        name=settings.DEFAULT_ADMIN_NAME,
        password_hash=hash_password(settings.DEFAULT_ADMIN_PASSWORD),
        role="superadmin",
    )
    db.add(admin)
    await db.commit()
    logger.warning("Seeded default admin %s; change its password", admin.email)
    return {
        "success": True,
        "message": "Default admin created",
        "admin": admin_dict(admin),
        "defaultPassword": settings.DEFAULT_ADMIN_PASSWORD,
    }


# ── Users ─────────────────────────────────────────────────────────────

@router.get("/users")
async def list_users(
    page: PageRequest = Depends(page_params),
    search: str = "",
    status: str = "all",
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        rows, total = await listing.list_users(db, UserFilter.from_query(search, status), page)
    except ServiceError as e:
        raise HTTPException(e.status_code, e.message)
    return {
        "success": True,
        "users": [
            {**user_dict(u), "activeSubscription": subscription_ref(sub), "transactionCount": n}
            for u, sub, n in rows
        ],
        "pagination": page.pagination(total),
    }


@router.patch("/users")
async def update_user(
    body: UserActionRequest,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        user = await admin_actions.apply_user_action(db, body.user_id, body.action, body.data)
    except ServiceError as e:
        raise HTTPException(e.status_code, e.message)
    return {"success": True, "message": "User updated", "user": user_dict(user)}


# ── Subscriptions ─────────────────────────────────────────────────────

@router.get("/subscriptions")
async def list_subscriptions(
    page: PageRequest = Depends(page_params),
    search: str = "",
    status: str = "all",
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        subs, total = await listing.list_subscriptions(db, SubscriptionFilter.from_query(search, status), page)
    except ServiceError as e:
        raise HTTPException(e.status_code, e.message)
    return {
        "success": True,
        "subscriptions": [
            {**subscription_dict(s, with_plan=True), "user": user_ref(s.user)} for s in subs
        ],
        "pagination": page.pagination(total),
    }


@router.patch("/subscriptions")
async def update_subscription(
    body: SubscriptionActionRequest,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        sub = await admin_actions.apply_subscription_action(
            db, body.subscription_id, body.action, new_status=body.new_status, new_plan=body.new_plan,
        )
    except ServiceError as e:
        raise HTTPException(e.status_code, e.message)
    return {
        "success": True,
        "message": "Subscription updated",
        "subscription": {**subscription_dict(sub, with_plan=True), "user": user_ref(sub.user)},
    }


# ── Transactions ──────────────────────────────────────────────────────

@router.get("/transactions")
async def list_transactions(
    page: PageRequest = Depends(page_params),
    search: str = "",
    status: str = "all",
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        txns, total = await listing.list_transactions(db, TransactionFilter.from_query(search, status), page)
    except ServiceError as e:
        raise HTTPException(e.status_code, e.message)
    return {
        "success": True,
        "transactions": [
            {**transaction_dict(t), "user": user_ref(t.user), "subscription": subscription_ref(t.subscription)}
            for t in txns
        ],
        "pagination": page.pagination(total),
    }


@router.patch("/transactions")
async def update_transaction(
    body: TransactionActionRequest,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        txn = await admin_actions.apply_transaction_action(
            db, body.transaction_id, body.action,
            new_status=body.new_status, transaction_hash=body.transaction_hash,
        )
    except ServiceError as e:
        raise HTTPException(e.status_code, e.message)
    return {
        "success": True,
        "message": "Transaction updated",
        "transaction": {
            **transaction_dict(txn),
            "user": user_ref(txn.user),
            "subscription": subscription_ref(txn.subscription),
        },
    }


# ── Dashboard ─────────────────────────────────────────────────────────

@router.get("/dashboard/stats")
async def stats(admin: AdminUser = Depends(get_current_admin), db: AsyncSession = Depends(get_db)):
    return {"success": True, "stats": await dashboard_stats(db)}
