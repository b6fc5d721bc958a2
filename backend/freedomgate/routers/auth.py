import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from freedomgate.config import Settings
from freedomgate.database import get_db
from freedomgate.core.cookies import set_token_cookie, clear_token_cookie
from freedomgate.core.deps import get_current_user, app_settings, get_tokens, USER_COOKIE
from freedomgate.core.security import TokenService, hash_password, verify_password
from freedomgate.models.user import User
from freedomgate.schemas.auth import SignupRequest, LoginRequest, ProfileUpdateRequest
from freedomgate.serializers import user_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

DUPLICATE_EMAIL = "User with this email already exists"


def _issue(response: Response, user: User, tokens: TokenService, settings: Settings) -> str:
    token = tokens.create_user_token(user.id, user.email, user.name)
    set_token_cookie(response, USER_COOKIE, token, settings, tokens.max_age_seconds)
    return token


@router.post("/signup", status_code=201)
async def signup(
    body: SignupRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
    settings: Settings = Depends(app_settings),
):
    existing = await db.scalar(select(User).where(User.email == body.email))
    if existing:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, DUPLICATE_EMAIL)

    user = User(name=body.name.strip(), email=body.email, password_hash=hash_password(body.password))
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # lost a race with a concurrent signup for the same email
        await db.rollback()
        raise HTTPException(status.HTTP_400_BAD_REQUEST, DUPLICATE_EMAIL)
    logger.info("User %s signed up", user.id)

    token = _issue(response, user, tokens, settings)
    return {"success": True, "message": "Account created successfully", "user": user_dict(user), "token": token}


@router.post("/login")
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_tokens),
    settings: Settings = Depends(app_settings),
):
    user = await db.scalar(select(User).where(User.email == body.email))
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid email or password")

    token = _issue(response, user, tokens, settings)
    return {"success": True, "message": "Login successful", "user": user_dict(user), "token": token}


@router.post("/logout")
async def logout(response: Response, settings: Settings = Depends(app_settings)):
    clear_token_cookie(response, USER_COOKIE, settings)
    return {"success": True, "message": "Logged out"}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return {"success": True, "user": user_dict(user)}


@router.patch("/me")
async def update_me(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    for k, v in body.model_dump(exclude_none=True).items():
        setattr(user, k, v)
    await db.commit()
    return {"success": True, "user": user_dict(user)}
