from typing import Optional
from fastapi import Cookie, Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from freedomgate.config import Settings
from freedomgate.database import get_db
from freedomgate.models.user import User
from freedomgate.models.admin import AdminUser
from freedomgate.core.security import TokenService

USER_COOKIE = "auth-token"
ADMIN_COOKIE = "admin-token"

bearer_optional = HTTPBearer(auto_error=False)


def app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


def _pick_token(credentials: Optional[HTTPAuthorizationCredentials], cookie: Optional[str]) -> Optional[str]:
    # Authorization header wins over the cookie
    if credentials and credentials.credentials:
        return credentials.credentials
    return cookie or None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_optional),
    auth_token: Optional[str] = Cookie(default=None, alias=USER_COOKIE),
    tokens: TokenService = Depends(get_tokens),
    db: AsyncSession = Depends(get_db),
) -> User:
    token = _pick_token(credentials, auth_token)
    if not token:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Unauthorized")
    claims = tokens.verify_user_token(token)
    if not claims:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    user = await db.get(User, claims["user_id"])
    if not user:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")
    return user


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_optional),
    admin_token: Optional[str] = Cookie(default=None, alias=ADMIN_COOKIE),
    tokens: TokenService = Depends(get_tokens),
    db: AsyncSession = Depends(get_db),
) -> AdminUser:
    token = _pick_token(credentials, admin_token)
    if not token:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Unauthorized")
    claims = tokens.verify_admin_token(token)
    if not claims:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    admin = await db.get(AdminUser, claims["admin_id"])
    if not admin or not admin.is_active:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Admin not found or inactive")
    return admin
