from datetime import timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from freedomgate.core.timeutil import utcnow

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)

USER_KIND = "user"
ADMIN_KIND = "admin"


def hash_password(password: str) -> str:
    if len(password.encode("utf-8")) > 72:
        raise ValueError("Password too long for bcrypt (max 72 bytes)")
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # malformed hash or oversize input
        return False


class TokenService:
    """Issues and verifies the signed identity tokens for users and admins.

    Both token kinds share one secret. Each carries a ``kind`` claim and the
    verifier for one kind rejects the other, whichever cookie it arrived in.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_days: int = 7):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.lifetime = timedelta(days=expire_days)

    @property
    def max_age_seconds(self) -> int:
        return int(self.lifetime.total_seconds())

    def _encode(self, claims: dict) -> str:
        now = utcnow()
        payload = {**claims, "iat": int(now.timestamp()), "exp": now + self.lifetime}
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def _decode(self, token: str, kind: str) -> Optional[dict]:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        if payload.get("kind") != kind:
            return None
        return payload

    def create_user_token(self, user_id: int, email: str, name: str) -> str:
        return self._encode({"sub": str(user_id), "email": email, "name": name, "kind": USER_KIND})

    def create_admin_token(self, admin_id: int, email: str, name: str, role: str) -> str:
        return self._encode({
            "sub": str(admin_id), "email": email, "name": name, "role": role, "kind": ADMIN_KIND,
        })

    def verify_user_token(self, token: str) -> Optional[dict]:
        """Return ``{"user_id", "email", "name"}`` or None."""
        payload = self._decode(token, USER_KIND)
        if payload is None:
            return None
        try:
            return {"user_id": int(payload["sub"]), "email": payload["email"], "name": payload["name"]}
        except (KeyError, TypeError, ValueError):
            return None

    def verify_admin_token(self, token: str) -> Optional[dict]:
        """Return ``{"admin_id", "email", "name", "role"}`` or None."""
        payload = self._decode(token, ADMIN_KIND)
        if payload is None:
            return None
        try:
            return {
                "admin_id": int(payload["sub"]),
                "email": payload["email"],
                "name": payload["name"],
                "role": payload["role"],
            }
        except (KeyError, TypeError, ValueError):
            return None
