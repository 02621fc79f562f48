import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

from storefront.config import Settings
from storefront.models.user import Role, User

logger = logging.getLogger(__name__)

http_bearer = HTTPBearer(auto_error=False)


class Permission(str, enum.Enum):
    READ = "read"
    WRITE_ADMIN = "write-admin"


# Single source of truth for what each role may do
ROLE_PERMISSIONS = {
    Role.USER: frozenset({Permission.READ}),
    Role.ADMIN: frozenset({Permission.READ, Permission.WRITE_ADMIN}),
}


@dataclass(frozen=True)
class Principal:
    """Identity attached to an authenticated request."""

    id: int
    role: Role

    def can(self, permission: Permission) -> bool:
        return permission in ROLE_PERMISSIONS.get(self.role, frozenset())


# ===== Password helpers =====
def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long password
        return False


# ===== JWT helpers =====
def create_access_token(user: User, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {"sub": str(user.id), "role": Role(user.role).value, "iat": now, "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> Principal:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired", headers={"WWW-Authenticate": "Bearer"})
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token", headers={"WWW-Authenticate": "Bearer"})
    try:
        return Principal(id=int(payload["sub"]), role=Role(payload["role"]))
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token payload", headers={"WWW-Authenticate": "Bearer"})


def get_current_user(request: Request, token: HTTPAuthorizationCredentials = Depends(http_bearer)) -> Principal:
    if not token or not token.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated", headers={"WWW-Authenticate": "Bearer"})
    return decode_access_token(token.credentials, request.app.state.settings)


# Dependency factory for capability checks
def require_permission(permission: Permission):
    def _checker(principal: Principal = Depends(get_current_user)) -> Principal:
        if not principal.can(permission):
            logger.info("User %s (role=%s) denied %s", principal.id, principal.role.value, permission.value)
            raise HTTPException(status_code=403, detail="Admin access required")
        return principal
    return _checker
