"""
Bearer tokens for the dashboard API

Tokens are issued by the identity service; this backend only needs to read
who is calling, for which tenant, and with which role.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from jose import JWTError, jwt
from typing import Optional, Union
import uuid
import structlog

from salonbook.core.config import get_settings
from salonbook.models.user import UserRole

logger = structlog.get_logger(__name__)
settings = get_settings()


@dataclass(frozen=True)
class TokenClaims:
    user_id: uuid.UUID
    tenant_id: uuid.UUID
    role: UserRole

    def is_owner(self) -> bool:
        return self.role in (UserRole.OWNER, UserRole.ADMIN)

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def create_access_token(
    user_id: uuid.UUID,
    tenant_id: uuid.UUID,
    role: Union[UserRole, str],
    expires_delta: Optional[timedelta] = None
) -> str:
    """Sign a token for a dashboard user of one tenant"""
    issued_at = datetime.utcnow()
    expire = issued_at + (expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES))

    claims = {
        "sub": str(user_id),
        "tenant_id": str(tenant_id),
        "role": UserRole(role).value,
        "exp": expire,
        "iat": issued_at,
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[TokenClaims]:
    """
    Verify a token and read its claims.

    Returns None for a bad signature, an expired token, or claims that do not
    name a user, a tenant and a known role.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

    try:
        return TokenClaims(
            user_id=uuid.UUID(payload["sub"]),
            tenant_id=uuid.UUID(payload["tenant_id"]),
            role=UserRole(payload.get("role", UserRole.STAFF.value)),
        )
    except (KeyError, TypeError, ValueError):
        logger.warning("Rejected token with malformed claims")
        return None
