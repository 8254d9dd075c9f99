"""
FastAPI dependencies: authentication, tenant context and scoping
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session
from typing import Iterator
import structlog

from salonbook.core.auth import TokenClaims, decode_access_token
from salonbook.core.database import get_session
from salonbook.core.exceptions import TenantSuspended
from salonbook.core.tenancy import TenantContext, TenantScope
from salonbook.models.tenant import Tenant

logger = structlog.get_logger(__name__)
security = HTTPBearer()


def get_token_claims(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenClaims:
    """Decode the bearer token or reject the request"""
    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return claims


def get_tenant_context(
    claims: TokenClaims = Depends(get_token_claims),
    session: Session = Depends(get_session),
) -> Iterator[TenantContext]:
    """Request-scoped tenant context, cleared when the request ends"""
    tenant = session.get(Tenant, claims.tenant_id)
    if tenant is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown tenant",
        )
    if tenant.is_suspended():
        logger.warning(f"Rejected request for suspended tenant {tenant.id}")
        raise TenantSuspended()

    context = TenantContext()
    context.set_tenant(tenant)
    try:
        yield context
    finally:
        context.clear()


def get_tenant_scope(context: TenantContext = Depends(get_tenant_context)) -> TenantScope:
    return TenantScope(context)


def require_owner(claims: TokenClaims = Depends(get_token_claims)) -> TokenClaims:
    """Billing and settings endpoints are owner-only"""
    if not claims.is_owner():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the account owner can perform this action",
        )
    return claims


def require_admin(claims: TokenClaims = Depends(get_token_claims)) -> TokenClaims:
    if not claims.is_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Platform admin access required",
        )
    return claims
