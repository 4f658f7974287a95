"""Caller identity from upstream auth headers.

The API sits behind a gateway that validates the caller's token and
forwards its claims as headers:

- x-user-sub: tenant id (required)
- x-user-role: "tenant" or "admin" (defaults to tenant)
- x-user-email: address for booking notifications (optional)

These headers are trusted because clients cannot reach the API directly.
"""

import logging

from fastapi import HTTPException, Request
from starlette.status import HTTP_401_UNAUTHORIZED

from rental_core.models import Principal, UserRole

logger = logging.getLogger(__name__)


def _claims_from_event(request: Request) -> dict[str, str]:
    """Authorizer claims when running under Lambda (REST API authorizer)."""
    event = request.scope.get("aws.event", {})
    return event.get("requestContext", {}).get("authorizer", {}).get("claims", {})


def get_principal(request: Request) -> Principal:
    """Resolve the authenticated principal for a request.

    Raises:
        HTTPException: 401 if the caller is not authenticated
    """
    claims = _claims_from_event(request)
    tenant_id = request.headers.get("x-user-sub") or claims.get("sub")
    if not tenant_id:
        logger.warning("auth_principal_missing", extra={"path": request.url.path})
        raise HTTPException(
            status_code=HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    raw_role = (request.headers.get("x-user-role") or claims.get("custom:role") or "").lower()
    role = UserRole.ADMIN if raw_role == UserRole.ADMIN.value else UserRole.TENANT

    return Principal(
        tenant_id=tenant_id,
        role=role,
        email=request.headers.get("x-user-email") or claims.get("email"),
    )
