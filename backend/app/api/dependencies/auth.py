# backend/app/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

Bearer credentials are opaque to the booking engine: an injected
``CredentialVerifier`` turns the token into a ``Principal``. The default
verifier rejects everything; deployments override ``get_credential_verifier``
with the identity provider's implementation.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from ...core.exceptions import AuthorizationError
from ...principal import CredentialVerifier, Principal

logger = logging.getLogger(__name__)


def _reject_all(token: str) -> Principal:
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Credential verification is not configured",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_credential_verifier() -> CredentialVerifier:
    """Dependency hook for the bearer credential verifier."""
    return _reject_all


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_principal(
    request: Request,
    verifier: CredentialVerifier = Depends(get_credential_verifier),
) -> Principal:
    """
    Resolve the caller from the Authorization header.

    Raises:
        HTTPException: 401 when no bearer credential is present or it does not verify
    """
    token = _bearer_token(request)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return verifier(token)
    except (ValueError, LookupError) as exc:
        logger.info("Bearer credential rejected", extra={"error": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Allow only operator principals through."""
    if not principal.is_admin:
        raise AuthorizationError(
            "Admin access required",
            details={"actor_id": principal.user_id, "actor_role": principal.role.value},
        )
    return principal
