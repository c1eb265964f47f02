# backend/app/api/deps_auth.py

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import Forbidden
from app.core.security import decode_token
from app.services.policy import Operation, Principal, decide, Decision
from app.services.user_store import SqlUserStore, UserStore

logger = logging.getLogger(__name__)

# auto_error=False: a missing header must be a 401 with our own body, not FastAPI's default
bearer_scheme = HTTPBearer(auto_error=False)


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return SqlUserStore(db)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    store: UserStore = Depends(get_user_store),
) -> Principal:
    cred_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None or not credentials.credentials:
        raise cred_exc

    try:
        payload = decode_token(credentials.credentials)
    except ValueError:
        logger.warning("rejected bearer token: invalid or expired")
        raise cred_exc

    sub = payload.get("sub")
    if not sub:
        raise cred_exc

    # sub is the user id; the role always comes from the store, never the token
    user = store.get_by_id(str(sub))
    if not user or user.archived_at is not None:
        logger.warning("rejected bearer token: account %s unavailable", sub)
        raise cred_exc

    return Principal(id=user.id, role=user.role)


def authorize(principal: Optional[Principal], operation: Operation, target_id: Optional[str] = None) -> None:
    if decide(principal, operation, target_id) is Decision.DENY:
        logger.warning(
            "denied %s on %s for principal %s",
            operation.value,
            target_id or "*",
            principal.id if principal else "anonymous",
        )
        raise Forbidden()
