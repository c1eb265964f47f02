# backend/app/api/user_routes.py

import logging
from datetime import datetime
from typing import Any, List, Optional, Type

from fastapi import APIRouter, Body, Depends, Response, status
from pydantic import BaseModel, StrictInt, ValidationError

from app.api.deps_auth import authorize, get_current_principal, get_user_store
from app.core.config import get_settings
from app.core.errors import FieldError, NotFound, ValidationFailed
from app.core.security import hash_password
from app.models.user import Role, User as UserModel
from app.services.policy import Operation, Principal
from app.services.user_store import UserStore
from app.services.validation import CREATE_USER_RULES, UPDATE_USER_RULES, validate

logger = logging.getLogger(__name__)

router = APIRouter()

# ---------- SCHEMAS ----------

class UserOut(BaseModel):
    # sanitized view: everything persisted except password_hash
    id: str
    username: str
    name: str
    role_id: int
    archived_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# every field optional here: "required" is enforced by the rule pipeline so
# a missing field yields a {field, message} entry instead of a type error
class UserCreate(BaseModel):
    username: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None
    role_id: Optional[StrictInt] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None
    role_id: Optional[StrictInt] = None


def sanitize(u: UserModel) -> UserOut:
    return UserOut.model_validate(u)

# ---------- VALIDATION DEPS (run before authentication) ----------

# The body arrives untyped so that shape errors (wrong JSON type, non-object
# body) and rule errors both surface as ValidationFailed here, before the
# authentication dependency runs.
def _parse_body(schema: Type[BaseModel], rules, body: Any):
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise ValidationFailed([FieldError(field="body", message="body must be a JSON object")])

    try:
        payload = schema.model_validate(body)
    except ValidationError as e:
        raise ValidationFailed(
            [FieldError(field=".".join(str(p) for p in err["loc"]) or "body", message=err["msg"]) for err in e.errors()]
        ) from e

    errors = validate(rules, payload.model_dump(exclude_unset=True))
    if errors:
        raise ValidationFailed(errors)
    return payload


def validated_create(body: Any = Body(None)) -> UserCreate:
    return _parse_body(UserCreate, CREATE_USER_RULES, body)


def validated_update(body: Any = Body(None)) -> UserUpdate:
    return _parse_body(UserUpdate, UPDATE_USER_RULES, body)

# ---------- ROUTES ----------

@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate = Depends(validated_create),
    store: UserStore = Depends(get_user_store),
):
    # open to anonymous callers
    authorize(None, Operation.CREATE)

    role = Role.USER
    if payload.role_id is not None:
        if get_settings().allow_client_role_assignment:
            role = Role(payload.role_id)
        else:
            logger.warning("ignoring client-supplied role_id=%s on public create", payload.role_id)

    u = store.create(
        username=payload.username.strip(),
        name=payload.name.strip(),
        password_hash=hash_password(payload.password),
        role=role,
    )
    logger.info("user created id=%s role=%s", u.id, role.name)
    return sanitize(u)


@router.get("/users", response_model=List[UserOut])
def list_users(
    principal: Principal = Depends(get_current_principal),
    store: UserStore = Depends(get_user_store),
):
    authorize(principal, Operation.LIST)
    return [sanitize(u) for u in store.list_all()]


@router.get("/users/{user_id}", response_model=UserOut)
def get_user(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    store: UserStore = Depends(get_user_store),
):
    authorize(principal, Operation.READ, user_id)

    # archived rows are still readable
    u = store.get_by_id(user_id)
    if not u:
        raise NotFound()
    return sanitize(u)


@router.patch("/users/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    payload: UserUpdate = Depends(validated_update),
    principal: Principal = Depends(get_current_principal),
    store: UserStore = Depends(get_user_store),
):
    authorize(principal, Operation.UPDATE, user_id)

    changes = payload.model_dump(exclude_unset=True)

    if "role_id" in changes and Role(changes["role_id"]) != principal.role:
        authorize(principal, Operation.CHANGE_ROLE, user_id)

    u = store.get_by_id(user_id)
    if not u or u.archived_at is not None:
        raise NotFound()

    updates = {}
    if "name" in changes:
        updates["name"] = changes["name"].strip()
    if "password" in changes:
        updates["password_hash"] = hash_password(changes["password"])
    if "role_id" in changes:
        updates["role_id"] = int(Role(changes["role_id"]))

    u = store.update(user_id, updates)
    if not u:
        # removed between the read and the write
        raise NotFound()

    logger.info("user updated id=%s fields=%s by=%s", user_id, sorted(updates), principal.id)
    return sanitize(u)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    store: UserStore = Depends(get_user_store),
):
    authorize(principal, Operation.DELETE, user_id)

    # hard delete: no archived_at is recorded
    if not store.delete(user_id):
        raise NotFound()

    logger.info("user deleted id=%s by=%s", user_id, principal.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
