import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.user import Role


class Principal(BaseModel):
    """Authenticated caller, resolved once per request."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class Operation(str, enum.Enum):
    CREATE = "create"
    LIST = "list"
    READ = "read"
    UPDATE = "update"
    CHANGE_ROLE = "change_role"
    DELETE = "delete"


class Decision(str, enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


def _allow_if(condition: bool) -> Decision:
    return Decision.ALLOW if condition else Decision.DENY


def decide(
    principal: Optional[Principal],
    operation: Operation,
    target_id: Optional[str] = None,
) -> Decision:
    # account creation is the only anonymous entry point
    if operation is Operation.CREATE:
        return Decision.ALLOW

    if principal is None:
        return Decision.DENY

    if operation in (Operation.LIST, Operation.DELETE, Operation.CHANGE_ROLE):
        return _allow_if(principal.is_admin)

    if operation in (Operation.READ, Operation.UPDATE):
        return _allow_if(principal.is_admin or (target_id is not None and principal.id == target_id))

    raise ValueError(f"unhandled operation: {operation!r}")
