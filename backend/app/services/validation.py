from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Sequence

from app.core.errors import FieldError
from app.models.user import Role

MIN_PASSWORD_LENGTH = 6

Predicate = Callable[[Any], bool]


@dataclass(frozen=True)
class Rule:
    check: Predicate
    message: str


@dataclass(frozen=True)
class FieldRules:
    """Ordered rules for one body field.

    optional: skip the field entirely when the key is absent (an explicit
              null still counts as present).
    trim:     strip surrounding whitespace from strings before checking.
    bail:     stop at the first failing rule for this field.
    """

    field: str
    rules: Sequence[Rule] = ()
    optional: bool = False
    trim: bool = False
    bail: bool = False


def is_present(value: Any) -> bool:
    return value is not None and value != ""


def min_length(n: int) -> Predicate:
    def check(value: Any) -> bool:
        return isinstance(value, str) and len(value) >= n

    return check


def is_role(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value in {r.value for r in Role}


REQUIRED = Rule(is_present, "field is required")
PASSWORD_LENGTH = Rule(
    min_length(MIN_PASSWORD_LENGTH),
    f"password needs to be at least {MIN_PASSWORD_LENGTH} characters long",
)
VALID_ROLE = Rule(is_role, "role_id must be one of " + ", ".join(str(r.value) for r in Role))

CREATE_USER_RULES = (
    FieldRules("username", (REQUIRED,), trim=True),
    FieldRules("password", (REQUIRED, PASSWORD_LENGTH), bail=True),
    FieldRules("name", (REQUIRED,), trim=True),
    FieldRules("role_id", (VALID_ROLE,), optional=True),
)

UPDATE_USER_RULES = (
    FieldRules("name", (Rule(is_present, "field cannot be empty"),), optional=True, trim=True),
    FieldRules("password", (PASSWORD_LENGTH,), optional=True),
    FieldRules("role_id", (VALID_ROLE,), optional=True),
)


def validate(rules: Sequence[FieldRules], body: Mapping[str, Any]) -> List[FieldError]:
    """Run every field's rules against the body; collect failures in declaration order."""
    errors: List[FieldError] = []

    for fr in rules:
        if fr.field not in body and fr.optional:
            continue

        value = body.get(fr.field)
        if fr.trim and isinstance(value, str):
            value = value.strip()

        for rule in fr.rules:
            if rule.check(value):
                continue
            errors.append(FieldError(field=fr.field, message=rule.message))
            if fr.bail:
                break

    return errors
