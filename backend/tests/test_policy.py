from __future__ import annotations

import pytest

from app.models.user import Role
from app.services.policy import Decision, Operation, Principal, decide

ALLOW, DENY = Decision.ALLOW, Decision.DENY

user = Principal(id="u-1", role=Role.USER)
admin = Principal(id="a-1", role=Role.ADMIN)


@pytest.mark.parametrize(
    "principal, operation, target, expected",
    [
        (None, Operation.CREATE, None, ALLOW),
        (user, Operation.CREATE, None, ALLOW),
        (user, Operation.LIST, None, DENY),
        (admin, Operation.LIST, None, ALLOW),
        (user, Operation.READ, "u-1", ALLOW),
        (user, Operation.READ, "u-2", DENY),
        (admin, Operation.READ, "u-2", ALLOW),
        (user, Operation.UPDATE, "u-1", ALLOW),
        (user, Operation.UPDATE, "u-2", DENY),
        (admin, Operation.UPDATE, "u-2", ALLOW),
        (user, Operation.CHANGE_ROLE, "u-1", DENY),
        (admin, Operation.CHANGE_ROLE, "u-2", ALLOW),
        # an ordinary user may not delete anyone, themself included
        (user, Operation.DELETE, "u-1", DENY),
        (user, Operation.DELETE, "u-2", DENY),
        (admin, Operation.DELETE, "u-2", ALLOW),
        (admin, Operation.DELETE, "a-1", ALLOW),
    ],
)
def test_decide(principal, operation, target, expected):
    assert decide(principal, operation, target) is expected


@pytest.mark.parametrize("operation", [op for op in Operation if op is not Operation.CREATE])
def test_anonymous_is_denied_everything_but_create(operation):
    assert decide(None, operation, "u-1") is DENY


def test_read_without_target_is_denied_for_user():
    assert decide(user, Operation.READ, None) is DENY


def test_every_operation_is_handled():
    for operation in Operation:
        assert decide(admin, operation, "x") in (ALLOW, DENY)


def test_principal_is_immutable():
    with pytest.raises(Exception):
        user.role = Role.ADMIN
