"""Role-based authorization predicates.

These checks run after the access gate has resolved the caller. They are pure
and never touch storage: each either returns ``None`` or raises ``Forbidden``.
"""

from collections.abc import Iterable
from typing import Protocol

from ems_api.core.errors import AuthFailure, Forbidden
from ems_api.core.roles import Role


class Identity(Protocol):
    """The attributes of an authenticated user that policies look at."""

    role: Role
    employee_id: str | None


def is_elevated(role: Role) -> bool:
    """Return whether a role may act on any employee's records."""
    match role:
        case Role.ADMIN | Role.HR | Role.MANAGER:
            return True
        case Role.EMPLOYEE:
            return False


def normalize_employee_id(employee_id: str | None) -> str | None:
    """Employee ids are compared upper-cased and without surrounding whitespace."""
    if employee_id is None:
        return None
    normalized = employee_id.strip().upper()
    return normalized or None


def require_any_role(identity: Identity, allowed_roles: Iterable[Role]) -> None:
    """Reject unless the identity holds one of ``allowed_roles``.

    Raises:
        Forbidden: If the role is not allowed.
    """
    if Role(identity.role) not in frozenset(allowed_roles):
        raise Forbidden(AuthFailure.INSUFFICIENT_ROLE)


def require_self_or_elevated(identity: Identity, requested_employee_id: str | None) -> None:
    """Allow elevated roles unconditionally, employees only for their own record.

    Args:
        identity: The authenticated caller.
        requested_employee_id: Business id of the employee record being accessed.

    Raises:
        Forbidden: If an employee requests someone else's record.
    """
    if is_elevated(Role(identity.role)):
        return
    own_id = normalize_employee_id(identity.employee_id)
    if own_id is not None and own_id == normalize_employee_id(requested_employee_id):
        return
    raise Forbidden(AuthFailure.NOT_SELF)
