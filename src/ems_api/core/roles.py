"""Closed role enumeration and the role groups used by route guards."""

import enum


class Role(enum.StrEnum):
    """Roles a user account can hold."""

    ADMIN = "admin"
    HR = "hr"
    MANAGER = "manager"
    EMPLOYEE = "employee"


ADMIN_ONLY: frozenset[Role] = frozenset({Role.ADMIN})
ADMIN_OR_HR: frozenset[Role] = frozenset({Role.ADMIN, Role.HR})
MANAGER_OR_ABOVE: frozenset[Role] = frozenset({Role.ADMIN, Role.HR, Role.MANAGER})
ALL_ROLES: frozenset[Role] = frozenset(Role)
