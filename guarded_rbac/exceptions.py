"""Exceptions raised by the guarded_rbac management operations.

Checks such as ``has_permission`` or ``has_role`` never raise these for unknown
names; they answer ``False`` instead.
"""

from contextlib import contextmanager

from django.db import DatabaseError

__all__ = [
    "GuardedRbacError",
    "AlreadyExists",
    "PermissionAlreadyExists",
    "RoleAlreadyExists",
    "NotFound",
    "PermissionDoesNotExist",
    "RoleDoesNotExist",
    "GuardDoesNotMatch",
    "StorageError",
    "storage_errors",
]


class GuardedRbacError(Exception):
    """Base class for every guarded_rbac error."""


class AlreadyExists(GuardedRbacError):
    """A record with the same (name, guard_name) pair already exists."""


class PermissionAlreadyExists(AlreadyExists):
    """Raised when creating a permission whose (name, guard_name) is taken."""

    def __init__(self, name: str, guard_name: str):
        self.name = name
        self.guard_name = guard_name
        super().__init__(f"A `{name}` permission already exists for guard `{guard_name}`.")


class RoleAlreadyExists(AlreadyExists):
    """Raised when creating a role whose (name, guard_name) is taken."""

    def __init__(self, name: str, guard_name: str):
        self.name = name
        self.guard_name = guard_name
        super().__init__(f"A role `{name}` already exists for guard `{guard_name}`.")


class NotFound(GuardedRbacError):
    """A lookup by name or id under a guard found nothing."""


class PermissionDoesNotExist(NotFound):
    """Raised when a permission lookup finds nothing."""

    def __init__(self, name, guard_name: str, field_name: str = "named"):
        self.name = name
        self.guard_name = guard_name
        super().__init__(f"There is no permission {field_name} `{name}` for guard `{guard_name}`.")


class RoleDoesNotExist(NotFound):
    """Raised when a role lookup finds nothing."""

    def __init__(self, name, guard_name: str, field_name: str = "named"):
        self.name = name
        self.guard_name = guard_name
        super().__init__(f"There is no role {field_name} `{name}` for guard `{guard_name}`.")


class GuardDoesNotMatch(GuardedRbacError):
    """Raised when a role, permission or user disagree on their guard."""

    def __init__(self, given: str, expected: str):
        self.given = given
        self.expected = expected
        super().__init__(f"The given role or permission should use guard `{expected}` instead of `{given}`.")


class StorageError(GuardedRbacError):
    """The underlying persistence layer failed."""


@contextmanager
def storage_errors():
    """Re-raise database failures as ``StorageError``.

    ``IntegrityError`` is a ``DatabaseError`` too, so callers that translate it
    into ``AlreadyExists`` must catch it inside this block.

    Raises:
        StorageError: When the wrapped block raises ``django.db.DatabaseError``.
    """
    try:
        yield
    except DatabaseError as exc:
        raise StorageError(str(exc)) from exc
