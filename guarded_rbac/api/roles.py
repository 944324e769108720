"""Public API for roles management.

A role is a named group of permissions scoped to a guard. Instead of granting
permissions to each user, permissions are given to a role and users holding the
role inherit them.

Roles are read from storage; their permission links are also visible through the
permission registrar, which is invalidated after every change made here.
"""

import logging

from django.apps import apps
from django.db import IntegrityError, transaction

from guarded_rbac.conf import get_rbac_settings
from guarded_rbac.exceptions import GuardDoesNotMatch, RoleAlreadyExists, RoleDoesNotExist, storage_errors
from guarded_rbac.guards import get_default_guard_name, get_model_for_guard
from guarded_rbac.models import ModelHasRole, RoleHasPermission

__all__ = ["RoleStore"]

logger = logging.getLogger(__name__)


class RoleStore:
    """Create, find and delete Role records and manage their permissions.

    Attributes:
        registrar (PermissionRegistrar): The process-wide permission cache.
        permissions (PermissionStore): Store used to resolve permission names.
    """

    def __init__(self, registrar, permissions):
        self.registrar = registrar
        self.permissions = permissions

    @property
    def model(self):
        """The configured role model class."""
        return apps.get_model(get_rbac_settings().role_model)

    def resolve_guard(self, guard_name: str = None) -> str:
        """Get ``guard_name`` or, when it is empty, the default guard for roles."""
        return guard_name or get_default_guard_name(self.model)

    def create(self, name: str, guard_name: str = None):
        """Create a role.

        Args:
            name: Role name (e.g., 'writer').
            guard_name: Guard of the role. Defaults to the guard resolved for the
                role model.

        Returns:
            Role: The new role.

        Raises:
            RoleAlreadyExists: If (name, guard_name) is already taken.
            StorageError: If storage fails.
        """
        guard_name = self.resolve_guard(guard_name)

        with storage_errors():
            if self.model.objects.filter(name=name, guard_name=guard_name).exists():
                raise RoleAlreadyExists(name, guard_name)
            try:
                with transaction.atomic():
                    role = self.model.objects.create(name=name, guard_name=guard_name)
            except IntegrityError as exc:
                raise RoleAlreadyExists(name, guard_name) from exc

        self.registrar.forget_cached_permissions()
        logger.info(f"Created role {name} for guard {guard_name}")
        return role

    def find_by_name(self, name: str, guard_name: str = None):
        """Find a role by its name within a guard.

        Args:
            name: Role name.
            guard_name: Guard of the role. Defaults as in ``create``.

        Returns:
            Role: The role.

        Raises:
            RoleDoesNotExist: If there is no such role.
        """
        guard_name = self.resolve_guard(guard_name)
        with storage_errors():
            role = self.model.objects.filter(name=name, guard_name=guard_name).first()
        if role is None:
            raise RoleDoesNotExist(name, guard_name)
        return role

    def find_by_id(self, role_id, guard_name: str = None):
        """Find a role by its id within a guard.

        Args:
            role_id: Primary key of the role.
            guard_name: Guard of the role. Defaults as in ``create``.

        Returns:
            Role: The role.

        Raises:
            RoleDoesNotExist: If there is no such role.
        """
        guard_name = self.resolve_guard(guard_name)
        with storage_errors():
            role = self.model.objects.filter(pk=role_id, guard_name=guard_name).first()
        if role is None:
            raise RoleDoesNotExist(role_id, guard_name, field_name="with id")
        return role

    def find_or_create(self, name: str, guard_name: str = None):
        """Find a role, creating it when it does not exist.

        Args:
            name: Role name.
            guard_name: Guard of the role. Defaults as in ``create``.

        Returns:
            Role: The existing or new role.
        """
        guard_name = self.resolve_guard(guard_name)
        try:
            return self.find_by_name(name, guard_name)
        except RoleDoesNotExist:
            pass

        try:
            return self.create(name, guard_name)
        except RoleAlreadyExists:
            logger.warning(f"Role {name} for guard {guard_name} was created concurrently, reusing it")
            return self.find_by_name(name, guard_name)

    def delete(self, role):
        """Delete a role and every link row referencing it.

        Args:
            role: The Role to delete.
        """
        with storage_errors():
            role.delete()
        self.registrar.forget_cached_permissions()
        logger.info(f"Deleted role {role.name} for guard {role.guard_name}")

    def all(self, guard_name: str = None) -> list:
        """Get every role, optionally restricted to one guard.

        Args:
            guard_name: Guard to filter by. All guards when omitted.

        Returns:
            list[Role]: The roles ordered by name.
        """
        queryset = self.model.objects.all()
        if guard_name is not None:
            queryset = queryset.filter(guard_name=guard_name)
        with storage_errors():
            return list(queryset)

    def resolve_permission(self, permission, guard_name: str):
        """Turn a permission name into a Permission and check its guard.

        Args:
            permission: A Permission instance or a permission name.
            guard_name: The guard the permission must belong to.

        Returns:
            Permission: The resolved permission.

        Raises:
            PermissionDoesNotExist: If a name does not resolve under ``guard_name``.
            GuardDoesNotMatch: If a Permission instance belongs to another guard.
        """
        if isinstance(permission, str):
            return self.permissions.find_by_name(permission, guard_name)
        if permission.guard_name != guard_name:
            raise GuardDoesNotMatch(given=permission.guard_name, expected=guard_name)
        return permission

    def give_permission_to(self, role, *permissions):
        """Give one or more permissions to a role.

        Permissions already held by the role are left untouched.

        Args:
            role: The Role receiving the permissions.
            *permissions: Permission instances or names.

        Returns:
            Role: ``role``, for chaining.

        Raises:
            PermissionDoesNotExist: If a name does not resolve under the role's guard.
            GuardDoesNotMatch: If a permission belongs to another guard.
        """
        resolved = [self.resolve_permission(permission, role.guard_name) for permission in permissions]

        with storage_errors(), transaction.atomic():
            for permission in resolved:
                RoleHasPermission.objects.get_or_create(role=role, permission=permission)

        self.registrar.forget_cached_permissions()
        return role

    def revoke_permission_to(self, role, *permissions):
        """Revoke one or more permissions from a role.

        Permissions the role does not hold are ignored, as are names that do not
        resolve.

        Args:
            role: The Role losing the permissions.
            *permissions: Permission instances or names.

        Returns:
            Role: ``role``, for chaining.
        """
        names = [permission for permission in permissions if isinstance(permission, str)]
        instances = [permission for permission in permissions if not isinstance(permission, str)]

        with storage_errors():
            RoleHasPermission.objects.filter(role=role, permission__in=instances).delete()
            if names:
                RoleHasPermission.objects.filter(
                    role=role,
                    permission__name__in=names,
                    permission__guard_name=role.guard_name,
                ).delete()

        self.registrar.forget_cached_permissions()
        return role

    def sync_permissions(self, role, *permissions):
        """Replace every permission of a role with the given ones.

        Args:
            role: The Role to update.
            *permissions: Permission instances or names.

        Returns:
            Role: ``role``, for chaining.

        Raises:
            PermissionDoesNotExist: If a name does not resolve under the role's guard.
            GuardDoesNotMatch: If a permission belongs to another guard.
        """
        resolved = [self.resolve_permission(permission, role.guard_name) for permission in permissions]

        with storage_errors(), transaction.atomic():
            RoleHasPermission.objects.filter(role=role).exclude(permission__in=resolved).delete()
            for permission in resolved:
                RoleHasPermission.objects.get_or_create(role=role, permission=permission)

        self.registrar.forget_cached_permissions()
        return role

    def has_permission_to(self, role, permission) -> bool:
        """Check whether a role holds a permission.

        The answer comes from the registrar, so it reflects every change made
        since the last invalidation.

        Args:
            role: The Role to check.
            permission: A Permission instance or a permission name.

        Returns:
            bool: True if the role holds the permission. Unknown names and
            permissions of another guard yield False.
        """
        if isinstance(permission, str):
            name = permission
        elif permission.guard_name != role.guard_name:
            return False
        else:
            name = permission.name

        cached = self.registrar.get_permission(name, role.guard_name)
        if cached is None:
            return False
        return any(cached_role.pk == role.pk for cached_role in cached.roles.all())

    def get_permissions(self, role) -> list:
        """Get the permissions of a role from the registrar.

        Args:
            role: The Role to inspect.

        Returns:
            list[Permission]: The role's permissions.
        """
        return [
            permission
            for permission in self.registrar.get_permissions_for_guard(role.guard_name)
            if any(cached_role.pk == role.pk for cached_role in permission.roles.all())
        ]

    def get_permission_names(self, role) -> list[str]:
        """Get the names of the permissions of a role.

        Args:
            role: The Role to inspect.

        Returns:
            list[str]: Permission names.
        """
        return [permission.name for permission in self.get_permissions(role)]

    def get_users(self, role) -> list:
        """Get the user-like records holding a role.

        Args:
            role: A Role instance.

        Returns:
            list: Records of the model configured for the role's guard,
            an empty list if the guard has no model.
        """
        user_model = get_model_for_guard(role.guard_name)
        if user_model is None:
            return []
        with storage_errors():
            return list(ModelHasRole.objects.filter(role=role).holders(user_model))
