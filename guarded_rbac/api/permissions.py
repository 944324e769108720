"""Public API for permissions management.

A permission is an atomic named capability scoped to a guard. Lookups are served
from the permission registrar; only writes touch storage directly, and every
write is followed by a registrar invalidation.
"""

import logging

from django.apps import apps
from django.db import IntegrityError, transaction

from guarded_rbac.conf import get_rbac_settings
from guarded_rbac.exceptions import PermissionAlreadyExists, PermissionDoesNotExist, storage_errors
from guarded_rbac.guards import get_default_guard_name, get_model_for_guard
from guarded_rbac.models import ModelHasPermission

__all__ = ["PermissionStore"]

logger = logging.getLogger(__name__)


class PermissionStore:
    """Create, find and delete Permission records.

    Attributes:
        registrar (PermissionRegistrar): The process-wide permission cache.
    """

    def __init__(self, registrar):
        self.registrar = registrar

    @property
    def model(self):
        """The configured permission model class."""
        return apps.get_model(get_rbac_settings().permission_model)

    def resolve_guard(self, guard_name: str = None) -> str:
        """Get ``guard_name`` or, when it is empty, the default guard for permissions."""
        return guard_name or get_default_guard_name(self.model)

    def create(self, name: str, guard_name: str = None):
        """Create a permission.

        Args:
            name: Permission name (e.g., 'edit-articles').
            guard_name: Guard of the permission. Defaults to the guard resolved for
                the permission model.

        Returns:
            Permission: The new permission.

        Raises:
            PermissionAlreadyExists: If (name, guard_name) is already taken, either
                according to the registrar or to the storage unique constraint.
            StorageError: If storage fails.
        """
        guard_name = self.resolve_guard(guard_name)

        if self.registrar.get_permission(name, guard_name) is not None:
            raise PermissionAlreadyExists(name, guard_name)

        with storage_errors():
            try:
                with transaction.atomic():
                    permission = self.model.objects.create(name=name, guard_name=guard_name)
            except IntegrityError as exc:
                raise PermissionAlreadyExists(name, guard_name) from exc

        self.registrar.forget_cached_permissions()
        logger.info(f"Created permission {name} for guard {guard_name}")
        return permission

    def find_by_name(self, name: str, guard_name: str = None):
        """Find a permission by its name within a guard.

        Args:
            name: Permission name.
            guard_name: Guard of the permission. Defaults as in ``create``.

        Returns:
            Permission: The cached permission.

        Raises:
            PermissionDoesNotExist: If there is no such permission.
        """
        guard_name = self.resolve_guard(guard_name)
        permission = self.registrar.get_permission(name, guard_name)
        if permission is None:
            raise PermissionDoesNotExist(name, guard_name)
        return permission

    def find_by_id(self, permission_id, guard_name: str = None):
        """Find a permission by its id within a guard.

        Args:
            permission_id: Primary key of the permission.
            guard_name: Guard of the permission. Defaults as in ``create``.

        Returns:
            Permission: The cached permission.

        Raises:
            PermissionDoesNotExist: If there is no such permission.
        """
        guard_name = self.resolve_guard(guard_name)
        for permission in self.registrar.get_permissions_for_guard(guard_name):
            if permission.pk == permission_id:
                return permission
        raise PermissionDoesNotExist(permission_id, guard_name, field_name="with id")

    def find_or_create(self, name: str, guard_name: str = None):
        """Find a permission, creating it when it does not exist.

        Calling it twice with the same arguments returns the same record. When a
        concurrent caller creates the permission first, the storage constraint
        rejects this caller's insert and the winning record is returned instead.

        Args:
            name: Permission name.
            guard_name: Guard of the permission. Defaults as in ``create``.

        Returns:
            Permission: The existing or new permission.
        """
        guard_name = self.resolve_guard(guard_name)

        permission = self.registrar.get_permission(name, guard_name)
        if permission is not None:
            return permission

        try:
            return self.create(name, guard_name)
        except PermissionAlreadyExists:
            logger.warning(f"Permission {name} for guard {guard_name} was created concurrently, reusing it")
            with storage_errors():
                permission = self.model.objects.get(name=name, guard_name=guard_name)
            self.registrar.forget_cached_permissions()
            return permission

    def delete(self, permission):
        """Delete a permission and every link row referencing it.

        Args:
            permission: The Permission to delete.
        """
        with storage_errors():
            permission.delete()
        self.registrar.forget_cached_permissions()
        logger.info(f"Deleted permission {permission.name} for guard {permission.guard_name}")

    def all(self, guard_name: str = None) -> list:
        """Get the cached permissions, optionally restricted to one guard.

        Args:
            guard_name: Guard to filter by. All guards when omitted.

        Returns:
            list[Permission]: The permissions.
        """
        if guard_name is None:
            return list(self.registrar.get_permissions())
        return self.registrar.get_permissions_for_guard(guard_name)

    def get_roles(self, permission) -> list:
        """Get the roles holding a permission.

        Args:
            permission: A Permission instance.

        Returns:
            list[Role]: The roles, read from the registrar when the permission is cached.
        """
        cached = self.registrar.get_permission(permission.name, permission.guard_name)
        with storage_errors():
            return list((cached or permission).roles.all())

    def get_users(self, permission) -> list:
        """Get the user-like records holding a permission directly.

        Args:
            permission: A Permission instance.

        Returns:
            list: Records of the model configured for the permission's guard,
            an empty list if the guard has no model.
        """
        user_model = get_model_for_guard(permission.guard_name)
        if user_model is None:
            return []
        with storage_errors():
            return list(ModelHasPermission.objects.filter(permission=permission).holders(user_model))
