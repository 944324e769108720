"""User-related API methods for role and permission assignments and checks.

The ``Authorization`` component composes the permission and role stores. A
"user" here is any model instance; its guard is resolved from its model with
``guarded_rbac.guards.get_default_guard_name``. Roles and permissions of another
guard are invisible to it: checks answer False and assignments raise
``GuardDoesNotMatch``.
"""

import logging

from django.db import transaction

from guarded_rbac.exceptions import GuardDoesNotMatch, storage_errors
from guarded_rbac.guards import get_default_guard_name
from guarded_rbac.models import ModelHasPermission, ModelHasRole, model_reference

__all__ = ["Authorization"]

logger = logging.getLogger(__name__)


class Authorization:
    """Assign roles and permissions to users and answer authorization checks.

    Attributes:
        registrar (PermissionRegistrar): The process-wide permission cache.
        permissions (PermissionStore): The permission store.
        roles (RoleStore): The role store.
    """

    def __init__(self, registrar, permissions, roles):
        self.registrar = registrar
        self.permissions = permissions
        self.roles = roles

    @staticmethod
    def guard_for(user) -> str:
        """Get the guard a user belongs to."""
        return get_default_guard_name(user)

    # Roles

    def resolve_role(self, role, guard_name: str):
        """Turn a role name into a Role and check its guard.

        Args:
            role: A Role instance or a role name.
            guard_name: The guard the role must belong to.

        Returns:
            Role: The resolved role.

        Raises:
            RoleDoesNotExist: If a name does not resolve under ``guard_name``.
            GuardDoesNotMatch: If a Role instance belongs to another guard.
        """
        if isinstance(role, str):
            return self.roles.find_by_name(role, guard_name)
        if role.guard_name != guard_name:
            raise GuardDoesNotMatch(given=role.guard_name, expected=guard_name)
        return role

    def assign_role(self, user, *roles):
        """Assign one or more roles to a user.

        Args:
            user: The user-like model instance.
            *roles: Role instances or names.

        Returns:
            The user, for chaining.

        Raises:
            RoleDoesNotExist: If a name does not resolve under the user's guard.
            GuardDoesNotMatch: If a role belongs to another guard.
        """
        guard_name = self.guard_for(user)
        resolved = [self.resolve_role(role, guard_name) for role in roles]
        reference = model_reference(user)

        with storage_errors(), transaction.atomic():
            for role in resolved:
                ModelHasRole.objects.get_or_create(role=role, **reference)

        self.registrar.forget_cached_permissions()
        logger.info(f"Assigned roles {[role.name for role in resolved]} to {reference['object_id']}")
        return user

    def remove_role(self, user, *roles):
        """Remove one or more roles from a user.

        Roles the user does not hold, and names that do not resolve, are ignored.

        Args:
            user: The user-like model instance.
            *roles: Role instances or names.

        Returns:
            The user, for chaining.
        """
        guard_name = self.guard_for(user)
        names = [role for role in roles if isinstance(role, str)]
        instances = [role for role in roles if not isinstance(role, str)]

        with storage_errors():
            links = ModelHasRole.objects.for_model(user)
            links.filter(role__in=instances).delete()
            if names:
                links.filter(role__name__in=names, role__guard_name=guard_name).delete()

        self.registrar.forget_cached_permissions()
        return user

    def sync_roles(self, user, *roles):
        """Replace every role of a user with the given ones.

        Args:
            user: The user-like model instance.
            *roles: Role instances or names.

        Returns:
            The user, for chaining.

        Raises:
            RoleDoesNotExist: If a name does not resolve under the user's guard.
            GuardDoesNotMatch: If a role belongs to another guard.
        """
        guard_name = self.guard_for(user)
        resolved = [self.resolve_role(role, guard_name) for role in roles]
        reference = model_reference(user)

        with storage_errors(), transaction.atomic():
            ModelHasRole.objects.for_model(user).exclude(role__in=resolved).delete()
            for role in resolved:
                ModelHasRole.objects.get_or_create(role=role, **reference)

        self.registrar.forget_cached_permissions()
        return user

    def get_roles(self, user) -> list:
        """Get the roles of a user within its guard.

        Args:
            user: The user-like model instance.

        Returns:
            list[Role]: The user's roles ordered by name.
        """
        guard_name = self.guard_for(user)
        with storage_errors():
            return [
                link.role
                for link in ModelHasRole.objects.for_model(user)
                .filter(role__guard_name=guard_name)
                .select_related("role")
                .order_by("role__name")
            ]

    def get_role_names(self, user) -> list[str]:
        """Get the names of the roles of a user."""
        return [role.name for role in self.get_roles(user)]

    def _role_keys(self, roles) -> tuple[set, set]:
        """Split roles into a set of primary keys and a set of names."""
        if isinstance(roles, str) or not hasattr(roles, "__iter__"):
            roles = [roles]
        names = {role for role in roles if isinstance(role, str)}
        pks = {role.pk for role in roles if not isinstance(role, str)}
        return pks, names

    def _matches(self, role, pks: set, names: set) -> bool:
        return role.pk in pks or role.name in names

    def has_role(self, user, roles) -> bool:
        """Check whether a user holds a role, or any role of a collection.

        Args:
            user: The user-like model instance.
            roles: A Role, a role name, or an iterable of them.

        Returns:
            bool: True if the user holds at least one of the roles. Unknown roles
            and roles of another guard yield False.
        """
        pks, names = self._role_keys(roles)
        return any(self._matches(role, pks, names) for role in self.get_roles(user))

    def has_any_role(self, user, *roles) -> bool:
        """Check whether a user holds any of the given roles."""
        return self.has_role(user, roles)

    def has_all_roles(self, user, *roles) -> bool:
        """Check whether a user holds every one of the given roles.

        Args:
            user: The user-like model instance.
            *roles: Role instances or names.

        Returns:
            bool: True if every role is held. False for an empty ``roles``.
        """
        if not roles:
            return False
        held = self.get_roles(user)
        for role in roles:
            pks, names = self._role_keys(role)
            if not any(self._matches(held_role, pks, names) for held_role in held):
                return False
        return True

    # Direct permissions

    def give_permission_to(self, user, *permissions):
        """Grant one or more permissions directly to a user.

        Args:
            user: The user-like model instance.
            *permissions: Permission instances or names.

        Returns:
            The user, for chaining.

        Raises:
            PermissionDoesNotExist: If a name does not resolve under the user's guard.
            GuardDoesNotMatch: If a permission belongs to another guard.
        """
        guard_name = self.guard_for(user)
        resolved = [self.roles.resolve_permission(permission, guard_name) for permission in permissions]
        reference = model_reference(user)

        with storage_errors(), transaction.atomic():
            for permission in resolved:
                ModelHasPermission.objects.get_or_create(permission=permission, **reference)

        self.registrar.forget_cached_permissions()
        return user

    def revoke_permission_to(self, user, *permissions):
        """Revoke one or more direct permissions from a user.

        Permissions obtained through roles are not affected.

        Args:
            user: The user-like model instance.
            *permissions: Permission instances or names.

        Returns:
            The user, for chaining.
        """
        guard_name = self.guard_for(user)
        names = [permission for permission in permissions if isinstance(permission, str)]
        instances = [permission for permission in permissions if not isinstance(permission, str)]

        with storage_errors():
            links = ModelHasPermission.objects.for_model(user)
            links.filter(permission__in=instances).delete()
            if names:
                links.filter(permission__name__in=names, permission__guard_name=guard_name).delete()

        self.registrar.forget_cached_permissions()
        return user

    def sync_permissions(self, user, *permissions):
        """Replace every direct permission of a user with the given ones.

        Args:
            user: The user-like model instance.
            *permissions: Permission instances or names.

        Returns:
            The user, for chaining.
        """
        guard_name = self.guard_for(user)
        resolved = [self.roles.resolve_permission(permission, guard_name) for permission in permissions]
        reference = model_reference(user)

        with storage_errors(), transaction.atomic():
            ModelHasPermission.objects.for_model(user).exclude(permission__in=resolved).delete()
            for permission in resolved:
                ModelHasPermission.objects.get_or_create(permission=permission, **reference)

        self.registrar.forget_cached_permissions()
        return user

    # Checks

    def _lookup_permission(self, permission, guard_name: str):
        """Get the cached permission matching ``permission`` under ``guard_name``, or None."""
        if isinstance(permission, str):
            return self.registrar.get_permission(permission, guard_name)
        if permission.guard_name != guard_name:
            return None
        return self.registrar.get_permission(permission.name, guard_name)

    def has_direct_permission(self, user, permission) -> bool:
        """Check whether a user holds a permission directly.

        Args:
            user: The user-like model instance.
            permission: A Permission instance or a permission name.

        Returns:
            bool: True if a direct link exists. Unknown names yield False.
        """
        cached = self._lookup_permission(permission, self.guard_for(user))
        if cached is None:
            return False
        with storage_errors():
            return ModelHasPermission.objects.for_model(user).filter(permission=cached).exists()

    def has_permission(self, user, permission, guard_name: str = None) -> bool:
        """Check whether a user holds a permission, directly or through a role.

        Args:
            user: The user-like model instance.
            permission: A Permission instance or a permission name.
            guard_name: The guard to check under. When it differs from the user's
                guard the permission is invisible and the answer is False.

        Returns:
            bool: True if the user holds the permission.
        """
        user_guard = self.guard_for(user)
        if guard_name is not None and guard_name != user_guard:
            return False

        cached = self._lookup_permission(permission, user_guard)
        if cached is None:
            return False

        if self.has_direct_permission(user, cached):
            return True

        permission_roles = {role.pk for role in cached.roles.all()}
        if not permission_roles:
            return False
        with storage_errors():
            return ModelHasRole.objects.for_model(user).filter(role_id__in=permission_roles).exists()

    def has_any_permission(self, user, *permissions) -> bool:
        """Check whether a user holds at least one of the given permissions."""
        return any(self.has_permission(user, permission) for permission in permissions)

    def has_all_permissions(self, user, *permissions) -> bool:
        """Check whether a user holds every one of the given permissions."""
        return bool(permissions) and all(self.has_permission(user, permission) for permission in permissions)

    def get_direct_permissions(self, user) -> list:
        """Get the permissions granted directly to a user.

        Args:
            user: The user-like model instance.

        Returns:
            list[Permission]: Cached permissions of the user's guard.
        """
        guard_name = self.guard_for(user)
        with storage_errors():
            permission_ids = set(ModelHasPermission.objects.for_model(user).values_list("permission_id", flat=True))
        return [
            permission
            for permission in self.registrar.get_permissions_for_guard(guard_name)
            if permission.pk in permission_ids
        ]

    def get_permissions_via_roles(self, user) -> list:
        """Get the permissions a user inherits from its roles.

        Args:
            user: The user-like model instance.

        Returns:
            list[Permission]: Cached permissions of the user's guard.
        """
        guard_name = self.guard_for(user)
        role_ids = {role.pk for role in self.get_roles(user)}
        if not role_ids:
            return []
        return [
            permission
            for permission in self.registrar.get_permissions_for_guard(guard_name)
            if any(role.pk in role_ids for role in permission.roles.all())
        ]

    def get_all_permissions(self, user) -> list:
        """Get every permission a user holds, directly or through roles.

        Args:
            user: The user-like model instance.

        Returns:
            list[Permission]: Distinct permissions ordered by name.
        """
        permissions = {permission.pk: permission for permission in self.get_direct_permissions(user)}
        for permission in self.get_permissions_via_roles(user):
            permissions.setdefault(permission.pk, permission)
        return sorted(permissions.values(), key=lambda permission: permission.name)

    def get_permission_names(self, user) -> list[str]:
        """Get the names of every permission a user holds."""
        return [permission.name for permission in self.get_all_permissions(user)]

    def forget_user(self, user):
        """Remove every role and direct permission link of a user.

        Args:
            user: The user-like model instance, typically one being deleted.

        Returns:
            int: Number of link rows removed.
        """
        with storage_errors():
            removed_roles, _ = ModelHasRole.objects.for_model(user).delete()
            removed_permissions, _ = ModelHasPermission.objects.for_model(user).delete()

        self.registrar.forget_cached_permissions()
        return removed_roles + removed_permissions

