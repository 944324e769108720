"""Django authentication backend answering permission checks from guarded_rbac.

Add it to ``AUTHENTICATION_BACKENDS`` so that ``user.has_perm("edit-articles")``
consults guarded_rbac permissions, both direct and through roles::

    AUTHENTICATION_BACKENDS = [
        "django.contrib.auth.backends.ModelBackend",
        "guarded_rbac.backends.GuardedPermissionBackend",
    ]

The backend only authorizes; ``authenticate`` always returns None.
"""

from django.contrib.auth.backends import BaseBackend

from guarded_rbac.api import get_authorization


class GuardedPermissionBackend(BaseBackend):
    """Authorization backend backed by guarded_rbac roles and permissions."""

    def authenticate(self, request, **credentials):  # pylint: disable=unused-argument
        return None

    def _is_eligible(self, user_obj) -> bool:
        return bool(user_obj) and user_obj.is_active and not user_obj.is_anonymous

    def has_perm(self, user_obj, perm, obj=None) -> bool:
        """Check whether ``user_obj`` holds the permission named ``perm``.

        Object-level checks are not supported, so any ``obj`` yields False.
        """
        if obj is not None or not self._is_eligible(user_obj):
            return False
        return get_authorization().has_permission(user_obj, perm)

    def get_all_permissions(self, user_obj, obj=None) -> set[str]:
        """Get the names of every permission ``user_obj`` holds."""
        if obj is not None or not self._is_eligible(user_obj):
            return set()
        return set(get_authorization().get_permission_names(user_obj))

    def get_user_permissions(self, user_obj, obj=None) -> set[str]:
        """Get the names of the permissions granted directly to ``user_obj``."""
        if obj is not None or not self._is_eligible(user_obj):
            return set()
        return {permission.name for permission in get_authorization().get_direct_permissions(user_obj)}

    def get_group_permissions(self, user_obj, obj=None) -> set[str]:
        """Get the names of the permissions ``user_obj`` inherits from its roles."""
        if obj is not None or not self._is_eligible(user_obj):
            return set()
        return {permission.name for permission in get_authorization().get_permissions_via_roles(user_obj)}
