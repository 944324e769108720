"""Public API for guarded_rbac.

The stores and the ``Authorization`` component are built once, with a shared
``PermissionRegistrar``, when the Django app is ready. Use ``get_authorization``
to reach them from request-handling code::

    from guarded_rbac.api import get_authorization

    authz = get_authorization()
    role = authz.roles.find_or_create("writer")
    authz.roles.give_permission_to(role, authz.permissions.find_or_create("edit-articles"))
    authz.assign_role(user, role)
    authz.has_permission(user, "edit-articles")
"""

from django.apps import apps

from guarded_rbac.api.data import *
from guarded_rbac.api.permissions import *
from guarded_rbac.api.roles import *
from guarded_rbac.api.users import *


def get_authorization() -> Authorization:
    """Get the ``Authorization`` component wired by the guarded_rbac app config."""
    return apps.get_app_config("guarded_rbac").authorization
