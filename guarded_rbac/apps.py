"""
guarded_rbac Django application initialization.
"""

from django.apps import AppConfig


class GuardedRbacConfig(AppConfig):
    """
    Configuration for the guarded_rbac Django application.

    ``ready`` builds the permission registrar once and injects it into the
    permission store, the role store and the ``Authorization`` component, which
    are then reachable as attributes of this config (see
    ``guarded_rbac.api.get_authorization``).
    """

    name = "guarded_rbac"
    verbose_name = "Guarded RBAC"
    default_auto_field = "django.db.models.BigAutoField"

    registrar = None
    permissions = None
    roles = None
    authorization = None

    def ready(self):
        """Build the authorization components and connect the signal handlers."""
        # pylint: disable=import-outside-toplevel
        from guarded_rbac.api import Authorization, PermissionStore, RoleStore
        from guarded_rbac.handlers import connect_user_handlers
        from guarded_rbac.registrar import PermissionRegistrar

        self.registrar = PermissionRegistrar()
        self.permissions = PermissionStore(self.registrar)
        self.roles = RoleStore(self.registrar, self.permissions)
        self.authorization = Authorization(self.registrar, self.permissions, self.roles)

        connect_user_handlers()
