"""Django management command to create a role, optionally with permissions.

Permissions are separated by ``|`` and are created under the role's guard when
they do not exist yet.

Example Usage:
    python manage.py create_role writer
    python manage.py create_role writer web --permissions "edit-articles|publish-articles"
"""

import click
from django.core.management.base import BaseCommand, CommandError

from guarded_rbac.api import get_authorization
from guarded_rbac.exceptions import GuardedRbacError

PERMISSIONS_SEPARATOR = "|"


class Command(BaseCommand):
    """Find or create a role and give it the listed permissions."""

    help = "Create a role for a guard and optionally give it permissions."

    def add_arguments(self, parser) -> None:
        """Add command-line arguments to the argument parser.

        Args:
            parser: The Django argument parser instance to configure.
        """
        parser.add_argument("name", type=str, help="The name of the role")
        parser.add_argument("guard", type=str, nargs="?", default=None, help="The name of the guard")
        parser.add_argument(
            "--permissions",
            type=str,
            default="",
            help=f"Permissions to give to the role, separated by '{PERMISSIONS_SEPARATOR}'",
        )

    def handle(self, *args, **options):
        """Create the role and give it its permissions.

        Raises:
            CommandError: If a store operation fails.
        """
        authz = get_authorization()
        names = [name.strip() for name in options["permissions"].split(PERMISSIONS_SEPARATOR) if name.strip()]

        try:
            role = authz.roles.find_or_create(options["name"], options["guard"])
            permissions = [authz.permissions.find_or_create(name, role.guard_name) for name in names]
            if permissions:
                authz.roles.give_permission_to(role, *permissions)
        except GuardedRbacError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(click.style(f"Role `{role.name}` ready for guard `{role.guard_name}`", fg="green"))
        for permission in permissions:
            self.stdout.write(f"  + {permission.name}")
