"""Django management command to display roles and their permissions per guard.

Example Usage:
    python manage.py show_permissions
    python manage.py show_permissions --guard api
"""

import click
from django.core.management.base import BaseCommand

from guarded_rbac.api import get_authorization

GRANTED = "✓"
NOT_GRANTED = "·"


class Command(BaseCommand):
    """Print, for each guard, a table of permissions against roles."""

    help = "Show the permissions of each role, grouped by guard."

    def add_arguments(self, parser) -> None:
        """Add command-line arguments to the argument parser.

        Args:
            parser: The Django argument parser instance to configure.
        """
        parser.add_argument("--guard", type=str, default=None, help="Only show this guard")

    def handle(self, *args, **options):
        authz = get_authorization()
        permissions = authz.permissions.all(options["guard"])
        roles = authz.roles.all(options["guard"])

        guard_names = sorted({record.guard_name for record in [*permissions, *roles]})
        if not guard_names:
            self.stdout.write(click.style("No permissions or roles found.", fg="yellow"))
            return

        for guard_name in guard_names:
            self._display_guard(
                guard_name,
                [permission for permission in permissions if permission.guard_name == guard_name],
                [role for role in roles if role.guard_name == guard_name],
            )

    def _display_guard(self, guard_name, permissions, roles):
        """Print the permission/role table of one guard.

        Args:
            guard_name: The guard being displayed.
            permissions: Permissions of the guard, with their roles prefetched.
            roles: Roles of the guard.
        """
        self.stdout.write(click.style(f"Guard: {guard_name}", bold=True))

        width = max([len(permission.name) for permission in permissions] + [len("Permission")])
        header = " | ".join([f"{'Permission':<{width}}", *[role.name for role in roles]])
        self.stdout.write(header)
        self.stdout.write("-" * len(header))

        for permission in permissions:
            role_ids = {role.pk for role in permission.roles.all()}
            cells = [
                f"{GRANTED if role.pk in role_ids else NOT_GRANTED:^{len(role.name)}}" for role in roles
            ]
            self.stdout.write(" | ".join([f"{permission.name:<{width}}", *cells]))

        self.stdout.write("")
