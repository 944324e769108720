"""Django management command to create a permission.

Example Usage:
    python manage.py create_permission edit-articles
    python manage.py create_permission edit-articles api
"""

import click
from django.core.management.base import BaseCommand, CommandError

from guarded_rbac.api import get_authorization
from guarded_rbac.exceptions import GuardedRbacError


class Command(BaseCommand):
    """Create a permission, failing if it already exists for the guard."""

    help = "Create a permission for a guard (the default guard when omitted)."

    def add_arguments(self, parser) -> None:
        """Add command-line arguments to the argument parser.

        Args:
            parser: The Django argument parser instance to configure.
        """
        parser.add_argument("name", type=str, help="The name of the permission")
        parser.add_argument("guard", type=str, nargs="?", default=None, help="The name of the guard")

    def handle(self, *args, **options):
        """Create the permission.

        Raises:
            CommandError: If the permission already exists or storage fails.
        """
        try:
            permission = get_authorization().permissions.create(options["name"], options["guard"])
        except GuardedRbacError as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(
            click.style(f"Permission `{permission.name}` created for guard `{permission.guard_name}`", fg="green")
        )
