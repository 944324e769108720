"""Django management command to reset the permission cache."""

import click
from django.core.management.base import BaseCommand

from guarded_rbac.api import get_authorization


class Command(BaseCommand):
    """Invalidate the permission cache of every process sharing it."""

    help = "Reset the permission cache."

    def handle(self, *args, **options):
        get_authorization().registrar.forget_cached_permissions()
        self.stdout.write(click.style("Permission cache flushed.", fg="green"))
