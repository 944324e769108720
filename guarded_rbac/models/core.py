"""Permission and Role models.

Both records are identified by (name, guard_name). The unique constraints declared
here are the final arbiter of that identity; the stores only check the permission
cache as a fast path before writing.
"""

from django.db import models

from guarded_rbac.conf import get_table_name

__all__ = ["Permission", "Role", "RoleHasPermission"]


class GuardedModel(models.Model):
    """Fields shared by every record scoped to a guard."""

    name = models.CharField(max_length=255)
    guard_name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def __str__(self):
        return self.name

    def __repr__(self):
        return f"<{type(self).__name__}: {self.name} ({self.guard_name})>"


class Permission(GuardedModel):
    """An atomic named capability, scoped to a guard.

    .. no_pii:
    """

    class Meta:
        db_table = get_table_name("permissions")
        constraints = [
            models.UniqueConstraint(fields=["name", "guard_name"], name="unique_permission_name_guard"),
        ]
        ordering = ["name"]


class Role(GuardedModel):
    """A named bundle of permissions, scoped to a guard and assignable to users.

    .. no_pii:
    """

    permissions = models.ManyToManyField(
        "Permission",
        through="RoleHasPermission",
        related_name="roles",
        blank=True,
    )

    class Meta:
        db_table = get_table_name("roles")
        constraints = [
            models.UniqueConstraint(fields=["name", "guard_name"], name="unique_role_name_guard"),
        ]
        ordering = ["name"]


class RoleHasPermission(models.Model):
    """Link row granting a permission to a role.

    .. no_pii:
    """

    role = models.ForeignKey(
        "Role",
        on_delete=models.CASCADE,
        related_name="permission_links",
    )
    permission = models.ForeignKey(
        "Permission",
        on_delete=models.CASCADE,
        related_name="role_links",
    )

    class Meta:
        db_table = get_table_name("role_has_permissions")
        constraints = [
            models.UniqueConstraint(fields=["role", "permission"], name="unique_role_permission"),
        ]
