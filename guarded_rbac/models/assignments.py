"""Link rows between user-like records and roles or permissions.

Each guard can use a different user model, so the user side of a link is a
generic reference (content type plus primary key as text). Link rows cascade with
their role or permission; the user side is cleaned up by
``guarded_rbac.handlers`` because generic references do not cascade on their own.
"""

from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models

from guarded_rbac.conf import get_table_name

__all__ = ["ModelHasRole", "ModelHasPermission", "model_reference"]


def model_reference(instance) -> dict:
    """Build the generic reference fields pointing to a model instance.

    Args:
        instance: The user-like model instance.

    Returns:
        dict: ``content_type`` and ``object_id`` values for a link row.
    """
    return {
        "content_type": ContentType.objects.get_for_model(instance),
        "object_id": str(instance.pk),
    }


class ModelLinkQuerySet(models.QuerySet):
    """QuerySet helpers for filtering link rows by their user-like record."""

    def for_model(self, instance):
        """Filter the links held by a model instance.

        Args:
            instance: The user-like model instance.

        Returns:
            QuerySet: Links whose generic reference points to ``instance``.
        """
        return self.filter(**model_reference(instance))

    def holders(self, user_model):
        """Get the records of ``user_model`` referenced by these links.

        Args:
            user_model: The user-like model class.

        Returns:
            QuerySet: Instances of ``user_model`` holding at least one of the links.
        """
        content_type = ContentType.objects.get_for_model(user_model)
        object_ids = self.filter(content_type=content_type).values_list("object_id", flat=True)
        return user_model.objects.filter(pk__in=list(object_ids))


class ModelLink(models.Model):
    """Generic reference to the user-like record holding the link."""

    content_type = models.ForeignKey(ContentType, on_delete=models.CASCADE, related_name="+")
    object_id = models.CharField(max_length=255, db_index=True)
    holder = GenericForeignKey("content_type", "object_id")

    objects = ModelLinkQuerySet.as_manager()

    class Meta:
        abstract = True


class ModelHasRole(ModelLink):
    """Link row assigning a role to a user-like record.

    .. no_pii:
    """

    role = models.ForeignKey("Role", on_delete=models.CASCADE, related_name="model_links")

    class Meta:
        db_table = get_table_name("model_has_roles")
        constraints = [
            models.UniqueConstraint(fields=["role", "content_type", "object_id"], name="unique_model_role"),
        ]


class ModelHasPermission(ModelLink):
    """Link row granting a permission directly to a user-like record.

    .. no_pii:
    """

    permission = models.ForeignKey("Permission", on_delete=models.CASCADE, related_name="model_links")

    class Meta:
        db_table = get_table_name("model_has_permissions")
        constraints = [
            models.UniqueConstraint(
                fields=["permission", "content_type", "object_id"], name="unique_model_permission"
            ),
        ]
