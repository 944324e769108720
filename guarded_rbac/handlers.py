"""
Signal handlers for guarded_rbac.

Role and permission links reference their user-like record generically, so the
database cannot cascade them when that record is deleted. These handlers remove
the links instead.
"""

import logging

from django.apps import apps
from django.db.models.signals import post_delete

from guarded_rbac.conf import get_rbac_settings
from guarded_rbac.guards import get_guard_names, get_model_for_guard

logger = logging.getLogger(__name__)

DISPATCH_UID_PREFIX = "guarded_rbac.forget_deleted_user"


def forget_deleted_user(sender, instance, **kwargs):  # pylint: disable=unused-argument
    """
    Remove the role and permission links of a deleted user-like record.

    Runs on ``post_delete`` so the links only go once the record itself is gone.

    Args:
        sender: The model class of the deleted record.
        instance: The deleted record. Its primary key is still set at this point.
        **kwargs: Additional keyword arguments from the signal.
    """
    removed = apps.get_app_config("guarded_rbac").authorization.forget_user(instance)
    if removed:
        logger.info(f"Removed {removed} authorization links of deleted {sender.__name__} {instance.pk}")


def user_models() -> list:
    """Get every model that can hold roles and permissions.

    These are the user models of the configured guards plus the models mapped to
    a guard explicitly through ``GUARDED_RBAC_MODEL_GUARDS``.
    """
    models = [get_model_for_guard(guard_name) for guard_name in get_guard_names()]
    models += [apps.get_model(label) for label in get_rbac_settings().model_guards]
    return [model for model in models if model is not None]


def connect_user_handlers():
    """Connect ``forget_deleted_user`` to every model that can hold roles and permissions."""
    for user_model in user_models():
        post_delete.connect(
            forget_deleted_user,
            sender=user_model,
            dispatch_uid=f"{DISPATCH_UID_PREFIX}.{user_model._meta.label_lower}",  # pylint: disable=protected-access
        )
