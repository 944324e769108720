"""Guard resolution.

A guard is a named authentication context ("web", "api", ...). Permissions and
roles are partitioned by guard, and every user-like model belongs to one guard.
Resolution is driven only by configuration, so the same input always yields the
same guard.
"""

from django.apps import apps
from django.db import models

from guarded_rbac.conf import get_rbac_settings

__all__ = [
    "get_default_guard_name",
    "get_guard_names",
    "get_model_for_guard",
    "model_label",
]


def model_label(model) -> str:
    """Get the lowercase ``app_label.modelname`` label for a model.

    Args:
        model: A model class, a model instance or an ``app_label.ModelName`` string.

    Returns:
        str: The normalised label (e.g., 'auth.user').
    """
    if isinstance(model, str):
        return model.lower()
    if isinstance(model, models.Model):
        model = type(model)
    return model._meta.label_lower  # pylint: disable=protected-access


def get_guard_names() -> list[str]:
    """Get the names of every configured guard.

    Returns:
        list[str]: Guard names in configuration order.
    """
    return list(get_rbac_settings().guards)


def get_model_for_guard(guard_name: str):
    """Get the user-like model class configured for a guard.

    Args:
        guard_name: Name of the guard (e.g., 'web').

    Returns:
        The model class, or None if the guard is not configured.
    """
    label = get_rbac_settings().guards.get(guard_name)
    if label is None:
        return None
    return apps.get_model(label)


def get_default_guard_name(model) -> str:
    """Resolve the guard that applies to a model.

    The explicit ``GUARDED_RBAC_MODEL_GUARDS`` mapping wins, then the first guard
    whose user model is ``model``, then ``GUARDED_RBAC_DEFAULT_GUARD``.

    Args:
        model: A model class, a model instance or an ``app_label.ModelName`` string.

    Returns:
        str: The guard name. Never fails.
    """
    rbac_settings = get_rbac_settings()
    label = model_label(model)

    if label in rbac_settings.model_guards:
        return rbac_settings.model_guards[label]

    for guard_name, user_model in rbac_settings.guards.items():
        if user_model.lower() == label:
            return guard_name

    return rbac_settings.default_guard
