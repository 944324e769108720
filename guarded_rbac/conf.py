"""Configuration surface for guarded_rbac.

All values are read from Django settings at call time, so tests can override them
with ``override_settings``. Settings that are not defined fall back to
``DEFAULTS``.
"""

from attrs import field, frozen
from django.conf import settings

__all__ = [
    "DEFAULTS",
    "DEFAULT_TABLE_NAMES",
    "RbacSettings",
    "get_rbac_settings",
    "get_table_name",
]

DEFAULT_TABLE_NAMES = {
    "permissions": "permissions",
    "roles": "roles",
    "role_has_permissions": "role_has_permissions",
    "model_has_roles": "model_has_roles",
    "model_has_permissions": "model_has_permissions",
}

DEFAULTS = {
    "GUARDED_RBAC_DEFAULT_GUARD": "web",
    "GUARDED_RBAC_GUARDS": None,
    "GUARDED_RBAC_MODEL_GUARDS": {},
    "GUARDED_RBAC_PERMISSION_MODEL": "guarded_rbac.Permission",
    "GUARDED_RBAC_ROLE_MODEL": "guarded_rbac.Role",
    "GUARDED_RBAC_TABLE_NAMES": DEFAULT_TABLE_NAMES,
    "GUARDED_RBAC_CACHE_ALIAS": "default",
    "GUARDED_RBAC_CACHE_KEY": "guarded_rbac.permission.cache",
    "GUARDED_RBAC_CACHE_EXPIRATION": 60 * 60 * 24,
}


@frozen
class RbacSettings:
    """Snapshot of the guarded_rbac settings.

    Attributes:
        default_guard: Guard used when nothing more specific is configured for a model.
        guards: Mapping of guard name to the ``app_label.ModelName`` of its user model.
        model_guards: Explicit mapping of ``app_label.ModelName`` to guard name.
        permission_model: Label of the model used for permissions.
        role_model: Label of the model used for roles.
        table_names: Storage table names keyed by their logical name.
        cache_alias: Django cache alias holding the registrar version token.
        cache_key: Key of the registrar version token.
        cache_expiration: Timeout in seconds for the version token, None for no expiry.
    """

    default_guard: str
    guards: dict = field(factory=dict)
    model_guards: dict = field(factory=dict)
    permission_model: str = DEFAULTS["GUARDED_RBAC_PERMISSION_MODEL"]
    role_model: str = DEFAULTS["GUARDED_RBAC_ROLE_MODEL"]
    table_names: dict = field(factory=lambda: dict(DEFAULT_TABLE_NAMES))
    cache_alias: str = DEFAULTS["GUARDED_RBAC_CACHE_ALIAS"]
    cache_key: str = DEFAULTS["GUARDED_RBAC_CACHE_KEY"]
    cache_expiration: int | None = DEFAULTS["GUARDED_RBAC_CACHE_EXPIRATION"]


def _setting(name):
    return getattr(settings, name, DEFAULTS[name])


def get_rbac_settings() -> RbacSettings:
    """Build an ``RbacSettings`` from the current Django settings.

    Returns:
        RbacSettings: The resolved configuration.
    """
    default_guard = _setting("GUARDED_RBAC_DEFAULT_GUARD")
    guards = _setting("GUARDED_RBAC_GUARDS")
    if guards is None:
        guards = {default_guard: settings.AUTH_USER_MODEL}

    return RbacSettings(
        default_guard=default_guard,
        guards=dict(guards),
        model_guards={label.lower(): guard for label, guard in _setting("GUARDED_RBAC_MODEL_GUARDS").items()},
        permission_model=_setting("GUARDED_RBAC_PERMISSION_MODEL"),
        role_model=_setting("GUARDED_RBAC_ROLE_MODEL"),
        table_names={**DEFAULT_TABLE_NAMES, **_setting("GUARDED_RBAC_TABLE_NAMES")},
        cache_alias=_setting("GUARDED_RBAC_CACHE_ALIAS"),
        cache_key=_setting("GUARDED_RBAC_CACHE_KEY"),
        cache_expiration=_setting("GUARDED_RBAC_CACHE_EXPIRATION"),
    )


def get_table_name(name: str) -> str:
    """Get the configured storage table name for a logical table.

    Args:
        name: One of the keys of ``DEFAULT_TABLE_NAMES``.

    Returns:
        str: The table name to use.
    """
    return get_rbac_settings().table_names[name]
