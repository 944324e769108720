"""
Test settings for guarded_rbac.
"""

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": "default.db",
        "USER": "",
        "PASSWORD": "",
        "HOST": "",
        "PORT": "",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "guarded-rbac-tests",
    }
}

INSTALLED_APPS = (
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "guarded_rbac.apps.GuardedRbacConfig",
    "guarded_rbac.tests.stubs.apps.StubsConfig",
)

AUTHENTICATION_BACKENDS = [
    "django.contrib.auth.backends.ModelBackend",
    "guarded_rbac.backends.GuardedPermissionBackend",
]

SECRET_KEY = "test-secret-key"

USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# guarded_rbac configuration
GUARDED_RBAC_DEFAULT_GUARD = "web"
GUARDED_RBAC_GUARDS = {
    "web": "auth.User",
    "api": "stubs.ApiClient",
}
GUARDED_RBAC_MODEL_GUARDS = {
    "stubs.ArchivedUser": "web",
}
GUARDED_RBAC_CACHE_KEY = "guarded_rbac.tests.permission.cache"
