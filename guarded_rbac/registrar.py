"""
Process-wide permission cache.

The registrar keeps the full permission set of the process in memory, each
permission with its role links prefetched, so authorization checks do not query
storage. The snapshot is tagged with a version token stored in a Django cache;
``forget_cached_permissions`` writes a new token, which makes every process that
shares that cache reload on its next read.

Usage:
    registrar = PermissionRegistrar()
    registrar.get_permissions()
    registrar.forget_cached_permissions()

One registrar is built by ``GuardedRbacConfig.ready`` and injected into the
stores; see ``guarded_rbac.apps``.
"""

import logging
import threading
from functools import partial
from uuid import uuid4

from django.apps import apps
from django.core.cache import caches
from django.db import transaction

from guarded_rbac.api.data import GuardedKey
from guarded_rbac.conf import get_rbac_settings
from guarded_rbac.exceptions import storage_errors

logger = logging.getLogger(__name__)


class PermissionRegistrar:
    """Read-through cache of every Permission record.

    The Django cache named by ``cache_alias`` is a required collaborator: every
    read checks the version token in it and every invalidation writes one. Errors
    raised by that cache backend are not translated and reach the caller as the
    backend raises them, unlike storage errors, which become ``StorageError``.

    Attributes:
        cache_alias (str): Django cache alias holding the version token.
        cache_key (str): Key of the version token.
        cache_expiration (int | None): Timeout of the version token in seconds.
    """

    def __init__(self, cache_alias: str = None, cache_key: str = None, cache_expiration: int = None):
        rbac_settings = get_rbac_settings()
        self.cache_alias = cache_alias or rbac_settings.cache_alias
        self.cache_key = cache_key or rbac_settings.cache_key
        self.cache_expiration = cache_expiration if cache_expiration is not None else rbac_settings.cache_expiration

        self._lock = threading.Lock()
        self._snapshot = None
        self._loaded_version = None
        self._local = threading.local()

    @property
    def cache(self):
        """The Django cache backend holding the version token."""
        return caches[self.cache_alias]

    def get_permission_model(self):
        """Get the configured permission model class."""
        return apps.get_model(get_rbac_settings().permission_model)

    def get_permissions(self) -> tuple:
        """Get every permission, reloading from storage when the cache is stale.

        Only one reload runs at a time; callers that wait on the lock reuse the
        snapshot loaded by the caller that held it.

        Returns:
            tuple[Permission, ...]: The cached permissions, roles prefetched.

        Raises:
            StorageError: If reloading from storage fails.
        """
        permissions, _ = self._get_snapshot()
        return permissions

    def get_permission(self, name: str, guard_name: str):
        """Get a cached permission by name and guard.

        Args:
            name: Permission name.
            guard_name: Guard the permission belongs to.

        Returns:
            Permission | None: The permission, or None if it is not cached.
        """
        _, index = self._get_snapshot()
        return index.get(GuardedKey(name=name, guard_name=guard_name))

    def get_permissions_for_guard(self, guard_name: str) -> list:
        """Get the cached permissions of one guard.

        Args:
            guard_name: Guard to filter by.

        Returns:
            list[Permission]: Permissions whose guard is ``guard_name``.
        """
        return [permission for permission in self.get_permissions() if permission.guard_name == guard_name]

    def forget_cached_permissions(self):
        """Invalidate the cache in this process and every process sharing it.

        Call it after the write it follows, never before. Inside a transaction the
        token is written again on commit so that a reload made before the commit
        does not survive it. Until then this thread reads from a private snapshot,
        which is dropped as soon as the write is rolled back.
        """
        self._bump_version()
        if transaction.get_connection().in_atomic_block:
            bump = partial(self._bump_version)
            transaction.on_commit(bump)
            self._local.pending = [*self._get_pending(), bump]

    def _bump_version(self):
        version = uuid4().hex
        self.cache.set(self.cache_key, version, self.cache_expiration)
        with self._lock:
            self._snapshot = None
        logger.info(f"Invalidated permission cache (version {version})")

    def _get_pending(self) -> tuple:
        """Get this thread's invalidations whose writes are neither committed nor rolled back.

        Django drops the commit callbacks of a transaction or savepoint when it
        rolls back, and runs then clears them when it commits, so an invalidation
        is pending while its callback is still registered.
        """
        pending = getattr(self._local, "pending", [])
        connection = transaction.get_connection()
        if pending and connection.in_atomic_block:
            registered = {id(entry[1]) for entry in connection.run_on_commit}
            pending = [bump for bump in pending if id(bump) in registered]
        else:
            pending = []

        self._local.pending = pending
        if not pending:
            self._local.snapshot = None
        return tuple(pending)

    def _get_snapshot(self) -> tuple:
        """Get the (permissions, index) pair, reloading it if it is stale."""
        version = self._get_version()

        pending = self._get_pending()
        if pending:
            return self._get_transaction_snapshot(version, pending)

        with self._lock:
            if self._snapshot is None or version != self._loaded_version:
                self._snapshot = self._build_snapshot(version)
                self._loaded_version = version
            return self._snapshot

    def _get_transaction_snapshot(self, version: str, pending: tuple) -> tuple:
        """Get the snapshot of a thread whose transaction holds uncommitted writes.

        It is never shared with other threads, and it is reloaded whenever one of
        the pending invalidations goes away.
        """
        key = (version, pending)
        cached = getattr(self._local, "snapshot", None)
        if cached is None or cached[0] != key:
            cached = (key, self._build_snapshot(version))
            self._local.snapshot = cached
        return cached[1]

    def _build_snapshot(self, version: str) -> tuple:
        permissions = self._load_permissions()
        index = {GuardedKey.for_record(permission): permission for permission in permissions}
        logger.info(f"Loaded {len(permissions)} permissions into the registrar (version {version})")
        return permissions, index

    def _get_version(self) -> str:
        """Get the current version token, creating one if the cache has none."""
        version = self.cache.get(self.cache_key)
        if version is None:
            # add() keeps the first token when several callers race here.
            self.cache.add(self.cache_key, uuid4().hex, self.cache_expiration)
            version = self.cache.get(self.cache_key)
        return version

    def _load_permissions(self) -> tuple:
        """Query storage for every permission with its roles."""
        with storage_errors():
            return tuple(self.get_permission_model().objects.prefetch_related("roles"))
