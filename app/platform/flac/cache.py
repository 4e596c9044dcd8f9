"""
Permission cache for the Field Permission Table.

Entries are keyed by ``(role, parameter_id)`` plus one per-role map used by
list projections. Invalidation bumps a generation counter stored in the
same backend, so every process sees a clear on its next lookup.

Writers clear once inside their transaction and once after it commits
(``invalidate_permissions``). A lookup that runs while the write is still
uncommitted may cache the old rows, but the commit-time clear drops them;
the stale window is bounded by the transaction, not by the entry timeout.
"""
import logging
from typing import Dict, Optional

from django.conf import settings
from django.core.cache import caches

from app.platform.rbac.utils import FieldCapabilities

logger = logging.getLogger(__name__)

GENERATION_KEY = "flac:perm:generation"


class PermissionCache:
    def __init__(self, alias: Optional[str] = None, timeout: Optional[int] = None):
        self.alias = alias or getattr(settings, "FLAC_PERMISSION_CACHE_ALIAS", "default")
        self.timeout = timeout if timeout is not None else getattr(settings, "FLAC_PERMISSION_CACHE_TIMEOUT", 300)

    @property
    def backend(self):
        return caches[self.alias]

    def _generation(self) -> int:
        generation = self.backend.get(GENERATION_KEY)
        if generation is None:
            self.backend.add(GENERATION_KEY, 1, timeout=None)
            generation = self.backend.get(GENERATION_KEY) or 1
        return generation

    def _key(self, role, suffix) -> str:
        return f"flac:perm:{self._generation()}:{role}:{suffix}"

    # single (role, parameter) entries
    def get(self, role, parameter_id) -> Optional[FieldCapabilities]:
        cached = self.backend.get(self._key(role, parameter_id))
        if cached is None:
            return None
        return FieldCapabilities(*cached)

    def set(self, role, parameter_id, caps: FieldCapabilities) -> None:
        self.backend.set(self._key(role, parameter_id), tuple(caps), timeout=self.timeout)

    # whole-role maps
    def get_role_map(self, role) -> Optional[Dict[str, FieldCapabilities]]:
        cached = self.backend.get(self._key(role, "*"))
        if cached is None:
            return None
        return {pid: FieldCapabilities(*flags) for pid, flags in cached.items()}

    def set_role_map(self, role, mapping: Dict[str, FieldCapabilities]) -> None:
        payload = {str(pid): tuple(caps) for pid, caps in mapping.items()}
        self.backend.set(self._key(role, "*"), payload, timeout=self.timeout)

    def clear(self) -> None:
        try:
            self.backend.incr(GENERATION_KEY)
        except ValueError:
            # counter evicted or never written
            self.backend.set(GENERATION_KEY, 2, timeout=None)
        logger.debug("Permission cache invalidated")


class NullPermissionCache:
    """Drop-in cache that never stores anything."""

    def get(self, role, parameter_id):
        return None

    def set(self, role, parameter_id, caps):
        pass

    def get_role_map(self, role):
        return None

    def set_role_map(self, role, mapping):
        pass

    def clear(self):
        pass


_default_cache = None


def get_permission_cache() -> PermissionCache:
    """Process-wide cache used when a service is built without one."""
    global _default_cache
    if _default_cache is None:
        _default_cache = PermissionCache()
    return _default_cache
