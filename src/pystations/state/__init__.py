"""State layer.

:class:`StationCache` is the single source of truth for every view:
an ordered in-memory snapshot of the station collection, replaced
wholesale each time the store pushes a new result set.
"""

from pystations.state.cache import CacheListener, StationCache
from pystations.state.events import CacheChange, CacheState

__all__ = ["CacheChange", "CacheListener", "CacheState", "StationCache"]
