"""Result cache providers.

MemoryResultCache keeps results in process memory.  For multi-worker
deployments, a shared store implementing ICacheProvider can replace it
without touching the coordinator.
"""

from name_verifier.providers.cache.memory_cache import MemoryResultCache

__all__ = ["MemoryResultCache"]
