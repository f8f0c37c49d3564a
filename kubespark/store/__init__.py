"""Record store accessors.

Submodules:
    base        -- ResourceAccessor ABC and its signalling contract.
    memory      -- InMemoryAccessor: dict-backed store with API-server semantics.
    kubernetes  -- KubernetesAccessor: kubernetes-asyncio backed store.
"""

from kubespark.store.base import ResourceAccessor
from kubespark.store.memory import InMemoryAccessor

__all__ = ["InMemoryAccessor", "ResourceAccessor"]
