"""Host graph contract and the in-memory reference host."""

from menusync.host.base import HostGraph
from menusync.host.memory import InMemoryHostGraph

__all__ = ["HostGraph", "InMemoryHostGraph"]
