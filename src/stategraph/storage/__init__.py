# storage - Checkpoint persistence backends
from .base import CheckpointStore, InMemoryStore

__all__ = [
    "CheckpointStore",
    "InMemoryStore",
]
