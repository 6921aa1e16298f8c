"""Draft editing sessions and their persistence backends.

- store.py: PersistenceBackend protocol, InMemoryStore, YamlFileStore
- debounce.py: Debouncer used to coalesce bursts of edits
- session.py: DraftSession (load, debounced save, publish, history)
"""

from .debounce import Debouncer
from .session import DraftSession
from .store import InMemoryStore, PersistenceBackend, YamlFileStore

__all__ = [
    "Debouncer",
    "DraftSession",
    "InMemoryStore",
    "PersistenceBackend",
    "YamlFileStore",
]
