# services/local_cache.py
from __future__ import annotations

import copy
import threading
from dataclasses import dataclass

COLLECTIONS = ("classes", "students", "skills", "assessments", "class_logs", "users")


@dataclass(frozen=True)
class CacheSnapshot:
    """Vista inmutable del cache que consume el motor de agregación."""
    classes: tuple = ()
    students: tuple = ()
    skills: tuple = ()
    assessments: tuple = ()
    class_logs: tuple = ()
    users: tuple = ()
    version: int = 0

    def find(self, collection: str, record_id):
        for record in getattr(self, collection):
            if record.get("id") == record_id:
                return record
        return None


class LocalCache:
    """
    Colecciones en memoria de las que se renderiza la UI.
    Sólo el coordinador de mutaciones y el listener de cambios escriben aquí.
    Cada colección tiene su propio lock (un escritor a la vez por colección).
    """

    def __init__(self, collections=COLLECTIONS):
        self._data: dict[str, list[dict]] = {name: [] for name in collections}
        self._locks = {name: threading.RLock() for name in collections}
        self._version = 0
        self._version_lock = threading.Lock()

    @property
    def version(self) -> int:
        return self._version

    def lock(self, collection: str) -> threading.RLock:
        return self._locks[collection]

    # -------------------------
    # LECTURA
    # -------------------------

    def all(self, collection: str) -> list[dict]:
        with self._locks[collection]:
            return copy.deepcopy(self._data[collection])

    def get(self, collection: str, record_id) -> dict | None:
        with self._locks[collection]:
            index = self._index_of(collection, record_id)
            if index is None:
                return None
            return copy.deepcopy(self._data[collection][index])

    def exists(self, collection: str, record_id) -> bool:
        if record_id is None:
            return False
        with self._locks[collection]:
            return self._index_of(collection, record_id) is not None

    def snapshot(self) -> CacheSnapshot:
        collections = {}
        for name in self._data:
            collections[name] = tuple(self.all(name))
        return CacheSnapshot(version=self._version, **collections)

    # -------------------------
    # ESCRITURA
    # -------------------------

    def append(self, collection: str, record: dict) -> bool:
        """Agrega el registro; devuelve False si ya existe uno con el mismo id."""
        with self._locks[collection]:
            if self._index_of(collection, record.get("id")) is not None:
                return False
            self._data[collection].append(copy.deepcopy(record))
            self._bump()
            return True

    def replace(self, collection: str, record: dict) -> dict | None:
        """Reemplaza por id y devuelve el registro anterior (None si no existía)."""
        with self._locks[collection]:
            index = self._index_of(collection, record.get("id"))
            if index is None:
                return None
            previous = self._data[collection][index]
            self._data[collection][index] = copy.deepcopy(record)
            self._bump()
            return previous

    def remove(self, collection: str, record_id) -> tuple[int, dict] | None:
        """Quita por id; devuelve (posición, registro) para poder restaurarlo."""
        with self._locks[collection]:
            index = self._index_of(collection, record_id)
            if index is None:
                return None
            removed = self._data[collection].pop(index)
            self._bump()
            return index, removed

    def restore(self, collection: str, record: dict, index: int | None = None) -> None:
        with self._locks[collection]:
            if self._index_of(collection, record.get("id")) is not None:
                return
            items = self._data[collection]
            position = len(items) if index is None else min(index, len(items))
            items.insert(position, copy.deepcopy(record))
            self._bump()

    def reset(self, collection: str, records: list[dict]) -> None:
        with self._locks[collection]:
            self._data[collection] = copy.deepcopy(list(records))
            self._bump()

    # -------------------------
    # HELPERS
    # -------------------------

    def _index_of(self, collection: str, record_id) -> int | None:
        for index, item in enumerate(self._data[collection]):
            if item.get("id") == record_id:
                return index
        return None

    def _bump(self) -> None:
        with self._version_lock:
            self._version += 1
