# services/change_feed.py
from __future__ import annotations

import logging

from services.field_mapping import FIELD_MAPS, to_local
from services.local_cache import LocalCache
from services.remote_store import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)


class ChangeFeedListener:
    """
    Aplica al cache los cambios que llegan del backend (otras sesiones u otros usuarios).

    Reglas de merge:
      - INSERT: si el id ya está (lo originó esta sesión) no hace nada.
      - UPDATE: reemplaza por id; si no existe se descarta, nunca se sintetiza un alta.
      - DELETE: quita por id si está.
    Es idempotente ante reenvíos. Un DELETE que llega antes de su INSERT deja
    el registro presente: brecha de consistencia eventual aceptada.
    """

    def __init__(self, cache: LocalCache):
        self.cache = cache

    def __call__(self, change: ChangeEvent) -> None:
        self.apply(change)

    def apply(self, change: ChangeEvent) -> bool:
        """Devuelve True si el cache cambió."""
        table = change.table
        if table not in FIELD_MAPS:
            logger.debug("Cambio ignorado para tabla desconocida: %s", table)
            return False

        with self.cache.lock(table):
            if change.kind == ChangeKind.INSERT:
                if not change.new:
                    return False
                return self.cache.append(table, to_local(table, change.new))

            if change.kind == ChangeKind.UPDATE:
                if not change.new:
                    return False
                record = to_local(table, change.new)
                current = self.cache.get(table, record.get("id"))
                if current is None:
                    logger.debug("UPDATE fuera de orden descartado: %s/%s", table, record.get("id"))
                    return False
                if current == record:
                    return False
                self.cache.replace(table, record)
                return True

            if change.kind == ChangeKind.DELETE:
                source = change.old or change.new or {}
                return self.cache.remove(table, source.get("id")) is not None

        return False
