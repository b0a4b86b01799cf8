# services/app_state.py
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from services.change_feed import ChangeFeedListener
from services.entities import ENTITY_RULES
from services.field_mapping import to_local
from services.local_cache import LocalCache, CacheSnapshot
from services.mutation_coordinator import MutationCoordinator
from services.remote_store import RemoteStore

logger = logging.getLogger(__name__)


class AppState:
    """
    Raíz de composición del estado: cache local, un coordinador por entidad
    y el listener de cambios. La app lo crea una vez y lo inyecta
    (app.extensions["bncc_state"]); nada lo usa como global.
    """

    def __init__(
        self,
        remote: RemoteStore,
        *,
        cache: LocalCache | None = None,
        notify: Callable[[str], None] | None = None,
        timeout: float | None = None,
    ):
        self.remote = remote
        self.cache = cache or LocalCache()
        self.connection_error: str | None = None
        self._executor = (
            ThreadPoolExecutor(max_workers=4, thread_name_prefix="remote-store") if timeout else None
        )
        self.coordinators: dict[str, MutationCoordinator] = {
            rules.table: MutationCoordinator(
                rules,
                self.cache,
                remote,
                notify=notify,
                timeout=timeout,
                executor=self._executor,
            )
            for rules in ENTITY_RULES
        }
        # Borrar una turma deja a sus alumnos sin turma (no los borra)
        self.classes.add_cascade_clear(self.students, "classId")

        self.listener = ChangeFeedListener(self.cache)
        self._unsubscribe: Callable[[], None] | None = None

    # Accesos por entidad
    @property
    def classes(self) -> MutationCoordinator:
        return self.coordinators["classes"]

    @property
    def students(self) -> MutationCoordinator:
        return self.coordinators["students"]

    @property
    def skills(self) -> MutationCoordinator:
        return self.coordinators["skills"]

    @property
    def assessments(self) -> MutationCoordinator:
        return self.coordinators["assessments"]

    @property
    def class_logs(self) -> MutationCoordinator:
        return self.coordinators["class_logs"]

    @property
    def users(self) -> MutationCoordinator:
        return self.coordinators["users"]

    def coordinator(self, table: str) -> MutationCoordinator:
        return self.coordinators[table]

    # -------------------------
    # CICLO DE VIDA
    # -------------------------

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.remote.subscribe(self.listener)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._executor is not None:
            self._executor.shutdown(wait=False)

    def load_all(self) -> bool:
        """
        Carga inicial de todas las tablas. Si alguna falla se guarda el error
        de conexión y el cache queda como estaba.
        """
        loaded = {}
        for table in self.coordinators:
            result = self.remote.select_all(table)
            if result.error is not None:
                self.connection_error = result.error.message
                logger.error("No se pudieron cargar los datos de %s: %s", table, result.error.message)
                return False
            loaded[table] = [to_local(table, row) for row in result.data or []]

        for table, records in loaded.items():
            self.cache.reset(table, records)
        self.connection_error = None
        logger.info(
            "Estado cargado: %s",
            ", ".join(f"{table}={len(records)}" for table, records in loaded.items()),
        )
        return True

    def snapshot(self) -> CacheSnapshot:
        return self.cache.snapshot()
