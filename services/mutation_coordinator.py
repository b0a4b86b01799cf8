# services/mutation_coordinator.py
"""
Coordinador de mutaciones optimistas.

Aplica el cambio en el cache local de inmediato, lo replica en el backend
remoto y reconcilia según la respuesta: confirma o revierte. Una instancia
por tipo de entidad, parametrizada con unas `EntityRules`.
"""
from __future__ import annotations

import logging
from concurrent.futures import Executor, TimeoutError as FuturesTimeout
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

from services.errors import (
    MutationError,
    RemoteRejected,
    ValidationFailed,
    DependencyBlocked,
    StaleReference,
)
from services.field_mapping import local_fields, to_remote
from services.identifiers import new_record_id
from services.local_cache import LocalCache
from services.remote_store import RemoteStore, RemoteResult

logger = logging.getLogger(__name__)

ACTIVE = "active"
INACTIVE = "inactive"


@dataclass(frozen=True)
class EntityRules:
    table: str
    label: str
    required: tuple[str, ...] = ()
    choices: Mapping[str, type[Enum]] = field(default_factory=dict)
    numeric: tuple[str, ...] = ()
    # campo -> colección referenciada; los campos lista se filtran miembro a miembro
    references: Mapping[str, str] = field(default_factory=dict)
    set_fields: tuple[str, ...] = ()
    defaults: Mapping[str, Any] = field(default_factory=dict)
    dependents: Callable[[LocalCache, str], int] | None = None
    has_status: bool = False
    id_field: str = "id"


@dataclass
class MutationOutcome:
    ok: bool
    action: str
    record: dict | None = None
    error: str | None = None
    error_kind: str | None = None
    prompt: str | None = None

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "action": self.action,
            "record": self.record,
            "error": self.error,
            "error_kind": self.error_kind,
            "prompt": self.prompt,
        }


def validate_ref(cache: LocalCache, collection: str, ref_id):
    """Devuelve el id si existe en la colección, None si la referencia quedó colgando."""
    if ref_id is None or ref_id == "":
        return None
    return ref_id if cache.exists(collection, ref_id) else None


class MutationCoordinator:
    def __init__(
        self,
        rules: EntityRules,
        cache: LocalCache,
        remote: RemoteStore,
        *,
        notify: Callable[[str], None] | None = None,
        timeout: float | None = None,
        executor: Executor | None = None,
    ):
        self.rules = rules
        self.cache = cache
        self.remote = remote
        self.notify = notify
        self.timeout = timeout
        self.executor = executor
        self._cascade_clear: list[tuple[MutationCoordinator, str]] = []

    @property
    def table(self) -> str:
        return self.rules.table

    def add_cascade_clear(self, coordinator: MutationCoordinator, field_name: str) -> None:
        """Antes de un borrado físico, anula `field_name` en los registros de `coordinator` que apunten aquí."""
        self._cascade_clear.append((coordinator, field_name))

    # -------------------------
    # CREATE
    # -------------------------

    def create(self, record: dict) -> MutationOutcome:
        try:
            prepared = self._prepare(record, creating=True)
        except ValidationFailed as exc:
            return self._fail("create", exc, "validation")

        record_id = prepared[self.rules.id_field]
        with self.cache.lock(self.table):
            if not self.cache.append(self.table, prepared):
                exc = ValidationFailed(self.rules.id_field, f"Ya existe un registro con id {record_id}")
                return self._fail("create", exc, "validation")

        try:
            self._call_remote(self.remote.insert, self.table, to_remote(self.table, prepared))
        except RemoteRejected as exc:
            with self.cache.lock(self.table):
                self.cache.remove(self.table, record_id)
            return self._fail("create", exc, "remote")

        logger.info("Alta de %s %s confirmada", self.rules.label, record_id)
        return MutationOutcome(ok=True, action="created", record=prepared)

    # -------------------------
    # UPDATE
    # -------------------------

    def update(self, record: dict) -> MutationOutcome:
        record_id = record.get(self.rules.id_field)
        previous = self.cache.get(self.table, record_id)
        if previous is None:
            return self._not_found("update", record_id)

        try:
            merged = self._prepare({**previous, **record}, creating=False)
        except ValidationFailed as exc:
            return self._fail("update", exc, "validation")

        return self._apply_update(previous, merged, action="updated")

    # -------------------------
    # DELETE
    # -------------------------

    def delete(self, record_id, confirm: Callable[[str], bool] | None = None) -> MutationOutcome:
        """
        Borrado en dos niveles:
          - con dependientes → baja lógica (status=inactive) previa confirmación.
          - sin dependientes → borrado físico optimista con restauración si falla.
        """
        current = self.cache.get(self.table, record_id)
        if current is None:
            return self._not_found("delete", record_id)

        dependents = self.rules.dependents(self.cache, record_id) if self.rules.dependents else 0
        if dependents:
            blocked = DependencyBlocked(self.table, record_id, dependents)
            if not self.rules.has_status:
                return self._fail("delete", blocked, "blocked")
            logger.info("%s; se ofrece baja lógica", blocked)
            prompt = (
                f"{self.rules.label.capitalize()} '{self._display_name(current)}' tiene "
                f"{dependents} registro(s) vinculado(s) y será inactivado en lugar de eliminado. ¿Continuar?"
            )
            if not self._ask(confirm, prompt):
                return self._cancelled("delete", prompt)
            return self._apply_update(
                current, {**current, "status": INACTIVE}, action="soft_deleted", prompt=prompt
            )

        return self._hard_delete(current)

    def toggle_status(
        self,
        record_id,
        current_status: str | None = None,
        confirm: Callable[[str], bool] | None = None,
    ) -> MutationOutcome:
        current = self.cache.get(self.table, record_id)
        if current is None:
            return self._not_found("toggle_status", record_id)
        if not self.rules.has_status:
            exc = ValidationFailed("status", f"'{self.table}' no maneja estado activo/inactivo")
            return self._fail("toggle_status", exc, "validation")

        status = current_status or current.get("status") or ACTIVE
        new_status = INACTIVE if status == ACTIVE else ACTIVE
        verb = "inactivar" if new_status == INACTIVE else "reactivar"
        prompt = f"¿Confirmás {verb} {self.rules.label} '{self._display_name(current)}'?"
        if not self._ask(confirm, prompt):
            return self._cancelled("toggle_status", prompt)

        return self._apply_update(
            current, {**current, "status": new_status}, action="status_toggled", prompt=prompt
        )

    # -------------------------
    # INTERNOS
    # -------------------------

    def _apply_update(self, previous: dict, merged: dict, *, action: str, prompt: str | None = None) -> MutationOutcome:
        record_id = previous[self.rules.id_field]
        changed = [key for key in merged if previous.get(key) != merged.get(key)]
        if not changed:
            return MutationOutcome(ok=True, action="unchanged", record=previous, prompt=prompt)

        with self.cache.lock(self.table):
            snapshot = self.cache.replace(self.table, merged)
        if snapshot is None:
            return self._not_found(action, record_id)

        try:
            self._call_remote(
                self.remote.update, self.table, record_id, to_remote(self.table, merged, fields=changed)
            )
        except RemoteRejected as exc:
            with self.cache.lock(self.table):
                if self.cache.replace(self.table, snapshot) is None:
                    self.cache.restore(self.table, snapshot)
            return self._fail(action, exc, "remote", prompt=prompt)

        logger.info("%s %s: %s (%s)", self.rules.label.capitalize(), record_id, action, ", ".join(changed))
        return MutationOutcome(ok=True, action=action, record=merged, prompt=prompt)

    def _hard_delete(self, current: dict) -> MutationOutcome:
        record_id = current[self.rules.id_field]

        # con dependientes no se llega aquí; cubre alumnos que el feed haya agregado después del chequeo
        for coordinator, field_name in self._cascade_clear:
            for child in coordinator.cache.all(coordinator.table):
                if child.get(field_name) != record_id:
                    continue
                outcome = coordinator.update({coordinator.rules.id_field: child[coordinator.rules.id_field], field_name: None})
                if not outcome.ok:
                    return MutationOutcome(
                        ok=False, action="delete", error=outcome.error, error_kind=outcome.error_kind
                    )

        with self.cache.lock(self.table):
            removed = self.cache.remove(self.table, record_id)
        if removed is None:
            return self._not_found("delete", record_id)
        index, record = removed

        try:
            self._call_remote(self.remote.delete, self.table, record_id)
        except RemoteRejected as exc:
            with self.cache.lock(self.table):
                self.cache.restore(self.table, record, index)
            return self._fail("delete", exc, "remote")

        logger.info("Borrado físico de %s %s", self.rules.label, record_id)
        return MutationOutcome(ok=True, action="hard_deleted", record=record)

    def _prepare(self, record: dict, *, creating: bool) -> dict:
        rules = self.rules
        # sólo campos con columna remota; el resto nunca llegaría a persistirse
        allowed = set(local_fields(rules.table))
        prepared = {key: value for key, value in record.items() if key in allowed}

        if creating:
            for key, default in rules.defaults.items():
                if prepared.get(key) is None:
                    prepared[key] = default() if callable(default) else default
            if not prepared.get(rules.id_field):
                prepared[rules.id_field] = new_record_id()

        for name in rules.required:
            value = prepared.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationFailed(name)

        for name, enum_cls in rules.choices.items():
            value = prepared.get(name)
            if value is not None and value not in {member.value for member in enum_cls}:
                raise ValidationFailed(name, f"Valor inválido para '{name}': {value}")

        for name in rules.numeric:
            value = prepared.get(name)
            if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
                raise ValidationFailed(name, f"'{name}' debe ser numérico")

        for name in rules.set_fields:
            values = prepared.get(name)
            if values is not None:
                prepared[name] = list(dict.fromkeys(values))

        for name, collection in rules.references.items():
            prepared[name] = self._guard_reference(name, collection, prepared.get(name))

        return prepared

    def _guard_reference(self, name: str, collection: str, value):
        if isinstance(value, (list, tuple)):
            kept = [ref for ref in value if validate_ref(self.cache, collection, ref) is not None]
            for ref in value:
                if ref not in kept:
                    logger.debug("%s", StaleReference(name, ref))
            return kept
        guarded = validate_ref(self.cache, collection, value)
        if value not in (None, "") and guarded is None:
            logger.debug("%s", StaleReference(name, value))
        return guarded

    def _call_remote(self, operation: Callable[..., RemoteResult], *args) -> RemoteResult:
        try:
            if self.timeout and self.executor is not None:
                future = self.executor.submit(operation, *args)
                result = future.result(timeout=self.timeout)
            else:
                result = operation(*args)
        except FuturesTimeout:
            raise RemoteRejected(f"tiempo de espera agotado ({self.timeout:g}s)")
        except Exception as exc:
            logger.exception("Fallo inesperado del backend remoto en %s", self.table)
            raise RemoteRejected(str(exc)) from exc

        if result.error is not None:
            raise RemoteRejected(result.error.message)
        return result

    @staticmethod
    def _ask(confirm: Callable[[str], bool] | None, prompt: str) -> bool:
        if confirm is None:
            return False
        return bool(confirm(prompt))

    @staticmethod
    def _display_name(record: dict) -> str:
        return str(record.get("name") or record.get("code") or record.get("id"))

    def _cancelled(self, action: str, prompt: str) -> MutationOutcome:
        return MutationOutcome(
            ok=False, action=action, error="Operación cancelada", error_kind="cancelled", prompt=prompt
        )

    def _not_found(self, action: str, record_id) -> MutationOutcome:
        exc = ValidationFailed(self.rules.id_field, f"No existe {self.rules.label} con id {record_id}")
        return self._fail(action, exc, "not_found")

    def _fail(self, action: str, exc: MutationError, kind: str, prompt: str | None = None) -> MutationOutcome:
        message = exc.user_message()
        logger.warning("%s de %s falló (%s): %s", action, self.rules.label, kind, message)
        if self.notify is not None:
            self.notify(message)
        return MutationOutcome(ok=False, action=action, error=message, error_kind=kind, prompt=prompt)
