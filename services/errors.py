# services/errors.py
from __future__ import annotations


class MutationError(Exception):
    """Base de los errores que el coordinador convierte en mensajes para el usuario."""

    def user_message(self) -> str:
        return str(self)


class RemoteRejected(MutationError):
    """El backend remoto devolvió un error (o no respondió a tiempo)."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def user_message(self) -> str:
        return f"Error al guardar: {self.reason}"


class ValidationFailed(MutationError):
    """Falta un campo obligatorio o tiene un valor fuera del dominio."""

    def __init__(self, field: str, detail: str | None = None):
        super().__init__(detail or f"'{field}' es obligatorio")
        self.field = field
        self.detail = detail


class DependencyBlocked(MutationError):
    """
    Borrado físico pedido sobre un registro con dependientes.
    No es un fallo duro: el coordinador lo deriva a la baja lógica con confirmación.
    """

    def __init__(self, table: str, record_id: str, dependents: int):
        super().__init__(
            f"El registro {record_id} de '{table}' tiene {dependents} registro(s) dependiente(s)"
        )
        self.table = table
        self.record_id = record_id
        self.dependents = dependents


class StaleReference(MutationError):
    """Una clave foránea apunta a un registro que ya no existe; se anula en silencio."""

    def __init__(self, field: str, ref_id):
        super().__init__(f"Referencia obsoleta en '{field}': {ref_id}")
        self.field = field
        self.ref_id = ref_id
