# services/remote_store.py
"""
Contrato del backend remoto (persistencia + notificaciones de cambios) y su
implementación sobre Flask-SQLAlchemy.

El núcleo (cache, coordinador, listener) sólo conoce `RemoteStore`; cualquier
backend que respete estos cinco métodos puede reemplazar al de SQLAlchemy.
"""
from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Callable

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import ClassGroup, Student, Skill, Assessment, ClassDailyLog, User

logger = logging.getLogger(__name__)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignora las FK si no se activan por conexión
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@dataclass
class RemoteError:
    message: str


@dataclass
class RemoteResult:
    data: list[dict] | None = None
    error: RemoteError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ChangeKind(Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass
class ChangeEvent:
    """Notificación de cambio en formato remoto (snake_case)."""
    table: str
    kind: ChangeKind
    new: dict | None = None
    old: dict | None = None


ChangeHandler = Callable[[ChangeEvent], None]


class RemoteStore:
    """
    Interfaz abstracta. Los errores se devuelven en `RemoteResult.error`,
    no como excepciones.
    """

    def __init__(self):
        self._subscribers: list[ChangeHandler] = []
        self._subscribers_lock = threading.Lock()

    def insert(self, table: str, record: dict) -> RemoteResult:
        raise NotImplementedError

    def update(self, table: str, record_id: str, patch: dict) -> RemoteResult:
        raise NotImplementedError

    def delete(self, table: str, record_id: str) -> RemoteResult:
        raise NotImplementedError

    def select_all(self, table: str) -> RemoteResult:
        raise NotImplementedError

    def subscribe(self, on_change: ChangeHandler) -> Callable[[], None]:
        """Registra un handler y devuelve la función para desuscribirlo."""
        with self._subscribers_lock:
            self._subscribers.append(on_change)

        def unsubscribe():
            with self._subscribers_lock:
                if on_change in self._subscribers:
                    self._subscribers.remove(on_change)

        return unsubscribe

    def publish(self, change: ChangeEvent) -> None:
        with self._subscribers_lock:
            handlers = list(self._subscribers)
        for handler in handlers:
            try:
                handler(change)
            except Exception:
                # El cambio ya está confirmado en la base; un handler roto no lo revierte
                logger.exception("Handler de cambios falló para %s/%s", change.table, change.kind.value)


TABLE_MODELS = {
    "classes": ClassGroup,
    "students": Student,
    "skills": Skill,
    "assessments": Assessment,
    "class_logs": ClassDailyLog,
    "users": User,
}


class SqlAlchemyRemoteStore(RemoteStore):
    """
    Backend remoto respaldado por las tablas de Flask-SQLAlchemy.
    Cada operación abre su propio app context, así puede ejecutarse
    desde el executor del coordinador.
    """

    def __init__(self, app, models: dict | None = None):
        super().__init__()
        self._app = app
        self._models = models or TABLE_MODELS

    # -------------------------
    # OPERACIONES
    # -------------------------

    def insert(self, table: str, record: dict) -> RemoteResult:
        model = self._models.get(table)
        if model is None:
            return self._unknown_table(table)

        with self._app.app_context():
            try:
                instance = model(**self._coerce(model, record))
                db.session.add(instance)
                db.session.commit()
                row = self._serialize(instance)
            except (SQLAlchemyError, ValueError, TypeError) as exc:
                db.session.rollback()
                return self._failure("insert", table, exc)

        self.publish(ChangeEvent(table=table, kind=ChangeKind.INSERT, new=row))
        return RemoteResult(data=[row])

    def update(self, table: str, record_id: str, patch: dict) -> RemoteResult:
        model = self._models.get(table)
        if model is None:
            return self._unknown_table(table)

        with self._app.app_context():
            try:
                instance = db.session.get(model, record_id)
                if instance is None:
                    return RemoteResult(error=RemoteError(f"Registro {record_id} no encontrado en {table}"))
                old_row = self._serialize(instance)
                for key, value in self._coerce(model, patch).items():
                    if key == "id":
                        continue
                    setattr(instance, key, value)
                db.session.commit()
                row = self._serialize(instance)
            except (SQLAlchemyError, ValueError, TypeError) as exc:
                db.session.rollback()
                return self._failure("update", table, exc)

        self.publish(ChangeEvent(table=table, kind=ChangeKind.UPDATE, new=row, old=old_row))
        return RemoteResult(data=[row])

    def delete(self, table: str, record_id: str) -> RemoteResult:
        model = self._models.get(table)
        if model is None:
            return self._unknown_table(table)

        with self._app.app_context():
            try:
                instance = db.session.get(model, record_id)
                if instance is None:
                    return RemoteResult(error=RemoteError(f"Registro {record_id} no encontrado en {table}"))
                old_row = self._serialize(instance)
                db.session.delete(instance)
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                return self._failure("delete", table, exc)

        self.publish(ChangeEvent(table=table, kind=ChangeKind.DELETE, old=old_row))
        return RemoteResult(data=[old_row])

    def select_all(self, table: str) -> RemoteResult:
        model = self._models.get(table)
        if model is None:
            return self._unknown_table(table)

        with self._app.app_context():
            try:
                rows = db.session.execute(db.select(model)).scalars().all()
                return RemoteResult(data=[self._serialize(row) for row in rows])
            except SQLAlchemyError as exc:
                return self._failure("select", table, exc)

    # -------------------------
    # HELPERS
    # -------------------------

    @staticmethod
    def _coerce(model, payload: dict) -> dict:
        """
        Convierte valores JSON (fechas ISO, valores de enum) a los tipos de columna.
        """
        columns = model.__table__.columns
        values = {}
        for key, value in payload.items():
            column = columns.get(key)
            if column is None:
                raise ValueError(f"Columna desconocida '{key}' en {model.__tablename__}")
            if isinstance(column.type, sa.Date) and isinstance(value, str) and not value.strip():
                # campo de fecha opcional dejado en blanco en el formulario
                value = None
            if value is not None:
                if isinstance(column.type, sa.Date) and isinstance(value, str):
                    value = date.fromisoformat(value)
                elif isinstance(column.type, sa.Enum) and column.type.enum_class and isinstance(value, str):
                    value = column.type.enum_class(value)
            values[key] = value
        return values

    @staticmethod
    def _serialize(instance) -> dict:
        row = {}
        for column in instance.__table__.columns:
            value = getattr(instance, column.key)
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, (date, datetime)):
                value = value.isoformat()
            row[column.key] = value
        return row

    @staticmethod
    def _error_message(exc: Exception) -> str:
        original = getattr(exc, "orig", None)
        return str(original or exc)

    def _failure(self, operation: str, table: str, exc: Exception) -> RemoteResult:
        message = self._error_message(exc)
        logger.warning("Backend rechazó %s en %s: %s", operation, table, message)
        return RemoteResult(error=RemoteError(message))

    @staticmethod
    def _unknown_table(table: str) -> RemoteResult:
        return RemoteResult(error=RemoteError(f"Tabla desconocida: {table}"))
