# services/session_store.py
from __future__ import annotations

from flask import session

PUBLIC_USER_FIELDS = ("id", "name", "email", "role", "status")


def public_user(record: dict | None) -> dict | None:
    """Copia del usuario sin el hash de contraseña."""
    if record is None:
        return None
    return {key: record.get(key) for key in PUBLIC_USER_FIELDS}


class SessionStore:
    """
    Persiste el usuario autenticado entre recargas (cookie de sesión de Flask).
    Sólo guarda un blob con forma de usuario.
    """

    KEY = "current_user"

    def load(self) -> dict | None:
        return session.get(self.KEY)

    def save(self, user: dict) -> None:
        session[self.KEY] = public_user(user)

    def clear(self) -> None:
        session.pop(self.KEY, None)
