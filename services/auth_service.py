# services/auth_service.py
from __future__ import annotations

import logging

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from models import RecordStatus
from services.app_state import AppState

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class SessionUser(UserMixin):
    """Adaptador de un registro de usuario del cache para Flask-Login."""

    def __init__(self, record: dict):
        self.record = record
        self.id = record["id"]

    @property
    def role(self) -> str | None:
        return self.record.get("role")

    @property
    def name(self) -> str | None:
        return self.record.get("name")

    @property
    def is_active(self) -> bool:
        return self.record.get("status", RecordStatus.ACTIVE.value) == RecordStatus.ACTIVE.value


class AuthService:
    """
    Verificación de credenciales contra los usuarios cargados en el cache.
    Las contraseñas se guardan hasheadas (werkzeug) y se comparan en tiempo constante.
    """

    @staticmethod
    def hash_password(raw_password: str) -> str:
        if not raw_password or len(raw_password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres.")
        return generate_password_hash(raw_password)

    @staticmethod
    def find_by_email(state: AppState, email: str) -> dict | None:
        normalized = (email or "").strip().lower()
        if not normalized:
            return None
        for user in state.cache.all("users"):
            if (user.get("email") or "").strip().lower() == normalized:
                return user
        return None

    @staticmethod
    def authenticate(state: AppState, email: str, password: str) -> dict | None:
        user = AuthService.find_by_email(state, email)
        if not user:
            return None
        if user.get("status") == RecordStatus.INACTIVE.value:
            logger.info("Login rechazado para usuario inactivo %s", user.get("id"))
            return None
        password_hash = user.get("passwordHash")
        if not password_hash or not check_password_hash(password_hash, password or ""):
            return None
        return user

    @staticmethod
    def load_session_user(state: AppState, user_id: str) -> SessionUser | None:
        record = state.cache.get("users", user_id)
        if not record:
            return None
        session_user = SessionUser(record)
        return session_user if session_user.is_active else None
