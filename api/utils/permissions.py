# api/utils/permissions.py

from functools import wraps

from flask import abort
from flask_login import current_user


def get_current_role() -> str | None:
    """
    Devuelve el rol del usuario logueado ("admin", "coordenador", "professor"), o None.
    """
    if not current_user.is_authenticated:
        return None

    return getattr(current_user, "role", None)


def has_role(*role_names: str) -> bool:
    return get_current_role() in role_names


def require_roles(*role_names: str):
    """
    Decorador para limitar una vista a ciertos roles.
    Uso:
        @require_roles("admin")
        @require_roles("admin", "coordenador")
    """
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if not has_role(*role_names):
                abort(403)
            return f(*args, **kwargs)
        return wrapper
    return decorator


def is_admin() -> bool:
    return has_role("admin")


def is_staff() -> bool:
    return has_role("admin", "coordenador")
