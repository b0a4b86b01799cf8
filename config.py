# config.py
import os


def _float_env(var_name: str, default: float | None) -> float | None:
    raw = os.environ.get(var_name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "super-secret-key")
    _BASE_DIR = os.path.abspath(os.path.dirname(__file__))
    _DEFAULT_DB_PATH = os.path.join(_BASE_DIR, "instance", "bncc_tracker.db")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or f"sqlite:///{_DEFAULT_DB_PATH}"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Segundos máximos de espera por el backend remoto (None = sin límite)
    REMOTE_STORE_TIMEOUT = _float_env("REMOTE_STORE_TIMEOUT", 10.0)
    # Carga inicial de todas las tablas al crear la app
    STATE_AUTOLOAD = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "testing-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    REMOTE_STORE_TIMEOUT = None
    STATE_AUTOLOAD = False
    LOG_LEVEL = "DEBUG"
