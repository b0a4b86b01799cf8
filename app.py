# app.py
import os

from flask import Flask, current_app, jsonify

from config import Config
from extensions import db, login_manager, migrate
from services import AppState, AuthService, SqlAlchemyRemoteStore


def create_app(config_object=Config) -> Flask:
    """
    App factory.
    - Carga configuración
    - Inicializa extensiones
    - Arma el estado (cache + coordinadores + listener) sobre el backend SQLAlchemy
    - Registra blueprints
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    os.makedirs(app.instance_path, exist_ok=True)

    # Extensiones
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    # Estado de la aplicación
    remote = SqlAlchemyRemoteStore(app)
    state = AppState(remote, timeout=app.config.get("REMOTE_STORE_TIMEOUT"))
    state.start()
    app.extensions["bncc_state"] = state

    # User loader para Flask-Login
    @login_manager.user_loader
    def load_user(user_id: str):
        return AuthService.load_session_user(current_app.extensions["bncc_state"], user_id)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Autenticación requerida"}), 401

    # Blueprints de la capa API
    from api import api_bp
    from api.auth import auth_bp

    app.register_blueprint(api_bp)
    app.register_blueprint(auth_bp)

    @app.errorhandler(403)
    def forbidden(exc):
        return jsonify({"error": "No tenés permisos para esta acción"}), 403

    @app.get("/")
    def health():
        return jsonify(
            {
                "status": "ok" if state.connection_error is None else "degraded",
                "connection_error": state.connection_error,
                "cache_version": state.cache.version,
            }
        )

    if app.config.get("STATE_AUTOLOAD"):
        # Si las tablas no existen todavía (sin migrar) queda registrado en connection_error
        if not state.load_all():
            app.logger.warning("Carga inicial incompleta: %s", state.connection_error)

    return app
