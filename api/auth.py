# api/auth.py

from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user

from services import AuthService, SessionStore, SessionUser, public_user
from api.utils import get_state

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

session_store = SessionStore()


# ----------------------------------------------
# POST: PROCESAR LOGIN
# ----------------------------------------------
@auth_bp.post("/login")
def login_submit():
    data = request.get_json(silent=True) or request.form
    email = (data.get("email") or "").strip().lower()
    password = (data.get("password") or "").strip()

    if not email or not password:
        return jsonify({"error": "Email y contraseña son obligatorios."}), 400

    user = AuthService.authenticate(get_state(), email, password)
    if not user:
        return jsonify({"error": "Credenciales inválidas."}), 401

    login_user(SessionUser(user))
    session_store.save(user)
    return jsonify({"user": public_user(user)})


# ----------------------------------------------
# LOGOUT
# ----------------------------------------------
@auth_bp.post("/logout")
@login_required
def logout():
    logout_user()
    session_store.clear()
    return jsonify({"status": "logged_out"})


# ----------------------------------------------
# USUARIO ACTUAL
# ----------------------------------------------
@auth_bp.get("/me")
@login_required
def me():
    """
    Devuelve el usuario de la sesión. Se refresca desde el cache por si
    otro administrador lo modificó.
    """
    record = get_state().cache.get("users", current_user.id)
    user = public_user(record) if record else session_store.load()
    if record:
        session_store.save(record)
    return jsonify({"user": user})
