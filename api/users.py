# api/users.py
"""
Gestión del equipo (usuarios). Sólo admin y coordenador.
La contraseña llega en claro en el body y se hashea antes de tocar el estado.
"""
from flask import request, jsonify
from flask_login import login_required, current_user

from services import AuthService, public_user
from api.utils import get_state, outcome_response, is_confirmed
from api.utils.permissions import require_roles
from . import api_bp


def _with_password_hash(data: dict) -> dict:
    payload = dict(data)
    payload.pop("passwordHash", None)
    raw_password = payload.pop("password", None)
    if raw_password:
        payload["passwordHash"] = AuthService.hash_password(raw_password)
    if payload.get("email"):
        payload["email"] = payload["email"].strip().lower()
    return payload


@api_bp.get("/users")
@login_required
@require_roles("admin", "coordenador")
def users_list():
    return jsonify([public_user(u) for u in get_state().cache.all("users")])


@api_bp.post("/users")
@login_required
@require_roles("admin", "coordenador")
def users_create():
    data = request.get_json(silent=True) or {}
    if not data.get("password"):
        return jsonify({"error": "'password' es obligatorio"}), 400

    state = get_state()
    if AuthService.find_by_email(state, data.get("email")):
        return jsonify({"error": "Ya existe un usuario con ese email"}), 400

    try:
        payload = _with_password_hash(data)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    outcome = state.users.create(payload)
    return outcome_response(outcome, success_status=201, serializer=public_user)


@api_bp.put("/users/<user_id>")
@login_required
@require_roles("admin", "coordenador")
def users_update(user_id):
    data = request.get_json(silent=True) or {}
    if user_id == current_user.id:
        current = get_state().cache.get("users", user_id) or {}
        for key in ("status", "role"):
            if key in data and data[key] != current.get(key):
                return jsonify({"error": "No podés cambiar tu propio rol o estado"}), 400

    try:
        payload = _with_password_hash(data)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    payload["id"] = user_id

    outcome = get_state().users.update(payload)
    return outcome_response(outcome, serializer=public_user)


@api_bp.delete("/users/<user_id>")
@login_required
@require_roles("admin", "coordenador")
def users_delete(user_id):
    if user_id == current_user.id:
        return jsonify({"error": "No podés eliminar tu propio usuario"}), 400

    confirmed = is_confirmed()
    outcome = get_state().users.delete(user_id, confirm=lambda prompt: confirmed)
    return outcome_response(outcome, serializer=public_user)


@api_bp.post("/users/<user_id>/toggle-status")
@login_required
@require_roles("admin", "coordenador")
def users_toggle_status(user_id):
    if user_id == current_user.id:
        return jsonify({"error": "No podés inactivar tu propio usuario"}), 400

    confirmed = is_confirmed()
    outcome = get_state().users.toggle_status(user_id, confirm=lambda prompt: confirmed)
    return outcome_response(outcome, serializer=public_user)
