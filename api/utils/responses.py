# api/utils/responses.py

from flask import current_app, jsonify, request

from services import AppState, MutationOutcome

ERROR_STATUS = {
    "validation": 400,
    "not_found": 404,
    "cancelled": 409,
    "blocked": 409,
    "remote": 502,
}


def get_state() -> AppState:
    return current_app.extensions["bncc_state"]


def is_confirmed() -> bool:
    """
    La confirmación del operador llega como ?confirm=1 (o "confirm": true en el body).
    """
    raw = request.args.get("confirm")
    if raw is None:
        raw = (request.get_json(silent=True) or {}).get("confirm")
    return str(raw).strip().lower() in {"1", "true", "yes", "sim", "si"}


def outcome_response(outcome: MutationOutcome, success_status: int = 200, serializer=None):
    payload = outcome.to_dict()
    if serializer is not None and outcome.record is not None:
        payload["record"] = serializer(outcome.record)

    if outcome.ok:
        return jsonify(payload), success_status

    if outcome.error_kind == "cancelled":
        payload["confirmation_required"] = True
    return jsonify(payload), ERROR_STATUS.get(outcome.error_kind, 400)
