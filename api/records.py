# api/records.py
"""
CRUD genérico para turmas, alunos, habilidades, avaliações y diários.
Toda escritura pasa por el coordinador de la entidad (optimista + rollback).
"""
from flask import request, jsonify, abort
from flask_login import login_required

from services import AggregationService
from api.utils import get_state, outcome_response, is_confirmed
from . import api_bp

# segmento de URL -> tabla
RECORD_COLLECTIONS = {
    "classes": "classes",
    "students": "students",
    "skills": "skills",
    "assessments": "assessments",
    "class-logs": "class_logs",
}


def _table_for(collection: str) -> str:
    table = RECORD_COLLECTIONS.get(collection)
    if table is None:
        abort(404)
    return table


@api_bp.get("/<collection>")
@login_required
def records_list(collection):
    """
    Lista la colección desde el cache local.
    Filtros opcionales:
      - students: ?q=<nombre o matrícula>&class_id=<turma>
      - skills: ?q=<código, descripción o materia>
      - assessments / class-logs: ?class_id=<turma>
    """
    table = _table_for(collection)
    state = get_state()
    class_id = request.args.get("class_id") or None

    if table == "students":
        snapshot = state.snapshot()
        return jsonify(AggregationService.filter_students(snapshot, request.args.get("q"), class_id))

    if table == "skills":
        return jsonify(AggregationService.filter_skills(state.snapshot(), request.args.get("q")))

    if table == "assessments" and class_id:
        return jsonify(AggregationService.assessments_for_class(state.snapshot(), class_id))

    if table == "class_logs" and class_id:
        return jsonify(AggregationService.logs_for_class(state.snapshot(), class_id))

    return jsonify(state.cache.all(table))


@api_bp.get("/<collection>/<record_id>")
@login_required
def records_detail(collection, record_id):
    table = _table_for(collection)
    record = get_state().cache.get(table, record_id)
    if record is None:
        return jsonify({"error": "Registro no encontrado"}), 404
    return jsonify(record)


@api_bp.post("/<collection>")
@login_required
def records_create(collection):
    table = _table_for(collection)
    data = request.get_json(silent=True) or {}
    outcome = get_state().coordinator(table).create(data)
    return outcome_response(outcome, success_status=201)


@api_bp.put("/<collection>/<record_id>")
@login_required
def records_update(collection, record_id):
    table = _table_for(collection)
    data = request.get_json(silent=True) or {}
    data["id"] = record_id
    outcome = get_state().coordinator(table).update(data)
    return outcome_response(outcome)


@api_bp.delete("/<collection>/<record_id>")
@login_required
def records_delete(collection, record_id):
    """
    Borrado. Si el registro tiene dependientes se responde 409 con el
    `prompt` hasta que llegue ?confirm=1; entonces se inactiva.
    """
    table = _table_for(collection)
    confirmed = is_confirmed()
    outcome = get_state().coordinator(table).delete(record_id, confirm=lambda prompt: confirmed)
    return outcome_response(outcome)


@api_bp.post("/<collection>/<record_id>/toggle-status")
@login_required
def records_toggle_status(collection, record_id):
    table = _table_for(collection)
    confirmed = is_confirmed()
    data = request.get_json(silent=True) or {}
    outcome = get_state().coordinator(table).toggle_status(
        record_id,
        current_status=data.get("current_status"),
        confirm=lambda prompt: confirmed,
    )
    return outcome_response(outcome)
