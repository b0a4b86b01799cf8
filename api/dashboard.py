# api/dashboard.py
from flask import request, jsonify
from flask_login import login_required

from services import AggregationService, public_user
from api.utils import get_state
from . import api_bp


@api_bp.get("/state")
@login_required
def state_snapshot():
    """
    Estado completo para el arranque del frontend (sin hashes de contraseña).
    """
    state = get_state()
    snapshot = state.snapshot()
    return jsonify(
        {
            "version": snapshot.version,
            "connection_error": state.connection_error,
            "classes": list(snapshot.classes),
            "students": list(snapshot.students),
            "skills": list(snapshot.skills),
            "assessments": list(snapshot.assessments),
            "class_logs": list(snapshot.class_logs),
            "users": [public_user(u) for u in snapshot.users],
            "remediation_count": AggregationService.remediation_count(snapshot.assessments),
        }
    )


@api_bp.get("/dashboard")
@login_required
def dashboard():
    snapshot = get_state().snapshot()
    return jsonify(AggregationService.dashboard_summary(snapshot))


@api_bp.get("/remediation")
@login_required
def remediation():
    """Plan de reforço agrupado por turma."""
    snapshot = get_state().snapshot()
    return jsonify(AggregationService.remediation_plan(snapshot))


@api_bp.get("/students/<student_id>/summary")
@login_required
def student_summary(student_id):
    summary = AggregationService.student_summary(get_state().snapshot(), student_id)
    if summary is None:
        return jsonify({"error": "Aluno no encontrado"}), 404
    return jsonify(summary)


@api_bp.get("/students/<student_id>/report-card")
@login_required
def student_report_card(student_id):
    """
    Boletín materia × bimestre. ?terms=1B,2B fija las columnas;
    si no, se usan los bimestres presentes en las evaluaciones.
    """
    snapshot = get_state().snapshot()
    if snapshot.find("students", student_id) is None:
        return jsonify({"error": "Aluno no encontrado"}), 404

    raw_terms = request.args.get("terms")
    terms = [t.strip() for t in raw_terms.split(",") if t.strip()] if raw_terms else None
    return jsonify(AggregationService.report_card(snapshot, student_id, terms))


@api_bp.get("/subjects/<subject>/success-rate")
@login_required
def subject_success_rate(subject):
    rate = AggregationService.subject_success_rate(get_state().snapshot(), subject)
    return jsonify(
        {
            "subject": subject,
            "rate": rate,
            "insufficient_data": rate is None,
        }
    )
