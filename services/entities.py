# services/entities.py
"""
Reglas por tipo de entidad para el coordinador genérico: obligatorios,
dominios, referencias a validar y qué cuenta como dependiente.
"""
from __future__ import annotations

from datetime import date

from models import AssessmentStatus, RecordStatus, RoleEnum, ShiftEnum
from services.local_cache import LocalCache
from services.mutation_coordinator import EntityRules


def _referencing(collection: str, field_name: str):
    """Cuenta registros de `collection` cuyo `field_name` apunta al id (o lo contiene, si es lista)."""

    def count(cache: LocalCache, record_id: str) -> int:
        total = 0
        for record in cache.all(collection):
            value = record.get(field_name)
            if isinstance(value, (list, tuple)):
                total += 1 if record_id in value else 0
            elif value == record_id:
                total += 1
        return total

    return count


def _today() -> str:
    return date.today().isoformat()


CLASS_RULES = EntityRules(
    table="classes",
    label="turma",
    required=("name",),
    choices={"shift": ShiftEnum, "status": RecordStatus},
    numeric=("year",),
    references={"teacherIds": "users"},
    set_fields=("teacherIds", "focusSkills"),
    defaults={
        "status": RecordStatus.ACTIVE.value,
        "isRemediation": False,
        "teacherIds": list,
        "focusSkills": list,
    },
    dependents=_referencing("students", "classId"),
    has_status=True,
)

STUDENT_RULES = EntityRules(
    table="students",
    label="aluno",
    required=("name",),
    choices={"status": RecordStatus},
    references={"classId": "classes"},
    defaults={"status": RecordStatus.ACTIVE.value},
    dependents=_referencing("assessments", "studentId"),
    has_status=True,
)

SKILL_RULES = EntityRules(
    table="skills",
    label="habilidade",
    required=("code", "subject"),
    dependents=_referencing("assessments", "skillId"),
)

ASSESSMENT_RULES = EntityRules(
    table="assessments",
    label="avaliação",
    required=("studentId", "date", "status"),
    choices={"status": AssessmentStatus},
    numeric=("participationScore", "behaviorScore", "examScore"),
    defaults={"date": _today},
)

CLASS_LOG_RULES = EntityRules(
    table="class_logs",
    label="diário",
    required=("classId", "date"),
    defaults={"date": _today, "attendance": dict},
)

USER_RULES = EntityRules(
    table="users",
    label="usuário",
    required=("name", "email", "role"),
    choices={"role": RoleEnum, "status": RecordStatus},
    defaults={"status": RecordStatus.ACTIVE.value},
    dependents=_referencing("classes", "teacherIds"),
    has_status=True,
)

ENTITY_RULES = (CLASS_RULES, STUDENT_RULES, SKILL_RULES, ASSESSMENT_RULES, CLASS_LOG_RULES, USER_RULES)
