# services/field_mapping.py
"""
Tabla de traducción de nombres entre el modelo en memoria (camelCase, lo que
consume el frontend) y las columnas del backend remoto (snake_case).
"""
from __future__ import annotations

from typing import Mapping

FIELD_MAPS: dict[str, dict[str, str]] = {
    "classes": {
        "id": "id",
        "name": "name",
        "grade": "grade",
        "year": "year",
        "shift": "shift",
        "status": "status",
        "teacherIds": "teacher_ids",
        "isRemediation": "is_remediation",
        "focusSkills": "focus_skills",
    },
    "students": {
        "id": "id",
        "name": "name",
        "classId": "class_id",
        "avatarUrl": "avatar_url",
        "registrationNumber": "registration_number",
        "birthDate": "birth_date",
        "parentName": "parent_name",
        "phone": "phone",
        "status": "status",
        "remediationEntryDate": "remediation_entry_date",
        "remediationExitDate": "remediation_exit_date",
    },
    "skills": {
        "id": "id",
        "code": "code",
        "description": "description",
        "subject": "subject",
    },
    "assessments": {
        "id": "id",
        "studentId": "student_id",
        "skillId": "skill_id",
        "date": "date",
        "status": "status",
        "term": "term",
        "participationScore": "participation_score",
        "behaviorScore": "behavior_score",
        "examScore": "exam_score",
        "notes": "notes",
    },
    "class_logs": {
        "id": "id",
        "classId": "class_id",
        "date": "date",
        "content": "content",
        "attendance": "attendance",
    },
    "users": {
        "id": "id",
        "name": "name",
        "email": "email",
        "passwordHash": "password_hash",
        "role": "role",
        "status": "status",
    },
}

_REVERSE_MAPS: dict[str, dict[str, str]] = {
    table: {remote: local for local, remote in mapping.items()}
    for table, mapping in FIELD_MAPS.items()
}


def to_remote(table: str, record: Mapping, fields=None) -> dict:
    """
    Traduce un registro local al payload remoto.
    Los campos sin mapeo se descartan; `fields` limita la salida a esas claves locales.
    """
    mapping = FIELD_MAPS[table]
    payload = {}
    for local_name, value in record.items():
        if fields is not None and local_name not in fields:
            continue
        remote_name = mapping.get(local_name)
        if remote_name:
            payload[remote_name] = value
    return payload


def to_local(table: str, row: Mapping) -> dict:
    reverse = _REVERSE_MAPS[table]
    return {reverse[name]: value for name, value in row.items() if name in reverse}


def local_fields(table: str) -> list[str]:
    return list(FIELD_MAPS[table])
