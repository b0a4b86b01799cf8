# services/aggregation_service.py
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from models import AssessmentStatus, SUCCESS_STATUSES
from services.local_cache import CacheSnapshot

SUB_SCORE_FIELDS = ("participationScore", "behaviorScore", "examScore")

HIGH_ACHIEVER_MIN_ATTENDANCE = 90
HIGH_ACHIEVER_MIN_EXAM_AVERAGE = 9
HIGH_ACHIEVER_MIN_EXCEEDED = 2

UNKNOWN_LABEL = "Desconhecido"


def _percent(part: int, total: int) -> int:
    """Porcentaje entero redondeando .5 hacia arriba (round() de Python redondea al par)."""
    return (part * 200 + total) // (total * 2)


@dataclass(frozen=True)
class AttendanceRate:
    percent: int
    attended: int
    total: int

    def to_dict(self) -> dict:
        return {"percent": self.percent, "attended": self.attended, "total": self.total}


@dataclass(frozen=True)
class ReportCardCell:
    """status ∈ success | danger | warning | absent."""
    status: str
    success: int
    total: int

    def to_dict(self) -> dict:
        return {"status": self.status, "success": self.success, "total": self.total}


class AggregationService:
    """
    Métricas derivadas del cache local. Funciones puras: nunca escriben estado
    y se recalculan en cada lectura.
    """

    # -------------------------
    # MÉTRICAS BASE
    # -------------------------

    @staticmethod
    def is_success(assessment: dict) -> bool:
        return assessment.get("status") in SUCCESS_STATUSES

    @staticmethod
    def remediation_count(assessments: Iterable[dict]) -> int:
        """Evaluaciones que todavía necesitan intervención (ni atingiu ni superou)."""
        return sum(1 for a in assessments if not AggregationService.is_success(a))

    @staticmethod
    def subject_success_rate(snapshot: CacheSnapshot, subject: str) -> int | None:
        """Porcentaje redondeado de éxito en la materia; None = datos insuficientes."""
        success, total = AggregationService._subject_counts(
            snapshot.assessments, snapshot.skills, subject
        )
        if not total:
            return None
        return _percent(success, total)

    @staticmethod
    def attendance_rate(student_id: str, class_logs: Iterable[dict]) -> AttendanceRate:
        """
        Presencias / total de diários. Sin diários devuelve 0% con total 0,
        distinguible de un alumno ausente todos los días (0% con total > 0).
        """
        logs = list(class_logs)
        attended = sum(1 for log in logs if (log.get("attendance") or {}).get(student_id) is True)
        total = len(logs)
        percent = _percent(attended, total) if total else 0
        return AttendanceRate(percent=percent, attended=attended, total=total)

    @staticmethod
    def average_sub_score(assessments: Iterable[dict], field_name: str) -> float | None:
        """Media de la nota parcial entre las evaluaciones que la definen; None si ninguna (0 es nota válida)."""
        if field_name not in SUB_SCORE_FIELDS:
            raise ValueError(f"Campo de nota desconocido: {field_name}")
        values = [a[field_name] for a in assessments if a.get(field_name) is not None]
        if not values:
            return None
        return sum(values) / len(values)

    @staticmethod
    def report_card_cell(
        assessments: Iterable[dict], skills: Iterable[dict], subject: str, term: str
    ) -> ReportCardCell:
        tagged = [a for a in assessments if a.get("term") == term]
        success, total = AggregationService._subject_counts(tagged, skills, subject)
        if not total:
            status = "absent"
        elif success == total:
            status = "success"
        elif success == 0:
            status = "danger"
        else:
            status = "warning"
        return ReportCardCell(status=status, success=success, total=total)

    @staticmethod
    def is_high_achiever(snapshot: CacheSnapshot, student_id: str) -> bool:
        student = snapshot.find("students", student_id)
        if not student:
            return False

        attendance = AggregationService.attendance_rate(
            student_id, AggregationService.logs_for_class(snapshot, student.get("classId"))
        )
        # contra la razón exacta: 179/200 (89,5%) se muestra como 90% pero no alcanza
        if not attendance.total or attendance.attended * 100 < HIGH_ACHIEVER_MIN_ATTENDANCE * attendance.total:
            return False

        assessments = AggregationService.assessments_for_student(snapshot, student_id)
        exam_average = AggregationService.average_sub_score(assessments, "examScore")
        exceeded = sum(1 for a in assessments if a.get("status") == AssessmentStatus.SUPEROU.value)
        return (
            (exam_average is not None and exam_average >= HIGH_ACHIEVER_MIN_EXAM_AVERAGE)
            or exceeded >= HIGH_ACHIEVER_MIN_EXCEEDED
        )

    # -------------------------
    # VISTAS DEL PAINEL
    # -------------------------

    @staticmethod
    def status_distribution(assessments: Iterable[dict]) -> dict[str, int]:
        counter = Counter(a.get("status") for a in assessments)
        return {status.value: counter.get(status.value, 0) for status in AssessmentStatus}

    @staticmethod
    def subject_performance(snapshot: CacheSnapshot) -> list[dict]:
        """Tasa de éxito por materia, sólo materias con al menos una evaluación."""
        stats: dict[str, dict] = {}
        skill_subjects = {skill["id"]: skill.get("subject") for skill in snapshot.skills}
        for assessment in snapshot.assessments:
            subject = skill_subjects.get(assessment.get("skillId"))
            if not subject:
                continue
            item = stats.setdefault(subject, {"subject": subject, "success": 0, "total": 0})
            item["total"] += 1
            if AggregationService.is_success(assessment):
                item["success"] += 1

        for item in stats.values():
            item["rate"] = _percent(item["success"], item["total"])
        return sorted(stats.values(), key=lambda item: item["subject"])

    @staticmethod
    def dashboard_summary(snapshot: CacheSnapshot) -> dict:
        assessments = snapshot.assessments
        remediation = AggregationService.remediation_count(assessments)
        return {
            "total_students": len(snapshot.students),
            "total_skills": len(snapshot.skills),
            "remediation_cases": remediation,
            "success_cases": len(assessments) - remediation,
            "status_distribution": AggregationService.status_distribution(assessments),
            "subject_performance": AggregationService.subject_performance(snapshot),
        }

    @staticmethod
    def remediation_plan(snapshot: CacheSnapshot) -> list[dict]:
        """
        Casos de reforço agrupados por turma. Se omiten los que apuntan a
        alumnos, turmas o habilidades inexistentes.
        """
        groups: dict[str, dict] = {}
        for assessment in snapshot.assessments:
            if AggregationService.is_success(assessment):
                continue
            student = snapshot.find("students", assessment.get("studentId"))
            if not student:
                continue
            class_group = snapshot.find("classes", student.get("classId"))
            if not class_group:
                continue
            skill = snapshot.find("skills", assessment.get("skillId"))
            if not skill:
                continue

            group = groups.setdefault(
                class_group["id"], {"class": class_group, "items": []}
            )
            group["items"].append(
                {"student": student, "skill": skill, "assessment": assessment}
            )
        return list(groups.values())

    @staticmethod
    def student_skill_board(snapshot: CacheSnapshot, student_id: str) -> dict[str, list[dict]]:
        """Habilidades agrupadas por materia con la última evaluación del alumno (o None)."""
        latest: dict[str, dict] = {}
        for assessment in AggregationService.assessments_for_student(snapshot, student_id):
            skill_id = assessment.get("skillId")
            if not skill_id:
                continue
            current = latest.get(skill_id)
            if current is None or (assessment.get("date") or "") >= (current.get("date") or ""):
                latest[skill_id] = assessment

        board: dict[str, list[dict]] = {}
        for skill in snapshot.skills:
            board.setdefault(skill.get("subject"), []).append(
                {"skill": skill, "assessment": latest.get(skill["id"])}
            )
        return board

    @staticmethod
    def report_card(snapshot: CacheSnapshot, student_id: str, terms: Iterable[str] | None = None) -> dict:
        assessments = AggregationService.assessments_for_student(snapshot, student_id)
        if terms is None:
            terms = sorted({a["term"] for a in assessments if a.get("term")})
        terms = list(terms)
        subjects = sorted({skill.get("subject") for skill in snapshot.skills if skill.get("subject")})
        rows = []
        for subject in subjects:
            rows.append(
                {
                    "subject": subject,
                    "cells": {
                        term: AggregationService.report_card_cell(
                            assessments, snapshot.skills, subject, term
                        ).to_dict()
                        for term in terms
                    },
                }
            )
        return {"terms": terms, "rows": rows}

    @staticmethod
    def student_summary(snapshot: CacheSnapshot, student_id: str) -> dict | None:
        student = snapshot.find("students", student_id)
        if not student:
            return None
        assessments = AggregationService.assessments_for_student(snapshot, student_id)
        class_group = snapshot.find("classes", student.get("classId"))
        attendance = AggregationService.attendance_rate(
            student_id, AggregationService.logs_for_class(snapshot, student.get("classId"))
        )
        return {
            "student": student,
            "class_name": class_group["name"] if class_group else UNKNOWN_LABEL,
            "attendance": attendance.to_dict(),
            "averages": {
                name: AggregationService.average_sub_score(assessments, name)
                for name in SUB_SCORE_FIELDS
            },
            "remediation_count": AggregationService.remediation_count(assessments),
            "is_high_achiever": AggregationService.is_high_achiever(snapshot, student_id),
            "skills": AggregationService.student_skill_board(snapshot, student_id),
        }

    # -------------------------
    # FILTROS
    # -------------------------

    @staticmethod
    def filter_students(snapshot: CacheSnapshot, search: str | None = None, class_id: str | None = None) -> list[dict]:
        term = (search or "").strip().lower()
        result = []
        for student in snapshot.students:
            if class_id and student.get("classId") != class_id:
                continue
            if term:
                name_match = term in (student.get("name") or "").lower()
                registration_match = search.strip() in (student.get("registrationNumber") or "")
                if not (name_match or registration_match):
                    continue
            result.append(student)
        return result

    @staticmethod
    def filter_skills(snapshot: CacheSnapshot, search: str | None = None) -> list[dict]:
        """Búsqueda por código, descripción o materia, sin distinguir mayúsculas."""
        term = (search or "").strip().lower()
        if not term:
            return list(snapshot.skills)
        return [
            skill
            for skill in snapshot.skills
            if any(term in (skill.get(key) or "").lower() for key in ("code", "description", "subject"))
        ]

    @staticmethod
    def assessments_for_class(snapshot: CacheSnapshot, class_id: str) -> list[dict]:
        student_ids = {s["id"] for s in snapshot.students if s.get("classId") == class_id}
        return [a for a in snapshot.assessments if a.get("studentId") in student_ids]

    @staticmethod
    def assessments_for_student(snapshot: CacheSnapshot, student_id: str) -> list[dict]:
        return [a for a in snapshot.assessments if a.get("studentId") == student_id]

    @staticmethod
    def logs_for_class(snapshot: CacheSnapshot, class_id: str | None) -> list[dict]:
        if not class_id:
            return []
        return [log for log in snapshot.class_logs if log.get("classId") == class_id]

    # -------------------------
    # HELPERS
    # -------------------------

    @staticmethod
    def _subject_counts(assessments: Iterable[dict], skills: Iterable[dict], subject: str) -> tuple[int, int]:
        subject_skill_ids = {skill["id"] for skill in skills if skill.get("subject") == subject}
        success = total = 0
        for assessment in assessments:
            if assessment.get("skillId") not in subject_skill_ids:
                continue
            total += 1
            if AggregationService.is_success(assessment):
                success += 1
        return success, total
