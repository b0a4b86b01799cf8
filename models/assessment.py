from datetime import datetime
from enum import Enum

from extensions import db
from .roles import enum_values


class AssessmentStatus(Enum):
    """
    Escala canónica de cuatro niveles.
    "Éxito" = ATINGIU ∪ SUPEROU; el resto queda en reforço.
    """
    NAO_ATINGIU = "nao_atingiu"
    EM_DESENVOLVIMENTO = "em_desenvolvimento"
    ATINGIU = "atingiu"
    SUPEROU = "superou"


SUCCESS_STATUSES = frozenset({AssessmentStatus.ATINGIU.value, AssessmentStatus.SUPEROU.value})


class Skill(db.Model):
    """Habilidad BNCC (p. ej. EF01LP01)."""
    __tablename__ = "skills"

    id = db.Column(db.String(36), primary_key=True)
    code = db.Column(db.String(20), nullable=False)
    description = db.Column(db.Text, nullable=True)
    subject = db.Column(db.String(100), nullable=False)


class Assessment(db.Model):
    __tablename__ = "assessments"

    id = db.Column(db.String(36), primary_key=True)
    # Referencias débiles: se toleran evaluaciones huérfanas
    student_id = db.Column(db.String(36), nullable=False, index=True)
    skill_id = db.Column(db.String(36), nullable=True, index=True)
    date = db.Column(db.Date, nullable=False)
    status = db.Column(
        db.Enum(AssessmentStatus, values_callable=enum_values, native_enum=False),
        nullable=False,
    )
    term = db.Column(db.String(20), nullable=True)
    participation_score = db.Column(db.Float, nullable=True)
    behavior_score = db.Column(db.Float, nullable=True)
    exam_score = db.Column(db.Float, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
