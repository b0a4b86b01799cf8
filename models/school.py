from datetime import datetime
from enum import Enum

from extensions import db
from .roles import RecordStatus, enum_values


class ShiftEnum(Enum):
    MATUTINO = "matutino"
    VESPERTINO = "vespertino"
    INTEGRAL = "integral"
    NOTURNO = "noturno"


class ClassGroup(db.Model):
    """
    Turma. Los profesores y las habilidades foco son referencias débiles
    (listas de ids), sin cascada de propiedad.
    """
    __tablename__ = "classes"

    id = db.Column(db.String(36), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    grade = db.Column(db.String(100), nullable=True)
    year = db.Column(db.Integer, nullable=True)
    shift = db.Column(
        db.Enum(ShiftEnum, values_callable=enum_values, native_enum=False),
        nullable=True,
    )
    status = db.Column(
        db.Enum(RecordStatus, values_callable=enum_values, native_enum=False),
        nullable=False,
        default=RecordStatus.ACTIVE,
    )
    teacher_ids = db.Column(db.JSON, nullable=True)
    is_remediation = db.Column(db.Boolean, default=False)
    focus_skills = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    students = db.relationship("Student", back_populates="class_group")


class Student(db.Model):
    __tablename__ = "students"

    id = db.Column(db.String(36), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    class_id = db.Column(db.String(36), db.ForeignKey("classes.id"), nullable=True)
    # data URL o URL pública
    avatar_url = db.Column(db.Text, nullable=True)
    registration_number = db.Column(db.String(50), nullable=True)
    birth_date = db.Column(db.Date, nullable=True)
    parent_name = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    status = db.Column(
        db.Enum(RecordStatus, values_callable=enum_values, native_enum=False),
        nullable=False,
        default=RecordStatus.ACTIVE,
    )
    remediation_entry_date = db.Column(db.Date, nullable=True)
    remediation_exit_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    class_group = db.relationship("ClassGroup", back_populates="students")
