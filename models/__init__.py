# models/__init__.py
from .roles import RoleEnum, RecordStatus
from .school import ClassGroup, Student, ShiftEnum
from .assessment import Skill, Assessment, AssessmentStatus, SUCCESS_STATUSES
from .class_log import ClassDailyLog
from .user import User

__all__ = [
    "RoleEnum",
    "RecordStatus",
    "ShiftEnum",
    "ClassGroup",
    "Student",
    "Skill",
    "Assessment",
    "AssessmentStatus",
    "SUCCESS_STATUSES",
    "ClassDailyLog",
    "User",
]
