from datetime import datetime

from extensions import db
from .roles import RoleEnum, RecordStatus, enum_values


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=True)
    role = db.Column(
        db.Enum(RoleEnum, values_callable=enum_values, native_enum=False),
        nullable=False,
        default=RoleEnum.PROFESOR,
    )
    status = db.Column(
        db.Enum(RecordStatus, values_callable=enum_values, native_enum=False),
        nullable=False,
        default=RecordStatus.ACTIVE,
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
