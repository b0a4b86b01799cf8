from enum import Enum


class RoleEnum(Enum):
    ADMIN = "admin"
    COORDENADOR = "coordenador"
    PROFESOR = "professor"


class RecordStatus(Enum):
    """Estado lógico compartido por turmas, alunos y usuarios (baja lógica = inactive)."""

    ACTIVE = "active"
    INACTIVE = "inactive"


def enum_values(enum_cls):
    return [member.value for member in enum_cls]
