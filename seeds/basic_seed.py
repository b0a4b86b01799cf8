# seeds/basic_seed.py
"""
Seed de demo del BNCC Tracker.

CREA (o reutiliza si ya existen):
    - Usuarios: admin, coordenadora, professora
    - Turma 1º Ano A con alumnos
    - Habilidades BNCC de Língua Portuguesa y Matemática
    - Evaluaciones en dos bimestres y diários con chamada

Todo pasa por los coordinadores, así el cache y la base quedan alineados.

Modo de uso:
    flask --app app shell
    >>> from seeds.basic_seed import run_basic_seed
    >>> run_basic_seed(app.extensions["bncc_state"])
"""

from datetime import date, timedelta

from services import AppState, AuthService

DEMO_PASSWORDS = {
    "admin@demo.com": "admin123",
    "coord@demo.com": "coord123",
    "profe@demo.com": "profe123",
}

DEMO_SKILLS = [
    ("EF01LP01", "Reconhecer que textos são lidos e escritos da esquerda para a direita.", "Língua Portuguesa"),
    ("EF01LP02", "Escrever, espontaneamente ou por ditado, palavras e frases.", "Língua Portuguesa"),
    ("EF01MA01", "Utilizar números naturais como indicador de quantidade ou de ordem.", "Matemática"),
    ("EF01MA02", "Contar de maneira exata ou aproximada objetos de uma coleção.", "Matemática"),
]

DEMO_STUDENTS = [
    ("Ana Souza", "2025001"),
    ("Bruno Lima", "2025002"),
    ("Carla Mendes", "2025003"),
]


def _find(state: AppState, table: str, **criteria):
    for record in state.cache.all(table):
        if all(record.get(key) == value for key, value in criteria.items()):
            return record
    return None


def _get_or_create(state: AppState, table: str, lookup: dict, defaults: dict | None = None):
    existing = _find(state, table, **lookup)
    if existing:
        return existing, False

    outcome = state.coordinator(table).create({**lookup, **(defaults or {})})
    if not outcome.ok:
        raise RuntimeError(f"No se pudo crear {table} {lookup}: {outcome.error}")
    return outcome.record, True


def _ensure_user(state: AppState, email: str, name: str, role: str):
    return _get_or_create(
        state,
        "users",
        {"email": email},
        {
            "name": name,
            "role": role,
            "passwordHash": AuthService.hash_password(DEMO_PASSWORDS[email]),
        },
    )


def run_basic_seed(state: AppState) -> dict:
    print("🌱 Ejecutando seed de demo...")

    # 1. Usuarios
    _ensure_user(state, "admin@demo.com", "Admin Demo", "admin")
    _ensure_user(state, "coord@demo.com", "Coordenadora Demo", "coordenador")
    teacher, _ = _ensure_user(state, "profe@demo.com", "Professora Demo", "professor")

    # 2. Habilidades
    skills = []
    for code, description, subject in DEMO_SKILLS:
        skill, _ = _get_or_create(
            state, "skills", {"code": code}, {"description": description, "subject": subject}
        )
        skills.append(skill)

    # 3. Turma + alumnos
    class_group, _ = _get_or_create(
        state,
        "classes",
        {"name": "1º Ano A"},
        {
            "grade": "1º Ano",
            "year": date.today().year,
            "shift": "matutino",
            "teacherIds": [teacher["id"]],
            "focusSkills": [skills[0]["id"], skills[2]["id"]],
        },
    )
    students = []
    for name, registration in DEMO_STUDENTS:
        student, _ = _get_or_create(
            state,
            "students",
            {"registrationNumber": registration},
            {"name": name, "classId": class_group["id"]},
        )
        students.append(student)

    # 4. Evaluaciones (sólo si el alumno todavía no tiene)
    statuses = ["superou", "atingiu", "em_desenvolvimento", "nao_atingiu"]
    created_assessments = 0
    for s_index, student in enumerate(students):
        if _find(state, "assessments", studentId=student["id"]):
            continue
        for k_index, skill in enumerate(skills):
            for term in ("1B", "2B"):
                outcome = state.assessments.create(
                    {
                        "studentId": student["id"],
                        "skillId": skill["id"],
                        "date": date.today().isoformat(),
                        "term": term,
                        "status": statuses[(s_index + k_index) % len(statuses)],
                        "examScore": float(10 - s_index * 2 - k_index % 2),
                        "participationScore": 8.0,
                    }
                )
                if outcome.ok:
                    created_assessments += 1

    # 5. Diários de la última semana
    created_logs = 0
    if not _find(state, "class_logs", classId=class_group["id"]):
        for offset in range(5):
            day = date.today() - timedelta(days=offset)
            outcome = state.class_logs.create(
                {
                    "classId": class_group["id"],
                    "date": day.isoformat(),
                    "content": f"Aula {5 - offset}",
                    "attendance": {
                        student["id"]: not (offset == 0 and i == len(students) - 1)
                        for i, student in enumerate(students)
                    },
                }
            )
            if outcome.ok:
                created_logs += 1

    print("✅ Seed listo.")
    return {
        "class_id": class_group["id"],
        "students": len(students),
        "skills": len(skills),
        "assessments_created": created_assessments,
        "logs_created": created_logs,
    }
