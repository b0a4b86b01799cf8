import pytest

from services import AggregationService, CacheSnapshot

SKILLS = (
    {"id": "lp1", "code": "EF01LP01", "subject": "Língua Portuguesa"},
    {"id": "lp2", "code": "EF01LP02", "subject": "Língua Portuguesa"},
    {"id": "ma1", "code": "EF01MA01", "subject": "Matemática"},
)


def _assessment(id_, student_id, skill_id, status, term="1B", date="2025-03-10", **scores):
    return {
        "id": id_,
        "studentId": student_id,
        "skillId": skill_id,
        "status": status,
        "term": term,
        "date": date,
        **scores,
    }


def _logs(student_id, present_days, total_days, class_id="c1"):
    return tuple(
        {"id": f"l{day}", "classId": class_id, "date": f"2025-03-{day + 1:02d}",
         "attendance": {student_id: day < present_days}}
        for day in range(total_days)
    )


def _snapshot(**collections):
    defaults = {
        "classes": ({"id": "c1", "name": "1º Ano A"},),
        "students": ({"id": "s1", "name": "Ana Souza", "classId": "c1", "registrationNumber": "2025001"},),
        "skills": SKILLS,
    }
    defaults.update(collections)
    return CacheSnapshot(**defaults)


# -------------------------
# MÉTRICAS BASE
# -------------------------

def test_remediation_count_counts_everything_but_success():
    assessments = [
        {"status": "atingiu"},
        {"status": "superou"},
        {"status": "em_desenvolvimento"},
        {"status": "nao_atingiu"},
    ]

    assert AggregationService.remediation_count(assessments) == 2


def test_subject_success_rate_is_rounded_percentage():
    snapshot = _snapshot(
        assessments=(
            _assessment("a1", "s1", "lp1", "atingiu"),
            _assessment("a2", "s1", "lp2", "nao_atingiu"),
            _assessment("a3", "s1", "lp2", "superou"),
            _assessment("a4", "s1", "ma1", "nao_atingiu"),
        )
    )

    assert AggregationService.subject_success_rate(snapshot, "Língua Portuguesa") == 67
    assert AggregationService.subject_success_rate(snapshot, "Matemática") == 0


def test_subject_success_rate_without_data_is_none():
    snapshot = _snapshot(assessments=())

    assert AggregationService.subject_success_rate(snapshot, "Ciências") is None


def test_attendance_rate_boundaries():
    logs = _logs("s1", present_days=9, total_days=10)

    rate = AggregationService.attendance_rate("s1", logs)

    assert rate.percent == 90
    assert (rate.attended, rate.total) == (9, 10)


def test_attendance_without_logs_is_distinguishable_from_all_absent():
    no_logs = AggregationService.attendance_rate("s1", [])
    all_absent = AggregationService.attendance_rate("s1", _logs("s1", 0, 3))

    assert no_logs.percent == all_absent.percent == 0
    assert no_logs.total == 0
    assert all_absent.total == 3


def test_attendance_missing_entry_counts_as_absent():
    logs = [{"id": "l1", "classId": "c1", "attendance": {}}, {"id": "l2", "classId": "c1", "attendance": {"s1": True}}]

    assert AggregationService.attendance_rate("s1", logs).percent == 50


def test_average_sub_score_ignores_missing_and_keeps_zero():
    assessments = [{"examScore": 0}, {"examScore": 9}, {"examScore": None}, {}]

    assert AggregationService.average_sub_score(assessments, "examScore") == 4.5
    assert AggregationService.average_sub_score([{}], "behaviorScore") is None


def test_average_sub_score_rejects_unknown_field():
    with pytest.raises(ValueError):
        AggregationService.average_sub_score([], "finalScore")


@pytest.mark.parametrize(
    "statuses, expected",
    [
        (("atingiu", "superou"), "success"),
        (("nao_atingiu", "em_desenvolvimento"), "danger"),
        (("atingiu", "nao_atingiu"), "warning"),
        ((), "absent"),
    ],
)
def test_report_card_cell_status(statuses, expected):
    assessments = [_assessment(f"a{i}", "s1", "lp1", status) for i, status in enumerate(statuses)]
    # otro bimestre y otra materia no cuentan
    assessments.append(_assessment("x1", "s1", "lp1", "nao_atingiu", term="2B"))
    assessments.append(_assessment("x2", "s1", "ma1", "nao_atingiu"))

    cell = AggregationService.report_card_cell(assessments, SKILLS, "Língua Portuguesa", "1B")

    assert cell.status == expected
    assert cell.total == len(statuses)


# -------------------------
# DESTAQUE
# -------------------------

def test_high_achiever_by_exam_average():
    snapshot = _snapshot(
        class_logs=_logs("s1", 9, 10),
        assessments=(
            _assessment("a1", "s1", "lp1", "atingiu", examScore=9),
            _assessment("a2", "s1", "ma1", "atingiu", examScore=9.5),
        ),
    )

    assert AggregationService.is_high_achiever(snapshot, "s1")


def test_high_achiever_by_exceeded_count():
    snapshot = _snapshot(
        class_logs=_logs("s1", 10, 10),
        assessments=(
            _assessment("a1", "s1", "lp1", "superou"),
            _assessment("a2", "s1", "ma1", "superou"),
        ),
    )

    assert AggregationService.is_high_achiever(snapshot, "s1")


def test_low_attendance_is_never_high_achiever():
    snapshot = _snapshot(
        class_logs=_logs("s1", 8, 10),
        assessments=(
            _assessment("a1", "s1", "lp1", "superou", examScore=10),
            _assessment("a2", "s1", "ma1", "superou", examScore=10),
        ),
    )

    assert not AggregationService.is_high_achiever(snapshot, "s1")


def test_without_scores_or_exceeded_is_not_high_achiever():
    snapshot = _snapshot(
        class_logs=_logs("s1", 10, 10),
        assessments=(_assessment("a1", "s1", "lp1", "superou", examScore=8.9),),
    )

    assert not AggregationService.is_high_achiever(snapshot, "s1")
    assert not AggregationService.is_high_achiever(snapshot, "ghost")


# -------------------------
# VISTAS
# -------------------------

def test_dashboard_summary_counts():
    snapshot = _snapshot(
        assessments=(
            _assessment("a1", "s1", "lp1", "atingiu"),
            _assessment("a2", "s1", "ma1", "nao_atingiu"),
            _assessment("a3", "s1", "ma1", "em_desenvolvimento"),
        )
    )

    summary = AggregationService.dashboard_summary(snapshot)

    assert summary["total_students"] == 1
    assert summary["total_skills"] == 3
    assert summary["remediation_cases"] == 2
    assert summary["success_cases"] == 1
    assert summary["status_distribution"] == {
        "nao_atingiu": 1,
        "em_desenvolvimento": 1,
        "atingiu": 1,
        "superou": 0,
    }
    assert [item["subject"] for item in summary["subject_performance"]] == ["Língua Portuguesa", "Matemática"]
    assert summary["subject_performance"][1]["rate"] == 0


def test_remediation_plan_groups_by_class_and_skips_unknown_references():
    snapshot = _snapshot(
        classes=({"id": "c1", "name": "1º Ano A"}, {"id": "c2", "name": "2º Ano A"}),
        students=(
            {"id": "s1", "name": "Ana", "classId": "c1"},
            {"id": "s2", "name": "Bia", "classId": "c2"},
            {"id": "s3", "name": "Caio", "classId": None},
        ),
        assessments=(
            _assessment("a1", "s1", "lp1", "nao_atingiu"),
            _assessment("a2", "s1", "ma1", "em_desenvolvimento"),
            _assessment("a3", "s2", "lp1", "nao_atingiu"),
            _assessment("a4", "s2", "lp2", "superou"),
            _assessment("a5", "ghost", "lp1", "nao_atingiu"),
            _assessment("a6", "s3", "lp1", "nao_atingiu"),
            _assessment("a7", "s1", "removed", "nao_atingiu"),
        ),
    )

    plan = AggregationService.remediation_plan(snapshot)

    assert [group["class"]["id"] for group in plan] == ["c1", "c2"]
    assert [item["assessment"]["id"] for item in plan[0]["items"]] == ["a1", "a2"]
    assert [item["assessment"]["id"] for item in plan[1]["items"]] == ["a3"]


def test_skill_board_uses_latest_assessment_per_skill():
    snapshot = _snapshot(
        assessments=(
            _assessment("old", "s1", "lp1", "nao_atingiu", date="2025-03-01"),
            _assessment("new", "s1", "lp1", "atingiu", date="2025-04-01"),
        )
    )

    board = AggregationService.student_skill_board(snapshot, "s1")

    portuguese = {entry["skill"]["id"]: entry["assessment"] for entry in board["Língua Portuguesa"]}
    assert portuguese["lp1"]["id"] == "new"
    assert portuguese["lp2"] is None
    assert board["Matemática"][0]["assessment"] is None


def test_report_card_builds_rows_per_subject_and_term():
    snapshot = _snapshot(
        assessments=(
            _assessment("a1", "s1", "lp1", "atingiu", term="1B"),
            _assessment("a2", "s1", "ma1", "nao_atingiu", term="2B"),
        )
    )

    card = AggregationService.report_card(snapshot, "s1")

    assert card["terms"] == ["1B", "2B"]
    rows = {row["subject"]: row["cells"] for row in card["rows"]}
    assert rows["Língua Portuguesa"]["1B"]["status"] == "success"
    assert rows["Língua Portuguesa"]["2B"]["status"] == "absent"
    assert rows["Matemática"]["2B"]["status"] == "danger"


def test_student_summary_for_student_without_class():
    snapshot = _snapshot(students=({"id": "s1", "name": "Ana", "classId": None},))

    summary = AggregationService.student_summary(snapshot, "s1")

    assert summary["class_name"] == "Desconhecido"
    assert summary["attendance"] == {"percent": 0, "attended": 0, "total": 0}
    assert summary["averages"]["examScore"] is None
    assert AggregationService.student_summary(snapshot, "ghost") is None


def test_filter_students_by_name_registration_and_class():
    snapshot = _snapshot(
        students=(
            {"id": "s1", "name": "Ana Souza", "classId": "c1", "registrationNumber": "2025001"},
            {"id": "s2", "name": "Bruno Lima", "classId": "c2", "registrationNumber": "2025002"},
        )
    )

    assert [s["id"] for s in AggregationService.filter_students(snapshot, search="souza")] == ["s1"]
    assert [s["id"] for s in AggregationService.filter_students(snapshot, search="002")] == ["s2"]
    assert [s["id"] for s in AggregationService.filter_students(snapshot, class_id="c2")] == ["s2"]
    assert len(AggregationService.filter_students(snapshot, search="  ")) == 2


def test_assessments_for_class_follows_student_membership():
    snapshot = _snapshot(
        students=(
            {"id": "s1", "name": "Ana", "classId": "c1"},
            {"id": "s2", "name": "Bia", "classId": "c2"},
        ),
        assessments=(
            _assessment("a1", "s1", "lp1", "atingiu"),
            _assessment("a2", "s2", "lp1", "atingiu"),
        ),
    )

    assert [a["id"] for a in AggregationService.assessments_for_class(snapshot, "c1")] == ["a1"]


# -------------------------
# REDONDEO Y BORDES
# -------------------------

def test_percentages_round_half_up():
    snapshot = _snapshot(
        assessments=(_assessment("a0", "s1", "lp1", "atingiu"),)
        + tuple(_assessment(f"a{i}", "s1", "lp1", "nao_atingiu") for i in range(1, 8))
    )

    assert AggregationService.subject_success_rate(snapshot, "Língua Portuguesa") == 13
    assert AggregationService.subject_performance(snapshot)[0]["rate"] == 13
    assert AggregationService.attendance_rate("s1", _logs("s1", 1, 8)).percent == 13


def test_high_achiever_attendance_uses_exact_ratio():
    snapshot = _snapshot(
        class_logs=_logs("s1", 179, 200),
        assessments=(
            _assessment("a1", "s1", "lp1", "superou"),
            _assessment("a2", "s1", "ma1", "superou"),
        ),
    )

    # 89,5% se muestra como 90% pero no alcanza el mínimo
    assert AggregationService.attendance_rate("s1", snapshot.class_logs).percent == 90
    assert not AggregationService.is_high_achiever(snapshot, "s1")


def test_registration_search_is_case_sensitive():
    snapshot = _snapshot(
        students=({"id": "s1", "name": "Ana", "classId": "c1", "registrationNumber": "MAT-01"},)
    )

    assert [s["id"] for s in AggregationService.filter_students(snapshot, search="MAT-01")] == ["s1"]
    assert AggregationService.filter_students(snapshot, search="mat-01") == []


def test_filter_skills_by_code_description_and_subject():
    skills = SKILLS + ({"id": "ci1", "code": "EF01CI01", "description": "Comparar materiais", "subject": "Ciências"},)
    snapshot = _snapshot(skills=skills)

    assert [s["id"] for s in AggregationService.filter_skills(snapshot, "ef01ma")] == ["ma1"]
    assert [s["id"] for s in AggregationService.filter_skills(snapshot, "MATERIAIS")] == ["ci1"]
    assert [s["id"] for s in AggregationService.filter_skills(snapshot, "portuguesa")] == ["lp1", "lp2"]
    assert len(AggregationService.filter_skills(snapshot, "")) == 4
