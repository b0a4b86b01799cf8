from services import RemoteError, RemoteResult


def _login(client, email, password="secret123"):
    return client.post("/auth/login", json={"email": email, "password": password})


# -------------------------
# AUTH
# -------------------------

def test_health_reports_cache_version(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_login_rejects_bad_credentials(client, admin_user):
    assert _login(client, "admin@escola.com", "wrong-pass").status_code == 401
    assert client.post("/auth/login", json={"email": "admin@escola.com"}).status_code == 400


def test_login_and_me_never_expose_password_hash(client, admin_user):
    response = _login(client, "ADMIN@escola.com ")

    assert response.status_code == 200
    assert "passwordHash" not in response.get_json()["user"]

    me = client.get("/auth/me").get_json()["user"]
    assert me["email"] == "admin@escola.com"
    assert me["role"] == "admin"
    assert "passwordHash" not in me


def test_inactive_user_cannot_login(client, app_state, user_factory):
    user = user_factory("ex@escola.com", "professor")
    app_state.users.toggle_status(user["id"], confirm=lambda prompt: True)

    assert _login(client, "ex@escola.com").status_code == 401


def test_api_requires_login(client):
    response = client.get("/api/students")

    assert response.status_code == 401
    assert "error" in response.get_json()


def test_logout_ends_session(admin_client):
    assert admin_client.post("/auth/logout").status_code == 200
    assert admin_client.get("/auth/me").status_code == 401


# -------------------------
# RECORDS
# -------------------------

def test_create_list_and_update_student(admin_client):
    class_group = admin_client.post("/api/classes", json={"name": "1º Ano A", "shift": "matutino"}).get_json()["record"]

    created = admin_client.post(
        "/api/students",
        json={"name": "Ana Souza", "classId": class_group["id"], "registrationNumber": "2025001"},
    )
    assert created.status_code == 201
    student = created.get_json()["record"]

    listed = admin_client.get("/api/students", query_string={"q": "souza"}).get_json()
    assert [s["id"] for s in listed] == [student["id"]]

    updated = admin_client.put(f"/api/students/{student['id']}", json={"phone": "11 98888-7777"})
    assert updated.status_code == 200
    assert admin_client.get(f"/api/students/{student['id']}").get_json()["phone"] == "11 98888-7777"


def test_create_with_missing_required_field_is_400(admin_client):
    response = admin_client.post("/api/skills", json={"code": "EF01LP01"})

    assert response.status_code == 400
    assert response.get_json()["error_kind"] == "validation"


def test_unknown_collection_and_record_are_404(admin_client):
    assert admin_client.get("/api/bitacora").status_code == 404
    assert admin_client.get("/api/students/ghost").status_code == 404
    assert admin_client.put("/api/students/ghost", json={"name": "X"}).status_code == 404


def test_delete_class_with_students_requires_confirmation(admin_client, app_state):
    class_group = admin_client.post("/api/classes", json={"name": "1º Ano A"}).get_json()["record"]
    admin_client.post("/api/students", json={"name": "Ana", "classId": class_group["id"]})

    first = admin_client.delete(f"/api/classes/{class_group['id']}")
    assert first.status_code == 409
    body = first.get_json()
    assert body["confirmation_required"] is True
    assert body["prompt"]

    confirmed = admin_client.delete(f"/api/classes/{class_group['id']}", query_string={"confirm": "1"})
    assert confirmed.status_code == 200
    assert confirmed.get_json()["action"] == "soft_deleted"
    assert app_state.cache.get("classes", class_group["id"])["status"] == "inactive"


def test_delete_unreferenced_skill(admin_client, app_state):
    skill = admin_client.post(
        "/api/skills", json={"code": "EF01MA01", "subject": "Matemática"}
    ).get_json()["record"]

    response = admin_client.delete(f"/api/skills/{skill['id']}")

    assert response.status_code == 200
    assert response.get_json()["action"] == "hard_deleted"
    assert app_state.remote.select_all("skills").data == []


def test_remote_rejection_is_502_and_rolled_back(admin_client, app_state, monkeypatch):
    monkeypatch.setattr(
        app_state.remote, "insert", lambda table, record: RemoteResult(error=RemoteError("db offline"))
    )

    response = admin_client.post("/api/skills", json={"code": "EF01LP01", "subject": "Língua Portuguesa"})

    assert response.status_code == 502
    assert "db offline" in response.get_json()["error"]
    assert app_state.cache.all("skills") == []


def test_toggle_status_via_api(admin_client):
    student = admin_client.post("/api/students", json={"name": "Ana"}).get_json()["record"]

    pending = admin_client.post(f"/api/students/{student['id']}/toggle-status")
    done = admin_client.post(f"/api/students/{student['id']}/toggle-status", json={"confirm": True})

    assert pending.status_code == 409
    assert done.status_code == 200
    assert done.get_json()["record"]["status"] == "inactive"


# -------------------------
# USERS
# -------------------------

def test_professor_cannot_manage_users(client, user_factory):
    user_factory("profe@escola.com", "professor")
    _login(client, "profe@escola.com")

    response = client.get("/api/users")

    assert response.status_code == 403


def test_admin_creates_user_with_hashed_password(admin_client, app_state):
    response = admin_client.post(
        "/api/users",
        json={"name": "Rita", "email": "Rita@Escola.com", "role": "professor", "password": "profe123"},
    )

    assert response.status_code == 201
    record = response.get_json()["record"]
    assert "passwordHash" not in record
    stored = app_state.cache.get("users", record["id"])
    assert stored["email"] == "rita@escola.com"
    assert stored["passwordHash"] != "profe123"


def test_user_creation_validations(admin_client):
    base = {"name": "Rita", "email": "rita@escola.com", "role": "professor"}

    assert admin_client.post("/api/users", json=base).status_code == 400
    assert admin_client.post("/api/users", json={**base, "password": "123"}).status_code == 400
    assert admin_client.post("/api/users", json={**base, "email": "admin@escola.com", "password": "x123456"}).status_code == 400


def test_admin_cannot_delete_self(admin_client, admin_user):
    response = admin_client.delete(f"/api/users/{admin_user['id']}")

    assert response.status_code == 400


# -------------------------
# DASHBOARD
# -------------------------

def _seed_minimal(app_state):
    app_state.classes.create({"id": "c1", "name": "1º Ano A"})
    app_state.students.create({"id": "s1", "name": "Ana", "classId": "c1"})
    app_state.skills.create({"id": "k1", "code": "EF01LP01", "subject": "Língua Portuguesa"})
    app_state.assessments.create({"studentId": "s1", "skillId": "k1", "status": "nao_atingiu", "term": "1B"})


def test_state_and_dashboard(admin_client, app_state):
    _seed_minimal(app_state)

    state = admin_client.get("/api/state").get_json()
    assert state["remediation_count"] == 1
    assert all("passwordHash" not in user for user in state["users"])

    dashboard = admin_client.get("/api/dashboard").get_json()
    assert dashboard["remediation_cases"] == 1
    assert dashboard["status_distribution"]["nao_atingiu"] == 1


def test_remediation_and_report_card(admin_client, app_state):
    _seed_minimal(app_state)

    plan = admin_client.get("/api/remediation").get_json()
    assert plan[0]["class"]["id"] == "c1"

    card = admin_client.get("/api/students/s1/report-card", query_string={"terms": "1B,2B"}).get_json()
    assert card["terms"] == ["1B", "2B"]
    assert card["rows"][0]["cells"]["1B"]["status"] == "danger"
    assert card["rows"][0]["cells"]["2B"]["status"] == "absent"

    assert admin_client.get("/api/students/ghost/report-card").status_code == 404


def test_subject_success_rate_without_data(admin_client):
    body = admin_client.get("/api/subjects/Ciencias/success-rate").get_json()

    assert body["rate"] is None
    assert body["insufficient_data"] is True


def test_skills_search(admin_client):
    admin_client.post("/api/skills", json={"code": "EF01LP01", "subject": "Língua Portuguesa", "description": "Ler"})
    admin_client.post("/api/skills", json={"code": "EF01MA01", "subject": "Matemática", "description": "Contar"})

    listed = admin_client.get("/api/skills", query_string={"q": "contar"}).get_json()

    assert [skill["code"] for skill in listed] == ["EF01MA01"]
    assert len(admin_client.get("/api/skills").get_json()) == 2


def test_staff_cannot_change_own_role_or_status(client, user_factory):
    coordinator = user_factory("coord@escola.com", "coordenador")
    _login(client, "coord@escola.com")

    assert client.put(f"/api/users/{coordinator['id']}", json={"status": "inactive"}).status_code == 400
    assert client.put(f"/api/users/{coordinator['id']}", json={"role": "admin"}).status_code == 400
    renamed = client.put(f"/api/users/{coordinator['id']}", json={"name": "Coord Nova", "role": "coordenador"})
    assert renamed.status_code == 200
    assert renamed.get_json()["record"]["name"] == "Coord Nova"
