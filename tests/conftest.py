import pytest

from app import create_app
from config import TestingConfig
from extensions import db
from services import AppState, AuthService, RemoteStore, RemoteResult, RemoteError


class FakeRemoteStore(RemoteStore):
    """
    Backend en memoria para las pruebas del núcleo: registra cada llamada y
    puede rechazar operaciones con un mensaje fijo.
    """

    def __init__(self):
        super().__init__()
        self.tables: dict[str, dict[str, dict]] = {}
        self.calls: list[tuple] = []
        # "insert" o ("insert", "students") -> mensaje de error
        self.fail_with: dict = {}

    def _rejection(self, operation, table):
        message = self.fail_with.get((operation, table)) or self.fail_with.get(operation)
        if message:
            return RemoteResult(error=RemoteError(message))
        return None

    def insert(self, table, record):
        self.calls.append(("insert", table, dict(record)))
        rejected = self._rejection("insert", table)
        if rejected:
            return rejected
        self.tables.setdefault(table, {})[record["id"]] = dict(record)
        return RemoteResult(data=[dict(record)])

    def update(self, table, record_id, patch):
        self.calls.append(("update", table, record_id, dict(patch)))
        rejected = self._rejection("update", table)
        if rejected:
            return rejected
        rows = self.tables.setdefault(table, {})
        row = rows.setdefault(record_id, {"id": record_id})
        row.update(patch)
        return RemoteResult(data=[dict(row)])

    def delete(self, table, record_id):
        self.calls.append(("delete", table, record_id))
        rejected = self._rejection("delete", table)
        if rejected:
            return rejected
        row = self.tables.setdefault(table, {}).pop(record_id, None)
        return RemoteResult(data=[row] if row else [])

    def select_all(self, table):
        self.calls.append(("select", table))
        rejected = self._rejection("select", table)
        if rejected:
            return rejected
        return RemoteResult(data=[dict(row) for row in self.tables.get(table, {}).values()])


@pytest.fixture
def fake_remote():
    return FakeRemoteStore()


@pytest.fixture
def notices():
    return []


@pytest.fixture
def state(fake_remote, notices):
    app_state = AppState(fake_remote, notify=notices.append)
    app_state.start()
    yield app_state
    app_state.stop()


@pytest.fixture
def app():
    flask_app = create_app(TestingConfig)
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()
    flask_app.extensions["bncc_state"].stop()


@pytest.fixture
def app_state(app):
    return app.extensions["bncc_state"]


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(app_state, email, role, password="secret123", name=None):
    outcome = app_state.users.create(
        {
            "name": name or email.split("@")[0].title(),
            "email": email,
            "role": role,
            "passwordHash": AuthService.hash_password(password),
        }
    )
    assert outcome.ok, outcome.error
    return outcome.record


@pytest.fixture
def user_factory(app_state):
    def factory(email, role, password="secret123", name=None):
        return _make_user(app_state, email, role, password=password, name=name)

    return factory


@pytest.fixture
def admin_user(app_state):
    return _make_user(app_state, "admin@escola.com", "admin", name="Admin Escola")


@pytest.fixture
def admin_client(client, admin_user):
    response = client.post("/auth/login", json={"email": "admin@escola.com", "password": "secret123"})
    assert response.status_code == 200
    return client
