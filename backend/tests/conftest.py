"""
Shared fixtures.

Service and store tests run against both storage backends: the in-memory
one and SQLAlchemy on a throwaway aiosqlite file. API tests drive the real
FastAPI app through TestClient with in-memory storage.
"""

import os
from types import SimpleNamespace

# Must be set before healthsync.config is imported anywhere
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["STORAGE_BACKEND"] = "memory"
os.environ.pop("DATABASE_URL", None)
os.environ["LOG_JSON"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from healthsync.auth import UserPrincipal
from healthsync.config import Settings
from healthsync.main import create_app
from healthsync.ownership import HeldByAdmin
from healthsync.records import ROLE_DOCTOR, ROLE_ORGANIZATION
from healthsync.services.notification_service import NotificationService
from healthsync.services.realtime_gateway import RealtimeGateway
from healthsync.stores import create_memory_storage, create_sql_storage


class FakeWebSocket:
    """Collects frames pushed by the gateway."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def send_json(self, data):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    @property
    def events(self):
        return [f["event"] for f in self.sent]


def principal(user) -> UserPrincipal:
    return UserPrincipal(id=user.id, email=user.email, role=user.role)


@pytest.fixture(params=["memory", "sql"])
async def storage(request, tmp_path):
    if request.param == "memory":
        store = create_memory_storage()
    else:
        store = await create_sql_storage(f"sqlite+aiosqlite:///{tmp_path / 'healthsync.db'}")
    yield store
    await store.close()


@pytest.fixture
def gateway():
    return RealtimeGateway(enabled=True)


@pytest.fixture
def notifications(storage, gateway):
    return NotificationService(storage.notifications, gateway)


@pytest.fixture
async def clinic(storage):
    """An organization with its admin, two member doctors, an outsider doctor and one held patient."""
    admin = await storage.users.create("admin@clinic.test", "x", ROLE_ORGANIZATION, {"admin": "Dana Admin"})
    org = await storage.organizations.create("Community Clinic A", "community-clinic-a", admin=admin.id)
    admin = await storage.users.update(admin.id, profile=dict(admin.profile, organizationId=org.id))
    doctor = await storage.users.create("d1@clinic.test", "x", ROLE_DOCTOR, {"name": "Dr One", "organizationId": org.id})
    other_doctor = await storage.users.create("d2@clinic.test", "x", ROLE_DOCTOR, {"name": "Dr Two", "organizationId": org.id})
    outsider = await storage.users.create("out@else.test", "x", ROLE_DOCTOR, {"name": "Dr Out"})

    patient = await storage.patients.create("Alice", 42, HeldByAdmin(admin.id))

    return SimpleNamespace(
        org=org,
        admin=admin,
        doctor=doctor,
        other_doctor=other_doctor,
        outsider=outsider,
        patient=patient,
    )


# -- HTTP ---------------------------------------------------------------------

def _test_settings(**overrides) -> Settings:
    values = dict(
        jwt_secret=os.environ["JWT_SECRET"],
        storage_backend="memory",
        database_url=None,
        enable_sockets=True,
        log_json=False,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def app():
    return create_app(_test_settings())


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def signup(client, email, role=ROLE_DOCTOR, **profile) -> dict:
    response = client.post(
        "/api/auth/signup",
        json={"email": email, "password": "pw-123456", "role": role, "profile": profile},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def api_clinic(client):
    """Organization admin plus two doctors registered through the API."""
    admin = signup(client, "admin@clinic.test", ROLE_ORGANIZATION, organization="Riverside Clinic", admin="Dana Admin")
    org_id = admin["user"]["profile"]["organizationId"]
    d1 = signup(client, "d1@clinic.test", name="Dr One", organizationId=org_id)
    d2 = signup(client, "d2@clinic.test", name="Dr Two", organizationId=org_id)
    return SimpleNamespace(
        org_id=org_id,
        admin=admin,
        d1=d1,
        d2=d2,
        admin_headers=auth_headers(admin["token"]),
        d1_headers=auth_headers(d1["token"]),
        d2_headers=auth_headers(d2["token"]),
    )
