# tests/conftest.py
import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from repairtrack.config import settings
from repairtrack.db import create_schema
from repairtrack.main import create_app


def _make_token(sub="idp|tech-1", email="tech1@example.com", name="Tech One", **claims):
    payload = {"sub": sub, "email": email, "name": name, **claims}
    if settings.jwt_audience:
        payload.setdefault("aud", settings.jwt_audience)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture()
def engine():
    # "sqlite://" with StaticPool keeps ONE live in-memory connection, shared
    # with the TestClient threadpool
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    create_schema(eng)
    return eng


@pytest.fixture()
def client(engine):
    with TestClient(create_app(engine=engine)) as c:
        yield c


@pytest.fixture()
def make_token():
    return _make_token


@pytest.fixture()
def auth_headers():
    return {"Authorization": f"Bearer {_make_token()}"}


@pytest.fixture()
def other_auth_headers():
    token = _make_token(sub="idp|tech-2", email="tech2@example.com", name="Tech Two")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def create_workflow(client, auth_headers):
    def _create(repair_type="TROLLEY_REPLACEMENT", sku=None, version=1, is_active=True, failure_answers=None, **extra):
        payload = {
            "name": extra.pop("name", f"{repair_type} v{version}"),
            "repair_type": repair_type,
            "sku": sku,
            "sop_url": "https://docs.example.com/sop/trolley.pdf",
            "version": version,
            "is_active": is_active,
            "failure_answers": failure_answers if failure_answers is not None else [
                {"code": "PARTS_UNAVAILABLE", "label": "Parts unavailable"},
                {"code": "OTHER", "label": "Other", "requires_notes": True},
            ],
            **extra,
        }
        r = client.post("/api/v0/workflows", json=payload, headers=auth_headers)
        assert r.status_code == 201, r.text
        return r.json()

    return _create


@pytest.fixture()
def create_item(client, auth_headers):
    def _create(lp="LP-0001", sku="SKU123", **extra):
        r = client.post("/api/v0/items", json={"lp": lp, "sku": sku, **extra}, headers=auth_headers)
        assert r.status_code == 201, r.text
        return r.json()

    return _create


@pytest.fixture()
def create_repair(client, auth_headers):
    def _create(item_id, repair_type="TROLLEY_REPLACEMENT", **extra):
        r = client.post(
            "/api/v0/outstanding-repairs",
            json={"item_id": item_id, "repair_type": repair_type, **extra},
            headers=auth_headers,
        )
        assert r.status_code == 201, r.text
        return r.json()

    return _create
