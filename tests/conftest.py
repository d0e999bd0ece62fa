"""Shared fixtures: in-memory database, seeded records and an API client."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from opstracker import models  # noqa: F401
from opstracker.database import Base, get_db
from opstracker.main import app
from opstracker.models import OperationVisibility, UserRole
from opstracker.schemas.technique import TechniqueCreate
from opstracker.services import technique_service

from .factories import (
    build_group, build_mitre_taxonomy, build_operation, build_target, build_tool, build_user,
)


@pytest.fixture()
def engine():
    """Fresh in-memory sqlite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def red_team(db):
    return build_group(db, id="red-team", name="Red Team")


@pytest.fixture()
def admin(db):
    return build_user(db, id="admin", name="Admin", role=UserRole.ADMIN)


@pytest.fixture()
def operator(db, red_team):
    return build_user(db, id="operator", name="Operator", role=UserRole.OPERATOR, groups=[red_team])


@pytest.fixture()
def viewer(db, red_team):
    return build_user(db, id="viewer", name="Viewer", role=UserRole.VIEWER, groups=[red_team])


@pytest.fixture()
def outsider(db):
    return build_user(db, id="outsider", name="Outsider", role=UserRole.OPERATOR)


@pytest.fixture()
def operation(db):
    return build_operation(db, name="Operation Nightfall")


@pytest.fixture()
def private_operation(db, red_team):
    return build_operation(
        db, name="Operation Glasshouse", visibility=OperationVisibility.GROUPS_ONLY, groups=[red_team]
    )


@pytest.fixture()
def tools(db):
    return [
        build_tool(db, id="tool-cs", name="Cobalt Strike"),
        build_tool(db, id="tool-mimikatz", name="Mimikatz"),
        build_tool(db, id="tool-nmap", name="Nmap"),
    ]


@pytest.fixture()
def targets(db):
    return [
        build_target(db, id="target-dc", name="Domain Controller", is_crown_jewel=True),
        build_target(db, id="target-web", name="Web Server"),
        build_target(db, id="target-db", name="Database"),
    ]


@pytest.fixture()
def mitre(db):
    build_mitre_taxonomy(db)


@pytest.fixture()
def make_technique(db, operator):
    """Create techniques through the service as ``operator``."""

    def _make(operation_id, **fields):
        return technique_service.create_technique(db, operator, TechniqueCreate(operation_id=operation_id, **fields))

    return _make


@pytest.fixture()
def client(session_factory):
    """API client bound to the test database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()