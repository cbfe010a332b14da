import os
import tempfile

os.environ.setdefault("LOG_PATH", tempfile.mkdtemp(prefix="surveyhub-logs-"))
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient

from factories import NOW
from surveyhub.app.core.config import Settings
from surveyhub.app.main import create_app
from surveyhub.app.services.links import owner_token
from surveyhub.app.services.surveys import get_now
from surveyhub.db import Base
from surveyhub.db.session import build_engine, build_sessionmaker
from surveyhub.db.store import SurveyStore


@pytest.fixture
def store():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    db = build_sessionmaker(engine)()
    try:
        yield SurveyStore(db)
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def clock():
    # mutable so a test can move time forward
    return {"now": NOW}


@pytest.fixture
def app(clock):
    app = create_app(Settings(DATABASE_URL="sqlite://"))
    app.dependency_overrides[get_now] = lambda: clock["now"]
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def _new_owner(app, email):
    db = app.state.session_factory()
    try:
        return SurveyStore(db).create_user(email, full_name="Test Owner").user_id
    finally:
        db.close()


@pytest.fixture
def owner(client, app):
    user_id = _new_owner(app, "owner@example.com")
    return {"user_id": user_id, "t": owner_token(user_id)}


@pytest.fixture
def other_owner(client, app):
    user_id = _new_owner(app, "other@example.com")
    return {"user_id": user_id, "t": owner_token(user_id)}
