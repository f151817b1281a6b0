"""Shared pytest fixtures and configuration."""
import os
import tempfile

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="dealer-seo-tests-")

# Set test environment variables before any app module reads settings
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["SEOWORKS_WEBHOOK_SECRET"] = "test-secret"
os.environ["SEOWORKS_AUTO_CREATE_REQUESTS"] = "false"
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["ENABLE_LLM_CHAT"] = "false"
os.environ["RESEND_API_KEY"] = ""

from fastapi.testclient import TestClient  # noqa: E402

from app.config import get_settings  # noqa: E402
from app.models.base import Base, SessionLocal, engine  # noqa: E402
from app.utils.cache import clear_cache  # noqa: E402
from tests.factories import make_agency, make_dealership, make_user, session_headers  # noqa: E402

WEBHOOK_SECRET = "test-secret"


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def db():
    """Fresh schema per test."""
    import app.models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    clear_cache()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    from app.main import app

    return TestClient(app)


@pytest.fixture
def tenant(db):
    """One agency, a GOLD dealership and a plain user working at it."""
    agency = make_agency(db, name="Northside Auto Group")
    dealership = make_dealership(db, agency, name="Northside Honda", client_id="client-honda", package_type="GOLD")
    user = make_user(db, email="owner@northside.test", agency=agency, dealership=dealership)
    return {"agency": agency, "dealership": dealership, "user": user}


@pytest.fixture
def user_headers(db, tenant):
    return session_headers(db, tenant["user"])


@pytest.fixture
def webhook_headers():
    return {"x-api-key": WEBHOOK_SECRET}
