import os
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker


# Ensure `import backend.app...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# backend.app.config reads these once at import time, so they must be set before any test imports it.
os.environ["DISABLE_DOTENV"] = "1"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
# Ensure tests never call external AI providers even if developer machine has keys set.
os.environ["AI_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["PAYMENT_VERIFY_DELAY_S"] = "0"
os.environ["BCRYPT_ROUNDS"] = "4"


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite3"


@pytest.fixture()
def app(test_db_path: Path) -> FastAPI:
    """
    Create a FastAPI app wired to a temporary SQLite DB.

    `backend.app.main` is not imported so its startup hook never touches the default database file.
    """
    from backend.app import database as db

    engine = db.create_db_engine(f"sqlite+pysqlite:///{test_db_path}")
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the shared database module so router dependencies use the test DB.
    db.engine = engine
    db.SessionLocal = TestingSessionLocal

    # Import models so Base metadata is populated, then create tables.
    from backend.app import models  # noqa: F401

    db.Base.metadata.drop_all(bind=engine)
    db.Base.metadata.create_all(bind=engine)

    from backend.app.api import ai as ai_api
    from backend.app.api import applications as applications_api
    from backend.app.api import auth as auth_api
    from backend.app.api import connections as connections_api
    from backend.app.api import jobs as jobs_api
    from backend.app.api import payments as payments_api
    from backend.app.api import posts as posts_api
    from backend.app.api import users as users_api
    from backend.app.utils.error_handlers import register_exception_handlers

    fastapi_app = FastAPI()
    for module in (
        auth_api,
        users_api,
        jobs_api,
        posts_api,
        applications_api,
        connections_api,
        payments_api,
        ai_api,
    ):
        fastapi_app.include_router(module.router)
    register_exception_handlers(fastapi_app)

    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    # Unhandled errors should come back as the JSON 500 envelope, not re-raise into the test.
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def db_session(app: FastAPI):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    from backend.app.database import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def register(client: TestClient):
    """Factory: register a user and return (auth_headers, user_json)."""
    counter = {"n": 0}

    def _register(username: str | None = None, *, skills: list[str] | None = None, **extra):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        body = {
            "username": username,
            "email": f"{username}@example.com",
            "password": "Testpass123!",
            "firstName": username.title(),
            "lastName": "Tester",
            "skills": skills or [],
            **extra,
        }
        r = client.post("/auth/register", json=body)
        assert r.status_code == 201, r.text
        data = r.json()
        return {"Authorization": f"Bearer {data['access_token']}"}, data["user"]

    return _register
