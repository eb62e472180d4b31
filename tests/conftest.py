"""Pytest configuration and fixtures for taskflow.

Engine tests use the in-memory stores from tests.fakes. HTTP tests build
the app with create_app() and override the repository dependencies with
the same fakes. DB-dependent fixtures use taskflow.infrastructure.persistence.database.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.api.v1.dependencies import (
    get_correspondence_repo,
    get_task_repo,
    get_workflow_repo,
)
from taskflow.application.services import build_engines
from taskflow.core.config import Settings
from taskflow.infrastructure.persistence import database
from taskflow.main import create_app
from taskflow.shared.context import clear_current_user
from tests.fakes import (
    InMemoryNotificationSink,
    InMemoryTaskRepository,
    InMemoryWorkflowRepository,
)


@pytest.fixture
def settings() -> Settings:
    """Default settings, ignoring any local .env."""
    return Settings(_env_file=None)


@pytest.fixture
def task_repo() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def workflow_repo() -> InMemoryWorkflowRepository:
    return InMemoryWorkflowRepository()


@pytest.fixture
def sink() -> InMemoryNotificationSink:
    return InMemoryNotificationSink()


@pytest.fixture
def engines(task_repo, workflow_repo, sink, settings):
    """(hierarchy, workflow) engines wired over the in-memory stores."""
    return build_engines(task_repo, workflow_repo, sink, settings=settings)


@pytest.fixture
def hierarchy(engines):
    return engines[0]


@pytest.fixture
def workflow_engine(engines):
    return engines[1]


@pytest.fixture(autouse=True)
def _reset_user_context():
    """Acting-user context never leaks between tests."""
    yield
    clear_current_user()


@pytest.fixture
async def client(task_repo, workflow_repo, sink) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI), stores replaced by fakes."""
    app = create_app()
    app.dependency_overrides[get_task_repo] = lambda: task_repo
    app.dependency_overrides[get_workflow_repo] = lambda: workflow_repo
    app.dependency_overrides[get_correspondence_repo] = lambda: sink
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session() -> AsyncSession:
    """Database session for repository/integration tests. Rolls back after test.

    Requires DATABASE_URL. Skips (pytest.skip) when it is not configured. Use
    @pytest.mark.requires_db to mark tests that need this fixture; run
    without DB via: pytest -m 'not requires_db'.
    """
    database._ensure_engine()
    if database.AsyncSessionLocal is None:
        pytest.skip("Database not configured: set DATABASE_URL, then run: alembic upgrade head")
    await database.create_all()
    async with database.AsyncSessionLocal() as session:
        yield session
        await session.rollback()
    await database.dispose_engine()
