"""Shared fixtures: a throwaway SQLite database, a fake web and wired services."""
from datetime import datetime

import httpx
import pytest

from urlmon.database import create_engine_for_url, create_session_factory, create_tables
from urlmon.main import create_app
from urlmon.models import MonitoredEndpoint, User
from urlmon.services.checker import CheckerService
from urlmon.services.monitoring import MonitoringService
from urlmon.services.repository import Repository
from urlmon.services.scheduler import SchedulerService


def fake_web(request: httpx.Request) -> httpx.Response:
    """Stand-in for the internet, keyed on host name."""
    host = request.url.host
    if host == "down.example.com":
        raise httpx.ConnectError("Connection refused", request=request)
    if host == "slow.example.com":
        raise httpx.ReadTimeout("timed out", request=request)
    if host == "loop.example.com":
        return httpx.Response(
            302, headers={"location": str(request.url), "content-type": "text/html"}, text="moved"
        )
    if host == "maintenance.example.com":
        raise httpx.HTTPStatusError(
            "Service unavailable",
            request=request,
            response=httpx.Response(503, headers={"content-type": "text/plain"}, text="back soon"),
        )
    if host == "broken.example.com":
        return httpx.Response(200, headers={"content-type": "not/a-real-type"}, text="???")
    if request.url.path == "/missing":
        return httpx.Response(404, headers={"content-type": "text/plain"}, text="not found")
    return httpx.Response(
        200, headers={"content-type": "text/html; charset=utf-8"}, text="<html>ok</html>"
    )


@pytest.fixture
async def engine(tmp_path):
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'urlmon-test.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def repository(session_factory):
    return Repository(session_factory)


async def _add_user(session_factory, name: str, token: str) -> int:
    async with session_factory() as session:
        user = User(name=name, email=f"{name}@user.xyz", access_token=token)
        session.add(user)
        await session.commit()
        return user.id


@pytest.fixture
async def user_id(session_factory):
    return await _add_user(session_factory, "testing", "testing-token")


@pytest.fixture
async def other_user_id(session_factory):
    return await _add_user(session_factory, "empty-testing", "empty-testing-token")


@pytest.fixture
def checker():
    return CheckerService(transport=httpx.MockTransport(fake_web))


@pytest.fixture
def monitoring(repository, checker):
    return MonitoringService(repository, checker)


@pytest.fixture
async def scheduler(repository, monitoring):
    scheduler = SchedulerService(repository, monitoring)
    scheduler.start()
    yield scheduler
    scheduler.stop()
    await scheduler.wait_for_pending_checks()


@pytest.fixture
def make_endpoint(user_id):
    def factory(**overrides) -> MonitoredEndpoint:
        fields = dict(
            name="testing",
            url="https://github.com",
            created_date=datetime.utcnow(),
            monitoring_interval=60,
            owner_id=user_id,
        )
        fields.update(overrides)
        return MonitoredEndpoint(**fields)

    return factory


@pytest.fixture
async def endpoint(repository, make_endpoint):
    return await repository.save_endpoint(make_endpoint())


@pytest.fixture
async def client(repository, scheduler):
    app = create_app()
    app.state.repository = repository
    app.state.scheduler = scheduler
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client
