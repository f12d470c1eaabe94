"""테스트 인프라 — 인메모리 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure — In-memory SQLite DB, session, and httpx client fixtures.
The schema (including the overlapping-shift trigger) is created fresh for
every test, so no PostgreSQL server is needed.
"""

import uuid
from collections.abc import AsyncGenerator
from datetime import time
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import Select
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from schedulehub.database import Base, get_db
from schedulehub.main import app
from schedulehub.models import *  # noqa: F401,F403 — register all models with metadata
from schedulehub.models.station import Station, StationRoleRequirement
from schedulehub.models.template import ShiftTemplate, ShiftTemplateStation
from schedulehub.models.worker import Role, Worker, WorkerAvailability, WorkerRole
from schedulehub.utils.jwt import create_access_token

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 스키마와 트리거를 생성합니다."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
@pytest.fixture
def org_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def manager_id() -> uuid.UUID:
    return uuid.uuid4()


async def add(db: AsyncSession, obj: Any) -> Any:
    """객체를 저장하고 커밋합니다."""
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj


@pytest_asyncio.fixture
async def cook_role(db: AsyncSession, org_id) -> Role:
    """조리 역할을 생성합니다."""
    return await add(db, Role(organization_id=org_id, role_name="Cook"))


async def make_worker(
    db: AsyncSession,
    org_id: uuid.UUID,
    first_name: str,
    last_name: str,
    role: Role | None = None,
    employment_type: str = "full_time",
    availability: list[tuple[int, time, time]] | None = None,
) -> Worker:
    """작업자를 생성하고 역할과 요일별 근무 가능 시간을 등록합니다.

    ``availability`` is a list of (ISO weekday, start, end); by default the
    worker is available 08:00–18:00 every day.
    """
    worker = await add(db, Worker(
        organization_id=org_id,
        first_name=first_name,
        last_name=last_name,
        employment_type=employment_type,
    ))
    if role is not None:
        await add(db, WorkerRole(organization_id=org_id, worker_id=worker.id, role_id=role.id))
    if availability is None:
        availability = [(day, time(8, 0), time(18, 0)) for day in range(1, 8)]
    for day, start, end in availability:
        await add(db, WorkerAvailability(
            organization_id=org_id,
            worker_id=worker.id,
            availability_type="recurring",
            day_of_week=day,
            start_time=start,
            end_time=end,
        ))
    return worker


@pytest_asyncio.fixture
async def cooks(db: AsyncSession, org_id, cook_role) -> list[Worker]:
    """종일 근무 가능한 조리 작업자 3명 (성 순서: Adams, Brown, Clark)."""
    return [
        await make_worker(db, org_id, "Alice", "Adams", cook_role),
        await make_worker(db, org_id, "Bob", "Brown", cook_role),
        await make_worker(db, org_id, "Carol", "Clark", cook_role),
    ]


async def make_station(
    db: AsyncSession,
    org_id: uuid.UUID,
    name: str,
    requirements: list[tuple[Role, int, int | None]] | None = None,
) -> Station:
    """스테이션과 역할별 필요 인원을 생성합니다."""
    station = await add(db, Station(organization_id=org_id, station_name=name))
    for role, min_workers, max_workers in requirements or []:
        await add(db, StationRoleRequirement(
            organization_id=org_id,
            station_id=station.id,
            role_id=role.id,
            min_workers=min_workers,
            max_workers=max_workers,
        ))
    await db.refresh(station, ["requirements"])
    return station


@pytest_asyncio.fixture
async def grill(db: AsyncSession, org_id, cook_role) -> Station:
    return await make_station(db, org_id, "Grill", [(cook_role, 2, None)])


async def make_template(
    db: AsyncSession,
    org_id: uuid.UUID,
    name: str,
    role: Role | None,
    start: time,
    end: time,
    required_workers: int = 1,
    days_of_week: list[int] | None = None,
    stations: list[Station] | None = None,
    is_active: bool = True,
) -> ShiftTemplate:
    """시프트 템플릿과 스테이션 연결을 생성합니다."""
    template = await add(db, ShiftTemplate(
        organization_id=org_id,
        template_name=name,
        role_id=role.id if role is not None else None,
        start_time=start,
        end_time=end,
        required_workers=required_workers,
        days_of_week=days_of_week or [1, 2, 3, 4, 5, 6, 7],
        is_active=is_active,
        is_overnight=end <= start,
    ))
    for order, station in enumerate(stations or []):
        await add(db, ShiftTemplateStation(template_id=template.id, station_id=station.id, sort_order=order))
    await db.refresh(template, ["station_links"])
    return template


@pytest_asyncio.fixture
async def day_template(db: AsyncSession, org_id, cook_role, grill) -> ShiftTemplate:
    """월/화 09:00–17:00, 2명, Grill 스테이션 템플릿."""
    return await make_template(
        db, org_id, "Day Cook", cook_role, time(9, 0), time(17, 0),
        required_workers=2, days_of_week=[1, 2], stations=[grill],
    )


class FakePayrollClient:
    """급여 연동 테스트 더블 — 기록된 항목을 보관합니다."""

    def __init__(self, fail: bool = False, error: Exception | None = None) -> None:
        self.fail = fail
        self.error = error
        self.entries: list[dict[str, Any]] = []

    async def record_time_entry(self, entry: dict[str, Any], user_id: uuid.UUID) -> dict[str, Any]:
        from schedulehub.services.payroll_client import PayrollIntegrationError

        if self.error is not None:
            raise self.error
        if self.fail:
            raise PayrollIntegrationError("payroll unavailable")
        self.entries.append(entry)
        return {"time_entry_id": f"te-{len(self.entries)}", "success": True}


def make_token(user_id: uuid.UUID, org_id: uuid.UUID, level: int, worker_id: uuid.UUID | None = None) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    claims: dict[str, Any] = {"sub": str(user_id), "org": str(org_id), "level": level}
    if worker_id is not None:
        claims["worker"] = str(worker_id)
    return create_access_token(claims)


@pytest.fixture
def manager_token(manager_id, org_id) -> str:
    return make_token(manager_id, org_id, 2)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def locked_tables(db: AsyncSession, monkeypatch) -> list[str]:
    """세션에서 실행된 SELECT ... FOR UPDATE의 대상 테이블을 기록합니다.

    SQLite ignores row locks, so statements are rendered with the PostgreSQL
    dialect to see which ones would lock.
    """
    tables: list[str] = []
    execute = db.execute

    async def recording_execute(statement, *args, **kwargs):
        if isinstance(statement, Select):
            sql = str(statement.compile(dialect=postgresql.dialect()))
            if "FOR UPDATE" in sql:
                tables.extend(table.name for table in statement.get_final_froms())
        return await execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", recording_execute)
    return tables
