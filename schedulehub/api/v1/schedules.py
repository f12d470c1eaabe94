"""스케줄 라우터 — 스케줄 생성, 자동 생성, 게시 API.

Schedule Router — API endpoints for schedules: creation, auto-generation from
templates, listing, publication check, publish and unpublish.
Mutations require a manager (level <= 2).
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.api.deps import Identity, get_identity, require_manager
from schedulehub.database import get_db
from schedulehub.schemas.common import PaginatedResponse
from schedulehub.schemas.schedule import (
    AutoGenerateResponse,
    ScheduleAutoGenerate,
    ScheduleCreate,
    ScheduleDetailResponse,
    ScheduleResponse,
    PublicationValidation,
)
from schedulehub.services.schedule_service import schedule_service

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_schedules(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_identity)],
    status: Annotated[str | None, Query()] = None,
    date_from: Annotated[str | None, Query()] = None,
    date_to: Annotated[str | None, Query()] = None,
    page: int = 1,
    per_page: int = 20,
) -> dict:
    """스케줄 목록을 필터링하여 조회합니다.

    List schedules of the caller's organization.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session)
        identity: 요청 행위자 (Acting identity)
        status: 상태 필터 draft/published, 선택 (Optional status filter)
        date_from: 기간 시작 필터 "YYYY-MM-DD", 선택 (Schedules ending on or after)
        date_to: 기간 종료 필터 "YYYY-MM-DD", 선택 (Schedules starting on or before)
        page: 페이지 번호 (Page number)
        per_page: 페이지당 항목 수 (Items per page)

    Returns:
        dict: 페이지네이션된 스케줄 목록 (Paginated schedule list)
    """
    return await schedule_service.list_schedules(
        db,
        identity.organization_id,
        status=status,
        date_from=date_from,
        date_to=date_to,
        page=page,
        per_page=per_page,
    )


@router.post("", response_model=ScheduleResponse, status_code=201)
async def create_schedule(
    data: ScheduleCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(require_manager)],
) -> dict:
    """빈 초안 스케줄을 생성합니다 — Create an empty draft schedule."""
    schedule = await schedule_service.create_schedule(db, data, identity.organization_id, identity.user_id)
    return await schedule_service.describe_schedule(db, schedule)


@router.post("/auto-generate", response_model=AutoGenerateResponse, status_code=201)
async def auto_generate_schedule(
    data: ScheduleAutoGenerate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(require_manager)],
) -> dict:
    """템플릿으로부터 스케줄을 자동 생성합니다.

    Create a schedule and generate its shifts from templates.

    Args:
        data: 자동 생성 요청 (template_ids and/or template_day_mapping)
        db: 비동기 데이터베이스 세션 (Async database session)
        identity: 관리자 신원 (Manager identity)

    Returns:
        dict: 스케줄과 생성 요약 (Schedule and generation summary)
    """
    return await schedule_service.auto_generate_schedule(db, data, identity.organization_id, identity.user_id)


@router.get("/{schedule_id}", response_model=ScheduleDetailResponse)
async def get_schedule(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> dict:
    """스케줄 상세를 시프트와 함께 조회합니다 — Schedule detail with its shifts."""
    schedule, shifts = await schedule_service.get_schedule(db, schedule_id, identity.organization_id)
    return schedule_service.build_detail_response(schedule, shifts)


@router.get("/{schedule_id}/validate-publication", response_model=PublicationValidation)
async def validate_publication(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(require_manager)],
) -> dict:
    """게시 전 충돌을 검사합니다 — Check for conflicts with other published schedules."""
    return await schedule_service.validate_schedule_for_publication(db, schedule_id, identity.organization_id)


@router.post("/{schedule_id}/publish", response_model=ScheduleResponse)
async def publish_schedule(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(require_manager)],
) -> dict:
    """스케줄을 게시합니다 (draft → published).

    Publish a schedule. Fails with 409 and the conflict list when a worker
    would be double-booked against another published schedule.
    """
    schedule = await schedule_service.publish_schedule(db, schedule_id, identity.organization_id, identity.user_id)
    return await schedule_service.describe_schedule(db, schedule)


@router.post("/{schedule_id}/unpublish", response_model=ScheduleResponse)
async def unpublish_schedule(
    schedule_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(require_manager)],
) -> dict:
    """게시를 취소합니다 (published → draft) — Return a schedule to draft."""
    schedule = await schedule_service.unpublish_schedule(db, schedule_id, identity.organization_id, identity.user_id)
    return await schedule_service.describe_schedule(db, schedule)
