"""시프트 라우터 — 시프트 생성, 배정, 출퇴근 API.

Shift Router — API endpoints for shifts: direct creation, listing, worker
assignment, cancellation and clock-in/clock-out time tracking.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.api.deps import Identity, get_identity, require_manager
from schedulehub.database import get_db
from schedulehub.schemas.shift import (
    ClockInRequest,
    ClockOutRequest,
    ClockOutResponse,
    ShiftAssignRequest,
    ShiftCancelRequest,
    ShiftCreate,
    ShiftResponse,
)
from schedulehub.services.shift_service import shift_service
from schedulehub.utils.validators import parse_optional_uuid, parse_uuid

router: APIRouter = APIRouter()


@router.get("", response_model=list[ShiftResponse])
async def list_shifts(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_identity)],
    shift_date: Annotated[str | None, Query()] = None,
    station_id: Annotated[str | None, Query()] = None,
    status: Annotated[str | None, Query()] = None,
) -> list[dict]:
    """시프트 목록을 필터링하여 조회합니다.

    List shifts by date, station and status.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session)
        identity: 요청 행위자 (Acting identity)
        shift_date: 근무 날짜 "YYYY-MM-DD", 선택 (Optional date filter)
        station_id: 스테이션 UUID, 선택 (Optional station filter)
        status: 상태 필터, 선택 (Optional status filter)

    Returns:
        list[dict]: 시프트 목록 (Shift list)
    """
    shifts = await shift_service.list_shifts(
        db,
        identity.organization_id,
        shift_date=shift_date,
        station_id=parse_optional_uuid(station_id, "station_id"),
        status=status,
    )
    return [shift_service.build_response(shift) for shift in shifts]


@router.post("", response_model=ShiftResponse, status_code=201)
async def create_shift(
    data: ShiftCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(require_manager)],
) -> dict:
    """시프트를 직접 생성합니다 — Create a shift directly."""
    shift = await shift_service.create_shift(db, data, identity.organization_id, identity.user_id)
    return shift_service.build_response(shift)


@router.get("/workers/{worker_id}", response_model=list[ShiftResponse])
async def get_worker_shifts(
    worker_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_identity)],
    start_date: Annotated[str, Query()],
    end_date: Annotated[str, Query()],
) -> list[dict]:
    """기간 내 작업자의 시프트를 조회합니다 — A worker's shifts between two dates."""
    shifts = await shift_service.get_worker_shifts(db, identity.organization_id, worker_id, start_date, end_date)
    return [shift_service.build_response(shift) for shift in shifts]


@router.get("/{shift_id}", response_model=ShiftResponse)
async def get_shift(
    shift_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> dict:
    """시프트 상세를 조회합니다 — Shift detail."""
    shift = await shift_service.get_shift(db, shift_id, identity.organization_id)
    return shift_service.build_response(shift)


@router.post("/{shift_id}/clock-in", response_model=ShiftResponse)
async def clock_in(
    shift_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_identity)],
    data: ClockInRequest | None = None,
) -> dict:
    """출근을 기록합니다.

    Record clock-in; the time defaults to now when omitted.
    """
    shift = await shift_service.clock_in(
        db,
        shift_id,
        identity.organization_id,
        identity.user_id,
        clock_in_time=data.clock_in_time if data else None,
    )
    return shift_service.build_response(shift)


@router.post("/{shift_id}/clock-out", response_model=ClockOutResponse)
async def clock_out(
    shift_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_identity)],
    data: ClockOutRequest | None = None,
) -> dict:
    """퇴근을 기록하고 근무 시간을 계산합니다.

    Record clock-out and return the time tracking breakdown together with
    the payroll integration result (null when payroll could not be reached).
    """
    return await shift_service.clock_out(
        db, shift_id, data or ClockOutRequest(), identity.organization_id, identity.user_id
    )


@router.post("/{shift_id}/cancel", response_model=ShiftResponse)
async def cancel_shift(
    shift_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(require_manager)],
    data: ShiftCancelRequest | None = None,
) -> dict:
    """시프트를 취소합니다 — Cancel a shift."""
    shift = await shift_service.cancel_shift(
        db, shift_id, identity.organization_id, identity.user_id, reason=data.reason if data else None
    )
    return shift_service.build_response(shift)


@router.post("/{shift_id}/assign", response_model=ShiftResponse)
async def assign_worker(
    shift_id: UUID,
    data: ShiftAssignRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(require_manager)],
) -> dict:
    """시프트에 작업자를 배정합니다 — Assign a worker to a shift."""
    shift = await shift_service.assign_worker(
        db, shift_id, parse_uuid(data.employee_id, "employee_id"), identity.organization_id, identity.user_id
    )
    return shift_service.build_response(shift)


@router.post("/{shift_id}/unassign", response_model=ShiftResponse)
async def unassign_worker(
    shift_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(require_manager)],
) -> dict:
    """시프트 배정을 해제합니다 — Make a shift open again."""
    shift = await shift_service.unassign_worker(db, shift_id, identity.organization_id, identity.user_id)
    return shift_service.build_response(shift)
