"""시프트 서비스 — 시프트 생명주기 및 근무 시간 기록 비즈니스 로직.

Shift Service — Shift lifecycle and time tracking.
Handles manual shift creation, assignment changes, cancellation, clock in/out
with regular/overtime computation, and the assignment swap used by approved
shift trades. Every public mutation runs in one unit of work; payroll is
notified only after the clock-out commit and never fails the clock-out.
"""

import logging
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.config import settings
from schedulehub.database import unit_of_work
from schedulehub.models.schedule import Schedule, Shift
from schedulehub.models.status import ShiftStatus, transition_shift
from schedulehub.models.worker import Worker
from schedulehub.repositories.schedule_repository import schedule_repository
from schedulehub.repositories.shift_repository import shift_repository
from schedulehub.repositories.worker_repository import worker_repository
from schedulehub.schemas.shift import ClockOutRequest, ShiftCreate
from schedulehub.services.payroll_client import PayrollClient, PayrollIntegrationError, payroll_client
from schedulehub.services.template_service import template_service
from schedulehub.utils.date_utils import (
    as_utc,
    dated_window_minutes,
    format_time,
    parse_date_only,
    parse_time,
    utc_now,
    window_hours,
    window_minutes,
    windows_overlap,
)
from schedulehub.utils.exceptions import ConflictError, NotFoundError, ValidationError, overlap_guard
from schedulehub.utils.validators import parse_optional_uuid

logger = logging.getLogger(__name__)

_HOURS_QUANTUM: Decimal = Decimal("0.01")


def compute_time_tracking(
    clock_in_time: datetime,
    clock_out_time: datetime,
    break_minutes: int,
    employment_type: str | None,
    scheduled_start: time,
    scheduled_end: time,
) -> dict[str, Decimal]:
    """근무 시간과 정규/초과 근무 시간을 계산합니다.

    Compute worked, regular and overtime hours for one shift.

    worked = (clock_out − clock_in) − break, rounded to 0.01 h.
    The regular-hours baseline is the scheduled shift duration for employment
    types listed in ``SCHEDULED_BASELINE_EMPLOYMENT_TYPES`` and
    ``FULL_TIME_DAILY_REGULAR_HOURS`` for everyone else.
    regular = min(worked, baseline); overtime = worked − regular.

    Args:
        clock_in_time: 출근 시각 (Clock-in instant)
        clock_out_time: 퇴근 시각 (Clock-out instant, not before clock-in)
        break_minutes: 휴게 시간(분) (Break taken, within the elapsed time)
        employment_type: 고용 유형 (Worker employment type, None for open shifts)
        scheduled_start: 예정 시작 시각 (Scheduled start)
        scheduled_end: 예정 종료 시각 (Scheduled end)

    Returns:
        dict[str, Decimal]: worked_hours, regular_hours, overtime_hours, baseline_hours
    """
    elapsed_seconds = Decimal(str((clock_out_time - clock_in_time).total_seconds()))
    worked: Decimal = ((elapsed_seconds - Decimal(break_minutes) * 60) / Decimal(3600)).quantize(
        _HOURS_QUANTUM, rounding=ROUND_HALF_UP
    )

    if employment_type in settings.SCHEDULED_BASELINE_EMPLOYMENT_TYPES:
        baseline = Decimal(str(window_hours(scheduled_start, scheduled_end)))
    else:
        baseline = Decimal(str(settings.FULL_TIME_DAILY_REGULAR_HOURS))
    baseline = baseline.quantize(_HOURS_QUANTUM, rounding=ROUND_HALF_UP)

    regular: Decimal = min(worked, baseline)
    overtime: Decimal = worked - regular
    return {
        "worked_hours": worked,
        "regular_hours": regular,
        "overtime_hours": overtime,
        "baseline_hours": baseline,
    }


class ShiftService:
    """시프트 서비스.

    Shift service handling creation, assignment, cancellation and time tracking.

    Args:
        payroll: 급여 연동 클라이언트, 생략 시 HTTP 클라이언트
            (Payroll collaborator; defaults to the HTTP client)
    """

    def __init__(self, payroll: PayrollClient | None = None) -> None:
        self.payroll: PayrollClient = payroll if payroll is not None else payroll_client

    @staticmethod
    def build_response(shift: Shift) -> dict[str, Any]:
        """시프트 응답 딕셔너리를 생성합니다 — Build the shift response dict."""
        return {
            "id": str(shift.id),
            "schedule_id": str(shift.schedule_id) if shift.schedule_id else None,
            "template_id": str(shift.template_id) if shift.template_id else None,
            "station_id": str(shift.station_id) if shift.station_id else None,
            "role_id": str(shift.role_id) if shift.role_id else None,
            "employee_id": str(shift.employee_id) if shift.employee_id else None,
            "shift_date": shift.shift_date,
            "start_time": format_time(shift.start_time),
            "end_time": format_time(shift.end_time),
            "break_minutes": shift.break_minutes or 0,
            "actual_break_minutes": shift.actual_break_minutes,
            "clock_in_time": as_utc(shift.clock_in_time),
            "clock_out_time": as_utc(shift.clock_out_time),
            "status": shift.status,
            "actual_hours": float(shift.actual_hours) if shift.actual_hours is not None else None,
            "shift_type": shift.shift_type,
            "notes": shift.notes,
            "cancellation_reason": shift.cancellation_reason,
        }

    async def get_shift(
        self,
        db: AsyncSession,
        shift_id: UUID,
        organization_id: UUID,
        for_update: bool = False,
    ) -> Shift:
        """시프트를 조회합니다.

        Get a shift of the organization. ``for_update`` locks the row for the
        rest of the caller's unit of work.

        Raises:
            NotFoundError: 시프트가 없을 때 (When the shift does not exist)
        """
        shift: Shift | None = await shift_repository.get_by_id(db, shift_id, organization_id, for_update=for_update)
        if shift is None:
            raise NotFoundError("Shift not found", entity="shift")
        return shift

    async def list_shifts(
        self,
        db: AsyncSession,
        organization_id: UUID,
        shift_date: str | None = None,
        station_id: UUID | None = None,
        status: str | None = None,
    ) -> Sequence[Shift]:
        """필터 조건으로 시프트 목록을 조회합니다 — List shifts by date, station and status."""
        if status is not None and status not in {s.value for s in ShiftStatus}:
            raise ValidationError(f"Invalid shift status: {status}", entity="shift")
        target_date: date | None = parse_date_only(shift_date) if shift_date else None
        return await shift_repository.get_by_filters(
            db, organization_id, shift_date=target_date, station_id=station_id, status=status
        )

    async def get_worker_shifts(
        self,
        db: AsyncSession,
        organization_id: UUID,
        worker_id: UUID,
        start_date: str,
        end_date: str,
    ) -> Sequence[Shift]:
        """기간 내 작업자의 시프트를 조회합니다.

        Get a worker's shifts between two dates (inclusive).

        Raises:
            ValidationError: 날짜 형식 오류 또는 종료일이 시작일 이전
                (Malformed dates or end before start)
        """
        start: date = parse_date_only(start_date)
        end: date = parse_date_only(end_date)
        if end < start:
            raise ValidationError("End date must be on or after start date", entity="shift")
        return await shift_repository.get_worker_shifts(db, organization_id, worker_id, start, end)

    async def _get_worker(self, db: AsyncSession, worker_id: UUID, organization_id: UUID) -> Worker:
        worker: Worker | None = await worker_repository.get_by_id(db, worker_id, organization_id)
        if worker is None:
            raise NotFoundError("Worker not found", entity="worker")
        return worker

    async def _check_published_conflicts(
        self,
        db: AsyncSession,
        organization_id: UUID,
        worker_id: UUID,
        shift_date: date,
        start_time: time,
        end_time: time,
        schedule_id: UUID | None,
        exclude_shift_id: UUID | None = None,
    ) -> None:
        """다른 게시된 스케줄의 시프트와 겹치는지 확인합니다.

        Reject a placement that overlaps the worker's shift in another
        published schedule.

        Raises:
            ConflictError: 게시된 스케줄과 충돌 (Conflicts with a published schedule)
        """
        candidate = window_minutes(start_time, end_time)
        rows = await shift_repository.get_published_shifts_for_worker(
            db, organization_id, worker_id, shift_date, exclude_schedule_id=schedule_id
        )
        for other, other_schedule in rows:
            if other.id == exclude_shift_id:
                continue
            theirs = dated_window_minutes(shift_date, other.shift_date, other.start_time, other.end_time)
            if windows_overlap(candidate, theirs):
                raise ConflictError(
                    f"Shift conflicts with published schedule '{other_schedule.schedule_name}': "
                    f"worker already scheduled from {format_time(other.start_time)} "
                    f"to {format_time(other.end_time)} on {other.shift_date.isoformat()}",
                    entity="shift",
                    reason="published_schedule_conflict",
                )

    async def create_shift(
        self,
        db: AsyncSession,
        data: ShiftCreate,
        organization_id: UUID,
        user_id: UUID,
    ) -> Shift:
        """시프트를 직접 생성합니다.

        Create a shift directly (manager). The datastore overlap guard is
        translated into ``ConflictError``.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 시프트 생성 데이터 (Shift creation data)
            organization_id: 조직 UUID (Organization UUID)
            user_id: 생성자 UUID (Acting manager)

        Returns:
            Shift: 생성된 시프트 (Created shift)

        Raises:
            ValidationError: 입력 형식 오류 (Malformed input)
            NotFoundError: 스케줄, 템플릿, 작업자가 없을 때 (Referenced entity missing)
            ConflictError: 중복 근무 또는 게시된 스케줄과 충돌 (Overlap or published conflict)
        """
        shift_date: date = parse_date_only(data.shift_date)
        start_time: time = parse_time(data.start_time)
        end_time: time = parse_time(data.end_time)
        if data.break_minutes < 0:
            raise ValidationError("Break minutes cannot be negative", entity="shift")

        schedule_id = parse_optional_uuid(data.schedule_id, "schedule_id")
        template_id = parse_optional_uuid(data.template_id, "template_id")
        employee_id = parse_optional_uuid(data.employee_id, "employee_id")

        with overlap_guard():
            async with unit_of_work(db):
                if schedule_id is not None:
                    schedule: Schedule | None = await schedule_repository.get_by_id(db, schedule_id, organization_id)
                    if schedule is None:
                        raise NotFoundError("Schedule not found", entity="schedule")
                if template_id is not None and await template_service.get_by_id(db, template_id, organization_id) is None:
                    raise NotFoundError("Shift template not found", entity="shift_template")
                if employee_id is not None:
                    await self._get_worker(db, employee_id, organization_id)
                    await self._check_published_conflicts(
                        db, organization_id, employee_id, shift_date, start_time, end_time, schedule_id
                    )

                shift: Shift = await shift_repository.create(
                    db,
                    {
                        "organization_id": organization_id,
                        "schedule_id": schedule_id,
                        "template_id": template_id,
                        "station_id": parse_optional_uuid(data.station_id, "station_id"),
                        "role_id": parse_optional_uuid(data.role_id, "role_id"),
                        "employee_id": employee_id,
                        "shift_date": shift_date,
                        "start_time": start_time,
                        "end_time": end_time,
                        "break_minutes": data.break_minutes,
                        "status": ShiftStatus.SCHEDULED.value,
                        "shift_type": "regular",
                        "notes": data.notes,
                        "created_by": user_id,
                    },
                )

        logger.info("Shift %s created on %s by %s", shift.id, shift_date, user_id)
        return shift

    async def clock_in(
        self,
        db: AsyncSession,
        shift_id: UUID,
        organization_id: UUID,
        user_id: UUID,
        clock_in_time: datetime | None = None,
    ) -> Shift:
        """출근을 기록합니다 (scheduled → in_progress).

        Record clock-in. Defaults to the current UTC time.

        Raises:
            NotFoundError: 시프트가 없을 때 (Shift not found)
            ValidationError: 완료, 취소, 이미 출근한 시프트 (Completed, cancelled or already clocked in)
        """
        async with unit_of_work(db):
            shift: Shift = await self.get_shift(db, shift_id, organization_id, for_update=True)

            if shift.status == ShiftStatus.COMPLETED.value:
                raise ValidationError("Shift already completed", entity="shift", reason="already_completed")
            if shift.status == ShiftStatus.CANCELLED.value:
                raise ValidationError("Cannot clock in to cancelled shift", entity="shift", reason="cancelled")
            if shift.clock_in_time is not None or shift.status == ShiftStatus.IN_PROGRESS.value:
                raise ValidationError("Shift already clocked in", entity="shift", reason="already_clocked_in")

            new_status = transition_shift(shift.status, ShiftStatus.IN_PROGRESS)
            shift = await shift_repository.update(
                db,
                shift,
                {
                    "status": new_status.value,
                    "clock_in_time": as_utc(clock_in_time) or utc_now(),
                    "updated_by": user_id,
                },
            )

        logger.info("Shift %s clocked in by %s", shift.id, user_id)
        return shift

    async def clock_out(
        self,
        db: AsyncSession,
        shift_id: UUID,
        data: ClockOutRequest,
        organization_id: UUID,
        user_id: UUID,
    ) -> dict[str, Any]:
        """퇴근을 기록하고 근무 시간을 계산합니다 (in_progress → completed).

        Record clock-out, compute worked/regular/overtime hours, commit, then
        notify payroll. A payroll failure is logged and reported as
        ``payroll_integration = None``.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            shift_id: 시프트 UUID (Shift UUID)
            data: 퇴근 데이터 (Clock-out time and break taken)
            organization_id: 조직 UUID (Organization UUID)
            user_id: 요청 사용자 UUID (Acting user)

        Returns:
            dict[str, Any]: {shift, time_tracking, payroll_integration}

        Raises:
            NotFoundError: 시프트가 없을 때 (Shift not found)
            ValidationError: 상태 또는 시간 값이 유효하지 않을 때 (Invalid state or times)
        """
        async with unit_of_work(db):
            shift: Shift = await self.get_shift(db, shift_id, organization_id, for_update=True)

            if shift.status == ShiftStatus.COMPLETED.value:
                raise ValidationError("Shift already completed", entity="shift", reason="already_completed")
            if shift.status == ShiftStatus.CANCELLED.value:
                raise ValidationError("Cannot clock out cancelled shift", entity="shift", reason="cancelled")
            if shift.clock_in_time is None:
                raise ValidationError("Cannot clock out before clocking in", entity="shift", reason="not_clocked_in")
            if shift.clock_out_time is not None:
                raise ValidationError("Shift already clocked out", entity="shift", reason="already_clocked_out")

            break_minutes: int = (
                data.actual_break_minutes if data.actual_break_minutes is not None else (shift.break_minutes or 0)
            )
            if break_minutes < 0:
                raise ValidationError("Actual break minutes cannot be negative", entity="shift")

            clock_in: datetime = as_utc(shift.clock_in_time)
            clock_out: datetime = as_utc(data.clock_out_time) or utc_now()
            if clock_out < clock_in:
                raise ValidationError("Clock-out time cannot be before clock-in time", entity="shift")
            if (clock_out - clock_in).total_seconds() < break_minutes * 60:
                raise ValidationError("Break duration exceeds time worked", entity="shift")

            employment_type: str | None = None
            if shift.employee_id is not None:
                worker: Worker | None = await worker_repository.get_by_id(db, shift.employee_id, organization_id)
                employment_type = worker.employment_type if worker is not None else None

            tracking = compute_time_tracking(
                clock_in, clock_out, break_minutes, employment_type, shift.start_time, shift.end_time
            )

            new_status = transition_shift(shift.status, ShiftStatus.COMPLETED)
            shift = await shift_repository.update(
                db,
                shift,
                {
                    "status": new_status.value,
                    "clock_out_time": clock_out,
                    "actual_break_minutes": break_minutes,
                    "actual_hours": tracking["worked_hours"],
                    "updated_by": user_id,
                },
            )

        payroll_integration: dict[str, Any] | None = None
        if shift.employee_id is not None:
            entry: dict[str, Any] = {
                "employee_id": str(shift.employee_id),
                "shift_id": str(shift.id),
                "organization_id": str(organization_id),
                "work_date": shift.shift_date.isoformat(),
                "regular_hours": float(tracking["regular_hours"]),
                "overtime_hours": float(tracking["overtime_hours"]),
                "clock_in": clock_in.isoformat(),
                "clock_out": clock_out.isoformat(),
            }
            # 퇴근은 이미 커밋됨 (Clock-out is already committed; payroll failures are only logged)
            try:
                payroll_integration = await self.payroll.record_time_entry(entry, user_id)
            except PayrollIntegrationError as exc:
                logger.error("Payroll time entry failed for shift %s: %s", shift.id, exc)
            except Exception:
                logger.exception("Unexpected payroll error for shift %s", shift.id)

        logger.info("Shift %s clocked out by %s (%s h)", shift.id, user_id, tracking["worked_hours"])
        return {
            "shift": self.build_response(shift),
            "time_tracking": {
                "worked_hours": float(tracking["worked_hours"]),
                "regular_hours": float(tracking["regular_hours"]),
                "overtime_hours": float(tracking["overtime_hours"]),
                "baseline_hours": float(tracking["baseline_hours"]),
                "break_minutes": break_minutes,
            },
            "payroll_integration": payroll_integration,
        }

    async def cancel_shift(
        self,
        db: AsyncSession,
        shift_id: UUID,
        organization_id: UUID,
        user_id: UUID,
        reason: str | None = None,
    ) -> Shift:
        """시프트를 취소합니다 (scheduled | in_progress → cancelled).

        Cancel a shift.

        Raises:
            NotFoundError: 시프트가 없을 때 (Shift not found)
            ValidationError: 완료 또는 이미 취소된 시프트 (Completed or already cancelled)
        """
        async with unit_of_work(db):
            shift: Shift = await self.get_shift(db, shift_id, organization_id, for_update=True)
            new_status = transition_shift(shift.status, ShiftStatus.CANCELLED)
            shift = await shift_repository.update(
                db,
                shift,
                {"status": new_status.value, "cancellation_reason": reason, "updated_by": user_id},
            )

        logger.info("Shift %s cancelled by %s", shift.id, user_id)
        return shift

    async def assign_worker(
        self,
        db: AsyncSession,
        shift_id: UUID,
        worker_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> Shift:
        """시프트에 작업자를 배정합니다.

        Assign a worker to a scheduled shift.

        Raises:
            NotFoundError: 시프트 또는 작업자가 없을 때 (Shift or worker not found)
            ValidationError: scheduled 상태가 아닐 때 (Shift not scheduled)
            ConflictError: 중복 근무 또는 게시된 스케줄과 충돌 (Overlap or published conflict)
        """
        with overlap_guard():
            async with unit_of_work(db):
                shift: Shift = await self.get_shift(db, shift_id, organization_id, for_update=True)
                if shift.status != ShiftStatus.SCHEDULED.value:
                    raise ValidationError("Only scheduled shifts can be reassigned", entity="shift")
                await self._get_worker(db, worker_id, organization_id)
                await self._check_published_conflicts(
                    db, organization_id, worker_id, shift.shift_date, shift.start_time, shift.end_time,
                    shift.schedule_id, exclude_shift_id=shift.id,
                )
                shift = await shift_repository.update(db, shift, {"employee_id": worker_id, "updated_by": user_id})

        logger.info("Worker %s assigned to shift %s by %s", worker_id, shift.id, user_id)
        return shift

    async def unassign_worker(
        self,
        db: AsyncSession,
        shift_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> Shift:
        """시프트의 작업자 배정을 해제합니다 — Make a scheduled shift open again."""
        async with unit_of_work(db):
            shift: Shift = await self.get_shift(db, shift_id, organization_id, for_update=True)
            if shift.status != ShiftStatus.SCHEDULED.value:
                raise ValidationError("Only scheduled shifts can be reassigned", entity="shift")
            shift = await shift_repository.update(db, shift, {"employee_id": None, "updated_by": user_id})
        return shift

    async def swap_assignments(
        self,
        db: AsyncSession,
        from_shift: Shift,
        to_shift: Shift,
        user_id: UUID,
    ) -> tuple[Shift, Shift]:
        """두 시프트의 작업자를 교환합니다 (호출자 트랜잭션 내).

        Swap the workers of two shifts inside the caller's unit of work.
        The first shift is released before the second is reassigned so the
        overlap guard never sees a worker on both at once.

        Returns:
            tuple[Shift, Shift]: 교환된 (from_shift, to_shift)
        """
        for shift in (from_shift, to_shift):
            if shift.status != ShiftStatus.SCHEDULED.value:
                raise ValidationError("Only scheduled shifts can be swapped", entity="shift")

        from_worker, to_worker = from_shift.employee_id, to_shift.employee_id
        await shift_repository.update(db, from_shift, {"employee_id": None, "updated_by": user_id})
        await shift_repository.update(db, to_shift, {"employee_id": from_worker, "updated_by": user_id})
        await shift_repository.update(db, from_shift, {"employee_id": to_worker, "updated_by": user_id})
        return from_shift, to_shift


# 싱글턴 인스턴스 — Singleton instance
shift_service: ShiftService = ShiftService()
