"""시프트 레포지토리 — 시프트 관련 DB 쿼리 담당.

Shift Repository — Handles shift queries: listing by schedule, date, station
and worker, committed-shift lookups used for eligibility, and the cross-schedule
lookups used by publication checks.
"""

from datetime import date, timedelta
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from schedulehub.models.schedule import Schedule, Shift
from schedulehub.models.status import ScheduleStatus, ShiftStatus
from schedulehub.models.worker import Worker
from schedulehub.repositories.base import BaseRepository


class ShiftRepository(BaseRepository[Shift]):
    """시프트 레포지토리.

    Shift repository.

    Extends:
        BaseRepository[Shift]
    """

    def __init__(self) -> None:
        super().__init__(Shift)

    async def get_by_schedule(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        organization_id: UUID,
    ) -> Sequence[Shift]:
        """스케줄의 시프트 목록 (날짜, 시작 시각 순) — Shifts of a schedule in date/time order."""
        result = await db.execute(
            select(Shift)
            .where(Shift.schedule_id == schedule_id, Shift.organization_id == organization_id)
            .order_by(Shift.shift_date, Shift.start_time, Shift.id)
        )
        return result.scalars().all()

    async def get_by_filters(
        self,
        db: AsyncSession,
        organization_id: UUID,
        shift_date: date | None = None,
        station_id: UUID | None = None,
        status: str | None = None,
        employee_id: UUID | None = None,
    ) -> Sequence[Shift]:
        """필터 조건에 맞는 시프트를 조회합니다.

        Retrieve shifts matching the given filters.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 UUID (Organization UUID)
            shift_date: 근무일 필터, 선택 (Optional date filter)
            station_id: 스테이션 필터, 선택 (Optional station filter)
            status: 상태 필터, 선택 (Optional status filter)
            employee_id: 작업자 필터, 선택 (Optional worker filter)

        Returns:
            Sequence[Shift]: 시프트 목록 (Matching shifts)
        """
        query: Select = select(Shift).where(Shift.organization_id == organization_id)
        if shift_date is not None:
            query = query.where(Shift.shift_date == shift_date)
        if station_id is not None:
            query = query.where(Shift.station_id == station_id)
        if status is not None:
            query = query.where(Shift.status == status)
        if employee_id is not None:
            query = query.where(Shift.employee_id == employee_id)

        result = await db.execute(query.order_by(Shift.shift_date, Shift.start_time, Shift.id))
        return result.scalars().all()

    async def get_worker_shifts(
        self,
        db: AsyncSession,
        organization_id: UUID,
        worker_id: UUID,
        start_date: date,
        end_date: date,
    ) -> Sequence[Shift]:
        """기간 내 작업자의 시프트 — A worker's shifts within an inclusive date range."""
        result = await db.execute(
            select(Shift)
            .where(
                Shift.organization_id == organization_id,
                Shift.employee_id == worker_id,
                Shift.shift_date >= start_date,
                Shift.shift_date <= end_date,
            )
            .order_by(Shift.shift_date, Shift.start_time)
        )
        return result.scalars().all()

    async def get_active_for_workers_on_date(
        self,
        db: AsyncSession,
        organization_id: UUID,
        worker_ids: Sequence[UUID],
        shift_date: date,
    ) -> Sequence[Shift]:
        """지정 작업자들의 해당 날짜 취소되지 않은 시프트.

        Non-cancelled shifts held by any of ``worker_ids`` on ``shift_date``.
        """
        if not worker_ids:
            return []
        result = await db.execute(
            select(Shift).where(
                Shift.organization_id == organization_id,
                Shift.employee_id.in_(list(worker_ids)),
                Shift.shift_date == shift_date,
                Shift.status != ShiftStatus.CANCELLED.value,
            )
        )
        return result.scalars().all()

    async def get_published_shifts_for_worker(
        self,
        db: AsyncSession,
        organization_id: UUID,
        worker_id: UUID,
        shift_date: date,
        exclude_schedule_id: UUID | None = None,
    ) -> Sequence[tuple[Shift, Schedule]]:
        """다른 게시된 스케줄에 속한 작업자의 해당 날짜 및 전후일 시프트.

        Non-cancelled shifts of ``worker_id`` from the day before to the day
        after ``shift_date`` that belong to a published schedule other than
        ``exclude_schedule_id``. Overnight shifts reach into neighbouring dates.
        """
        query: Select = (
            select(Shift, Schedule)
            .join(Schedule, Schedule.id == Shift.schedule_id)
            .where(
                Shift.organization_id == organization_id,
                Shift.employee_id == worker_id,
                Shift.shift_date.between(shift_date - timedelta(days=1), shift_date + timedelta(days=1)),
                Shift.status != ShiftStatus.CANCELLED.value,
                Schedule.status == ScheduleStatus.PUBLISHED.value,
            )
        )
        if exclude_schedule_id is not None:
            query = query.where(Shift.schedule_id != exclude_schedule_id)
        result = await db.execute(query)
        return [(row[0], row[1]) for row in result.all()]

    async def get_cross_schedule_pairs(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        organization_id: UUID,
        date_from: date,
        date_to: date,
    ) -> Sequence[tuple[Shift, Shift, Schedule]]:
        """같은 작업자의 다른 게시 스케줄 시프트 쌍.

        Pairs ``(shift, other_shift, other_schedule)`` where ``shift`` belongs to
        ``schedule_id`` and ``other_shift`` is a non-cancelled shift of the same
        worker dated within ``date_from``..``date_to`` in another published
        schedule. Date adjacency and time overlap are decided by the caller.
        """
        other = aliased(Shift)
        result = await db.execute(
            select(Shift, other, Schedule)
            .join(other, other.employee_id == Shift.employee_id)
            .join(Schedule, Schedule.id == other.schedule_id)
            .where(
                Shift.schedule_id == schedule_id,
                Shift.organization_id == organization_id,
                Shift.employee_id.is_not(None),
                Shift.status != ShiftStatus.CANCELLED.value,
                other.schedule_id != schedule_id,
                other.status != ShiftStatus.CANCELLED.value,
                other.shift_date.between(date_from, date_to),
                Schedule.status == ScheduleStatus.PUBLISHED.value,
                Schedule.organization_id == organization_id,
            )
            .order_by(Shift.shift_date, Shift.start_time, other.shift_date)
        )
        return [(row[0], row[1], row[2]) for row in result.all()]

    async def get_staffed_on_date(
        self,
        db: AsyncSession,
        organization_id: UUID,
        shift_date: date,
    ) -> Sequence[tuple[Shift, Worker | None]]:
        """해당 날짜의 취소되지 않은 스테이션 시프트와 작업자.

        Non-cancelled shifts with a station on ``shift_date``, each with its
        assigned worker (None when open).
        """
        result = await db.execute(
            select(Shift, Worker)
            .outerjoin(Worker, Worker.id == Shift.employee_id)
            .where(
                Shift.organization_id == organization_id,
                Shift.shift_date == shift_date,
                Shift.station_id.is_not(None),
                Shift.status != ShiftStatus.CANCELLED.value,
            )
            .order_by(Shift.start_time, Shift.id)
        )
        return [(row[0], row[1]) for row in result.all()]


# 싱글턴 인스턴스 — Singleton instance
shift_repository: ShiftRepository = ShiftRepository()
