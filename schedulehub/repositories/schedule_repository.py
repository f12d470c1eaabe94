"""스케줄 레포지토리 — 스케줄 관련 DB 쿼리 담당.

Schedule Repository — Handles schedule queries: filtered listing and
per-schedule shift counts.
"""

from datetime import date
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.models.schedule import Schedule, Shift
from schedulehub.repositories.base import BaseRepository


class ScheduleRepository(BaseRepository[Schedule]):
    """스케줄 레포지토리.

    Schedule repository with filtered listing.

    Extends:
        BaseRepository[Schedule]
    """

    def __init__(self) -> None:
        super().__init__(Schedule)

    async def get_by_filters(
        self,
        db: AsyncSession,
        organization_id: UUID,
        status: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[Schedule], int]:
        """필터 조건에 맞는 스케줄을 페이지네이션하여 조회합니다.

        Retrieve paginated schedules matching the given filters.
        date_from/date_to select schedules whose period intersects the range.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 UUID (Organization UUID)
            status: 상태 필터, 선택 (Optional status filter)
            date_from: 범위 시작일, 선택 (Optional range start date)
            date_to: 범위 종료일, 선택 (Optional range end date)
            page: 페이지 번호, 1부터 시작 (Page number, 1-based)
            per_page: 페이지당 항목 수 (Items per page)

        Returns:
            tuple[Sequence[Schedule], int]: (스케줄 목록, 전체 개수)
                                             (List of schedules, total count)
        """
        query: Select = select(Schedule).where(Schedule.organization_id == organization_id)

        if status is not None:
            query = query.where(Schedule.status == status)
        if date_from is not None:
            query = query.where(Schedule.end_date >= date_from)
        if date_to is not None:
            query = query.where(Schedule.start_date <= date_to)

        query = query.order_by(Schedule.start_date.desc(), Schedule.created_at.desc())
        return await self.get_paginated(db, query, page, per_page)

    async def count_shifts(self, db: AsyncSession, schedule_ids: list[UUID]) -> dict[UUID, int]:
        """스케줄별 시프트 수 — Shift count per schedule id."""
        if not schedule_ids:
            return {}
        result = await db.execute(
            select(Shift.schedule_id, func.count(Shift.id))
            .where(Shift.schedule_id.in_(schedule_ids))
            .group_by(Shift.schedule_id)
        )
        return {row[0]: row[1] for row in result.all()}


# 싱글턴 인스턴스 — Singleton instance
schedule_repository: ScheduleRepository = ScheduleRepository()
