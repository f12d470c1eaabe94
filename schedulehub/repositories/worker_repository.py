"""작업자 디렉터리 레포지토리 — 작업자, 역할 보유, 근무 가능 시간 조회.

Worker Directory Repository — Read-only queries over the HR-owned worker
directory: role holders eligible for scheduling and their availability.
"""

from collections import defaultdict
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.models.worker import Worker, WorkerAvailability, WorkerRole
from schedulehub.repositories.base import BaseRepository

# 스케줄 가능 재직 상태 — Employment status that may be scheduled
ACTIVE_EMPLOYMENT_STATUS: str = "active"


class WorkerRepository(BaseRepository[Worker]):
    """작업자 레포지토리.

    Extends:
        BaseRepository[Worker]
    """

    def __init__(self) -> None:
        super().__init__(Worker)

    async def get_role_candidates(
        self,
        db: AsyncSession,
        organization_id: UUID,
        role_id: UUID | None,
    ) -> Sequence[Worker]:
        """역할을 보유한 배정 가능 작업자 목록.

        Active, schedulable workers currently holding ``role_id`` (not removed),
        ordered by last name, first name, then id. With no role every active
        schedulable worker qualifies.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 UUID (Organization UUID)
            role_id: 필요 역할 UUID 또는 None (Required role, or None)

        Returns:
            Sequence[Worker]: 정렬된 후보 작업자 목록 (Ordered candidate workers)
        """
        query = select(Worker).where(
            Worker.organization_id == organization_id,
            Worker.employment_status == ACTIVE_EMPLOYMENT_STATUS,
            Worker.is_schedulable.is_(True),
        )
        if role_id is not None:
            query = query.join(WorkerRole, WorkerRole.worker_id == Worker.id).where(
                WorkerRole.role_id == role_id,
                WorkerRole.organization_id == organization_id,
                WorkerRole.removed_date.is_(None),
            )

        result = await db.execute(query.distinct().order_by(Worker.last_name, Worker.first_name, Worker.id))
        return result.scalars().all()

    async def get_availability_map(
        self,
        db: AsyncSession,
        organization_id: UUID,
        worker_ids: Sequence[UUID],
    ) -> dict[UUID, list[WorkerAvailability]]:
        """작업자별 근무 가능 시간 — Availability rows grouped by worker."""
        grouped: dict[UUID, list[WorkerAvailability]] = defaultdict(list)
        if not worker_ids:
            return grouped
        result = await db.execute(
            select(WorkerAvailability).where(
                WorkerAvailability.organization_id == organization_id,
                WorkerAvailability.worker_id.in_(list(worker_ids)),
            )
        )
        for availability in result.scalars().all():
            grouped[availability.worker_id].append(availability)
        return grouped


# 싱글턴 인스턴스 — Singleton instance
worker_repository: WorkerRepository = WorkerRepository()
