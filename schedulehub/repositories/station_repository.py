"""스테이션 레포지토리 — 스테이션 및 역할 요구사항 조회 담당.

Station Repository — Reads stations with their role requirements.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.models.station import Station
from schedulehub.repositories.base import BaseRepository


class StationRepository(BaseRepository[Station]):
    """스테이션 레포지토리.

    Extends:
        BaseRepository[Station]
    """

    def __init__(self) -> None:
        super().__init__(Station)

    async def get_active(self, db: AsyncSession, organization_id: UUID) -> Sequence[Station]:
        """조직의 활성 스테이션 (요구사항 포함, 이름순).

        Active stations of the organization with requirements loaded, by name.
        """
        result = await db.execute(
            select(Station)
            .where(Station.organization_id == organization_id, Station.is_active.is_(True))
            .order_by(Station.station_name)
        )
        return result.scalars().all()


# 싱글턴 인스턴스 — Singleton instance
station_repository: StationRepository = StationRepository()
