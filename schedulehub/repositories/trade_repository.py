"""교대 요청 레포지토리 — 교대 요청 관련 DB 쿼리 담당.

Shift Trade Repository — Handles trade queries: active-trade counting for the
per-worker cap and per-worker listing.
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.models.schedule import ShiftTrade
from schedulehub.models.status import ACTIVE_TRADE_STATUSES
from schedulehub.repositories.base import BaseRepository


class TradeRepository(BaseRepository[ShiftTrade]):
    """교대 요청 레포지토리.

    Shift trade repository.

    Extends:
        BaseRepository[ShiftTrade]
    """

    def __init__(self) -> None:
        super().__init__(ShiftTrade)

    async def count_active_for_requester(
        self,
        db: AsyncSession,
        organization_id: UUID,
        worker_id: UUID,
        now: datetime,
    ) -> int:
        """만료되지 않은 진행 중 교대 요청 수.

        Count the worker's pending/accepted trades that have not yet expired.
        """
        result = await db.execute(
            select(func.count(ShiftTrade.id)).where(
                ShiftTrade.organization_id == organization_id,
                ShiftTrade.requesting_worker_id == worker_id,
                ShiftTrade.status.in_([status.value for status in ACTIVE_TRADE_STATUSES]),
                ShiftTrade.expires_at > now,
            )
        )
        return result.scalar() or 0

    async def get_for_worker(
        self,
        db: AsyncSession,
        organization_id: UUID,
        worker_id: UUID,
        status: str | None = None,
    ) -> Sequence[ShiftTrade]:
        """작업자가 요청했거나 응답해야 하는 교대 요청 목록.

        Trades the worker requested or is asked to respond to, newest first.
        ``status`` filters on the stored status.
        """
        query: Select = select(ShiftTrade).where(
            ShiftTrade.organization_id == organization_id,
            or_(
                ShiftTrade.requesting_worker_id == worker_id,
                ShiftTrade.responding_worker_id == worker_id,
            ),
        )
        if status is not None:
            query = query.where(ShiftTrade.status == status)

        result = await db.execute(query.order_by(ShiftTrade.requested_at.desc()))
        return result.scalars().all()


# 싱글턴 인스턴스 — Singleton instance
trade_repository: TradeRepository = TradeRepository()
