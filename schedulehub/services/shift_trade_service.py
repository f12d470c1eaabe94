"""교대 요청 서비스 — 작업자 간 시프트 교환 워크플로우.

Shift Trade Service — Peer-to-peer shift trade workflow.
A worker offers their shift in exchange for another worker's shift; the other
worker accepts or rejects; a manager then approves (swapping the two shifts'
workers) or rejects. Pending or accepted trades past ``expires_at`` are
reported as expired and can no longer move forward.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.config import settings
from schedulehub.database import unit_of_work
from schedulehub.models.schedule import Shift, ShiftTrade
from schedulehub.models.status import ACTIVE_TRADE_STATUSES, ShiftStatus, TradeStatus, transition_trade
from schedulehub.repositories.shift_repository import shift_repository
from schedulehub.repositories.trade_repository import trade_repository
from schedulehub.repositories.worker_repository import worker_repository
from schedulehub.schemas.trade import TradeRequestCreate
from schedulehub.services.shift_service import shift_service
from schedulehub.utils.date_utils import as_utc, utc_now
from schedulehub.utils.exceptions import ForbiddenError, NotFoundError, ValidationError, overlap_guard
from schedulehub.utils.validators import parse_uuid

logger = logging.getLogger(__name__)


def effective_status(trade: ShiftTrade, now: datetime | None = None) -> str:
    """만료를 반영한 교대 요청 상태.

    The trade's status as seen at ``now``: an active trade past its expiry is
    ``expired`` even though the stored status is unchanged.
    """
    now = now or utc_now()
    if TradeStatus(trade.status) in ACTIVE_TRADE_STATUSES and as_utc(trade.expires_at) <= now:
        return TradeStatus.EXPIRED.value
    return trade.status


class ShiftTradeService:
    """교대 요청 서비스.

    Shift trade service covering request, response, manager decision and
    cancellation.
    """

    @staticmethod
    def build_response(trade: ShiftTrade) -> dict[str, Any]:
        """교대 요청 응답 딕셔너리를 생성합니다 — Build the trade response dict."""
        return {
            "id": str(trade.id),
            "from_shift_id": str(trade.from_shift_id),
            "to_shift_id": str(trade.to_shift_id),
            "requesting_worker_id": str(trade.requesting_worker_id),
            "responding_worker_id": str(trade.responding_worker_id),
            "status": effective_status(trade),
            "requested_at": as_utc(trade.requested_at),
            "responded_at": as_utc(trade.responded_at),
            "approved_by": str(trade.approved_by) if trade.approved_by else None,
            "approved_at": as_utc(trade.approved_at),
            "expires_at": as_utc(trade.expires_at),
            "notes": trade.notes,
            "manager_notes": trade.manager_notes,
        }

    async def get_trade(
        self,
        db: AsyncSession,
        trade_id: UUID,
        organization_id: UUID,
        for_update: bool = False,
    ) -> ShiftTrade:
        """교대 요청을 조회합니다.

        Raises:
            NotFoundError: 교대 요청이 없을 때 (Trade not found)
        """
        trade: ShiftTrade | None = await trade_repository.get_by_id(db, trade_id, organization_id, for_update=for_update)
        if trade is None:
            raise NotFoundError("Shift trade not found", entity="shift_trade")
        return trade

    async def get_trades_for_worker(
        self,
        db: AsyncSession,
        worker_id: UUID,
        organization_id: UUID,
        status: str | None = None,
    ) -> Sequence[ShiftTrade]:
        """작업자의 교대 요청 목록 — Trades the worker requested or must answer.

        ``expired`` filters on the effective status; other values filter on
        the stored status and leave out trades that have since expired.
        """
        if status is not None and status not in {s.value for s in TradeStatus}:
            raise ValidationError(f"Invalid trade status: {status}", entity="shift_trade")

        stored_filter: str | None = None if status == TradeStatus.EXPIRED.value else status
        trades = await trade_repository.get_for_worker(db, organization_id, worker_id, stored_filter)
        if status is None:
            return trades
        now: datetime = utc_now()
        return [trade for trade in trades if effective_status(trade, now) == status]

    @staticmethod
    def _ensure_not_expired(trade: ShiftTrade, now: datetime) -> None:
        if effective_status(trade, now) == TradeStatus.EXPIRED.value:
            raise ValidationError("Shift trade has expired", entity="shift_trade", reason="expired")

    async def request_trade(
        self,
        db: AsyncSession,
        data: TradeRequestCreate,
        organization_id: UUID,
        worker_id: UUID,
    ) -> ShiftTrade:
        """교대 요청을 생성합니다.

        Create a pending trade offering ``from_shift_id`` (which must be the
        requester's own shift) for ``to_shift_id``. The responding worker is
        whoever is assigned to ``to_shift_id``.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 교대 요청 데이터 (Trade request data)
            organization_id: 조직 UUID (Organization UUID)
            worker_id: 요청 작업자 UUID (Requesting worker)

        Returns:
            ShiftTrade: 생성된 교대 요청 (Created pending trade)

        Raises:
            NotFoundError: 시프트가 없을 때 (Shift not found)
            ForbiddenError: 본인 시프트가 아닐 때 (Requester not assigned to from_shift)
            ValidationError: 대상 미배정, 동일 작업자, 요청 상한 초과, 지난 만료 시각
                (Unassigned target, same worker, cap reached, or expiry in the past)
        """
        from_shift_id: UUID = parse_uuid(data.from_shift_id, "from_shift_id")
        to_shift_id: UUID = parse_uuid(data.to_shift_id, "to_shift_id")
        now: datetime = utc_now()

        async with unit_of_work(db):
            # 요청자 단위 직렬화 (Serializes requests of one worker for the active-trade cap)
            await worker_repository.get_by_id(db, worker_id, organization_id, for_update=True)
            from_shift: Shift = await shift_service.get_shift(db, from_shift_id, organization_id, for_update=True)
            to_shift: Shift = await shift_service.get_shift(db, to_shift_id, organization_id, for_update=True)

            if from_shift.employee_id != worker_id:
                raise ForbiddenError("You can only trade your own shifts", entity="shift_trade", reason="not_shift_owner")
            if to_shift.employee_id is None:
                raise ValidationError("Target shift has no assigned worker", entity="shift_trade", reason="unassigned_target")
            if to_shift.employee_id == worker_id:
                raise ValidationError("Cannot trade shifts with yourself", entity="shift_trade", reason="same_worker")
            for shift in (from_shift, to_shift):
                if shift.status != ShiftStatus.SCHEDULED.value:
                    raise ValidationError("Only scheduled shifts can be traded", entity="shift_trade")

            active: int = await trade_repository.count_active_for_requester(db, organization_id, worker_id, now)
            if active >= settings.MAX_ACTIVE_TRADES_PER_WORKER:
                raise ValidationError(
                    f"Maximum active trade requests ({settings.MAX_ACTIVE_TRADES_PER_WORKER}) reached",
                    entity="shift_trade",
                    reason="trade_limit",
                )

            if data.expires_at is not None:
                expires_at: datetime = as_utc(data.expires_at)
                if expires_at <= now:
                    raise ValidationError("Expiry must be in the future", entity="shift_trade")
            else:
                expires_at = now + timedelta(hours=settings.SHIFT_TRADE_DEFAULT_EXPIRY_HOURS)

            trade: ShiftTrade = await trade_repository.create(
                db,
                {
                    "organization_id": organization_id,
                    "from_shift_id": from_shift.id,
                    "to_shift_id": to_shift.id,
                    "requesting_worker_id": worker_id,
                    "responding_worker_id": to_shift.employee_id,
                    "status": TradeStatus.PENDING.value,
                    "requested_at": now,
                    "expires_at": expires_at,
                    "notes": data.notes,
                },
            )

        logger.info("Trade %s requested by worker %s", trade.id, worker_id)
        return trade

    async def respond_to_trade(
        self,
        db: AsyncSession,
        trade_id: UUID,
        response: str,
        organization_id: UUID,
        worker_id: UUID,
    ) -> ShiftTrade:
        """교대 요청에 응답합니다 (pending → accepted | rejected).

        Raises:
            ForbiddenError: 응답 대상 작업자가 아닐 때 (Not the responding worker)
            ValidationError: 잘못된 응답, 만료, pending 아님 (Bad response, expired, or not pending)
        """
        targets: dict[str, TradeStatus] = {"accept": TradeStatus.ACCEPTED, "reject": TradeStatus.REJECTED}
        if response not in targets:
            raise ValidationError("Response must be 'accept' or 'reject'", entity="shift_trade")
        now: datetime = utc_now()

        async with unit_of_work(db):
            trade: ShiftTrade = await self.get_trade(db, trade_id, organization_id, for_update=True)
            if trade.responding_worker_id != worker_id:
                raise ForbiddenError("Only the requested worker can respond to this trade", entity="shift_trade")
            self._ensure_not_expired(trade, now)
            if trade.status != TradeStatus.PENDING.value:
                raise ValidationError("Shift trade is not pending", entity="shift_trade", reason="not_pending")
            new_status = transition_trade(trade.status, targets[response])
            trade = await trade_repository.update(db, trade, {"status": new_status.value, "responded_at": now})

        logger.info("Trade %s %s by worker %s", trade.id, new_status.value, worker_id)
        return trade

    async def approve_or_reject_trade(
        self,
        db: AsyncSession,
        trade_id: UUID,
        decision: str,
        manager_notes: str | None,
        organization_id: UUID,
        manager_id: UUID,
    ) -> ShiftTrade:
        """관리자가 교대 요청을 승인 또는 반려합니다.

        Manager decision on an accepted trade. Approval swaps the workers of
        the two shifts in the same transaction; if the swap fails nothing is
        changed.

        Raises:
            ValidationError: 잘못된 결정, 만료, accepted 아님 (Bad decision, expired, or not accepted)
            ConflictError: 교환 시 중복 근무 발생 (Swap would double-book a worker)
        """
        targets: dict[str, TradeStatus] = {"approve": TradeStatus.APPROVED, "reject": TradeStatus.MANAGER_REJECTED}
        if decision not in targets:
            raise ValidationError("Decision must be 'approve' or 'reject'", entity="shift_trade")
        now: datetime = utc_now()

        with overlap_guard():
            async with unit_of_work(db):
                trade: ShiftTrade = await self.get_trade(db, trade_id, organization_id, for_update=True)
                self._ensure_not_expired(trade, now)
                if trade.status != TradeStatus.ACCEPTED.value:
                    raise ValidationError(
                        "Shift trade must be accepted before a manager decision",
                        entity="shift_trade",
                        reason="not_accepted",
                    )
                new_status = transition_trade(trade.status, targets[decision])
                update_data: dict[str, Any] = {"status": new_status.value, "manager_notes": manager_notes}

                if new_status == TradeStatus.APPROVED:
                    from_shift: Shift = await shift_service.get_shift(
                        db, trade.from_shift_id, organization_id, for_update=True
                    )
                    to_shift: Shift = await shift_service.get_shift(
                        db, trade.to_shift_id, organization_id, for_update=True
                    )
                    if (
                        from_shift.employee_id != trade.requesting_worker_id
                        or to_shift.employee_id != trade.responding_worker_id
                    ):
                        raise ValidationError(
                            "Shift assignments changed since the trade was requested",
                            entity="shift_trade",
                            reason="assignment_changed",
                        )
                    await shift_service.swap_assignments(db, from_shift, to_shift, manager_id)
                    update_data.update({"approved_by": manager_id, "approved_at": now})

                trade = await trade_repository.update(db, trade, update_data)

        logger.info("Trade %s %s by manager %s", trade.id, new_status.value, manager_id)
        return trade

    async def cancel_trade(
        self,
        db: AsyncSession,
        trade_id: UUID,
        organization_id: UUID,
        worker_id: UUID,
    ) -> ShiftTrade:
        """요청자가 교대 요청을 취소합니다 (pending → cancelled)."""
        async with unit_of_work(db):
            trade: ShiftTrade = await self.get_trade(db, trade_id, organization_id, for_update=True)
            if trade.requesting_worker_id != worker_id:
                raise ForbiddenError("Only the requesting worker can cancel this trade", entity="shift_trade")
            self._ensure_not_expired(trade, utc_now())
            if trade.status != TradeStatus.PENDING.value:
                raise ValidationError("Only pending trades can be cancelled", entity="shift_trade", reason="not_pending")
            new_status = transition_trade(trade.status, TradeStatus.CANCELLED)
            trade = await trade_repository.update(db, trade, {"status": new_status.value})

        logger.info("Trade %s cancelled by worker %s", trade.id, worker_id)
        return trade


# 싱글턴 인스턴스 — Singleton instance
shift_trade_service: ShiftTradeService = ShiftTradeService()
