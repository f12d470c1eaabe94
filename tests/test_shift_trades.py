"""교대 요청 워크플로우 테스트 — 요청, 응답, 관리자 결정, 취소, 만료."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.config import settings
from schedulehub.schemas.shift import ShiftCreate
from schedulehub.schemas.trade import TradeRequestCreate
from schedulehub.services.shift_service import shift_service
from schedulehub.services.shift_trade_service import effective_status, shift_trade_service
from schedulehub.utils.exceptions import ForbiddenError, NotFoundError, ValidationError


async def shift_for(db: AsyncSession, org_id, manager_id, worker_id, shift_date: str, start="09:00", end="17:00"):
    shift = await shift_service.create_shift(
        db,
        ShiftCreate(employee_id=str(worker_id), shift_date=shift_date, start_time=start, end_time=end),
        org_id,
        manager_id,
    )
    return shift.id


@pytest_asyncio.fixture
async def pair(db: AsyncSession, org_id, manager_id, cooks):
    """Adams(월) / Brown(화) 시프트 한 쌍과 작업자 ID."""
    adams, brown, clark = (w.id for w in cooks)
    monday = await shift_for(db, org_id, manager_id, adams, "2025-01-20")
    tuesday = await shift_for(db, org_id, manager_id, brown, "2025-01-21")
    return {"adams": adams, "brown": brown, "clark": clark, "monday": monday, "tuesday": tuesday}


async def request(db: AsyncSession, org_id, pair, **extra):
    data = TradeRequestCreate(from_shift_id=str(pair["monday"]), to_shift_id=str(pair["tuesday"]), **extra)
    return await shift_trade_service.request_trade(db, data, org_id, pair["adams"])


class TestTradeRequest:
    """교대 요청 생성 테스트."""

    async def test_request_creates_pending_trade(self, db: AsyncSession, org_id, pair):
        trade = await request(db, org_id, pair, notes="Dentist")
        assert trade.status == "pending"
        assert trade.requesting_worker_id == pair["adams"]
        assert trade.responding_worker_id == pair["brown"]
        assert trade.notes == "Dentist"

        window = trade.expires_at.replace(tzinfo=timezone.utc) - trade.requested_at.replace(tzinfo=timezone.utc)
        assert window == timedelta(hours=settings.SHIFT_TRADE_DEFAULT_EXPIRY_HOURS)

    async def test_cannot_offer_someone_elses_shift(self, db: AsyncSession, org_id, pair):
        """본인 시프트가 아니면 ForbiddenError."""
        data = TradeRequestCreate(from_shift_id=str(pair["tuesday"]), to_shift_id=str(pair["monday"]))
        with pytest.raises(ForbiddenError, match="You can only trade your own shifts"):
            await shift_trade_service.request_trade(db, data, org_id, pair["adams"])

    async def test_cannot_trade_with_yourself(self, db: AsyncSession, org_id, manager_id, pair):
        other_monday = await shift_for(db, org_id, manager_id, pair["adams"], "2025-01-22")
        data = TradeRequestCreate(from_shift_id=str(pair["monday"]), to_shift_id=str(other_monday))
        with pytest.raises(ValidationError, match="Cannot trade shifts with yourself"):
            await shift_trade_service.request_trade(db, data, org_id, pair["adams"])

    async def test_target_must_be_assigned(self, db: AsyncSession, org_id, manager_id, pair):
        open_shift = await shift_service.create_shift(
            db, ShiftCreate(shift_date="2025-01-23", start_time="09:00", end_time="17:00"), org_id, manager_id
        )
        data = TradeRequestCreate(from_shift_id=str(pair["monday"]), to_shift_id=str(open_shift.id))
        with pytest.raises(ValidationError, match="Target shift has no assigned worker"):
            await shift_trade_service.request_trade(db, data, org_id, pair["adams"])

    async def test_past_expiry_rejected(self, db: AsyncSession, org_id, pair):
        with pytest.raises(ValidationError, match="Expiry must be in the future"):
            await request(db, org_id, pair, expires_at=datetime(2020, 1, 1, tzinfo=timezone.utc))

    async def test_active_trade_cap(self, db: AsyncSession, org_id, pair):
        """진행 중 요청은 작업자당 상한까지만."""
        for _ in range(settings.MAX_ACTIVE_TRADES_PER_WORKER):
            await request(db, org_id, pair)

        with pytest.raises(ValidationError, match=r"Maximum active trade requests \(5\) reached"):
            await request(db, org_id, pair)

    async def test_request_locks_requester_and_shifts(self, db: AsyncSession, org_id, pair, locked_tables):
        """요청자 행과 두 시프트 행을 잠근 뒤 상한을 검사."""
        locked_tables.clear()
        await request(db, org_id, pair)
        assert locked_tables == ["workers", "shifts", "shifts"]

    async def test_cancelled_trades_do_not_count_toward_cap(self, db: AsyncSession, org_id, pair):
        first = await request(db, org_id, pair)
        await shift_trade_service.cancel_trade(db, first.id, org_id, pair["adams"])
        for _ in range(settings.MAX_ACTIVE_TRADES_PER_WORKER):
            await request(db, org_id, pair)


class TestTradeWorkflow:
    """응답 및 관리자 결정 테스트."""

    async def test_accept_and_approve_swaps_workers(self, db: AsyncSession, org_id, manager_id, pair):
        """수락 → 승인 시 두 시프트의 작업자가 교환됨."""
        trade = await request(db, org_id, pair)
        trade_id = trade.id

        accepted = await shift_trade_service.respond_to_trade(db, trade_id, "accept", org_id, pair["brown"])
        assert accepted.status == "accepted"
        assert accepted.responded_at is not None

        approved = await shift_trade_service.approve_or_reject_trade(
            db, trade_id, "approve", "ok", org_id, manager_id
        )
        assert approved.status == "approved"
        assert approved.approved_by == manager_id
        assert approved.approved_at is not None
        assert approved.manager_notes == "ok"

        monday = await shift_service.get_shift(db, pair["monday"], org_id)
        tuesday = await shift_service.get_shift(db, pair["tuesday"], org_id)
        assert monday.employee_id == pair["brown"]
        assert tuesday.employee_id == pair["adams"]

    async def test_manager_rejection_keeps_assignments(self, db: AsyncSession, org_id, manager_id, pair):
        trade = await request(db, org_id, pair)
        await shift_trade_service.respond_to_trade(db, trade.id, "accept", org_id, pair["brown"])

        rejected = await shift_trade_service.approve_or_reject_trade(
            db, trade.id, "reject", "Short staffed", org_id, manager_id
        )
        assert rejected.status == "manager_rejected"
        assert rejected.approved_by is None

        monday = await shift_service.get_shift(db, pair["monday"], org_id)
        assert monday.employee_id == pair["adams"]

    async def test_worker_rejection_is_final(self, db: AsyncSession, org_id, manager_id, pair):
        trade = await request(db, org_id, pair)
        trade_id = trade.id
        rejected = await shift_trade_service.respond_to_trade(db, trade_id, "reject", org_id, pair["brown"])
        assert rejected.status == "rejected"

        with pytest.raises(ValidationError, match="Shift trade must be accepted before a manager decision"):
            await shift_trade_service.approve_or_reject_trade(db, trade_id, "approve", None, org_id, manager_id)

    async def test_pending_trade_cannot_skip_acceptance(self, db: AsyncSession, org_id, manager_id, pair):
        """수락 전 승인은 불가, 배정도 그대로."""
        trade = await request(db, org_id, pair)
        trade_id = trade.id

        with pytest.raises(ValidationError, match="Shift trade must be accepted before a manager decision"):
            await shift_trade_service.approve_or_reject_trade(db, trade_id, "approve", None, org_id, manager_id)

        stored = await shift_trade_service.get_trade(db, trade_id, org_id)
        assert stored.status == "pending"
        assert stored.approved_by is None
        monday = await shift_service.get_shift(db, pair["monday"], org_id)
        tuesday = await shift_service.get_shift(db, pair["tuesday"], org_id)
        assert monday.employee_id == pair["adams"]
        assert tuesday.employee_id == pair["brown"]

    async def test_only_responding_worker_may_respond(self, db: AsyncSession, org_id, pair):
        trade = await request(db, org_id, pair)
        with pytest.raises(ForbiddenError, match="Only the requested worker can respond to this trade"):
            await shift_trade_service.respond_to_trade(db, trade.id, "accept", org_id, pair["clark"])

    async def test_invalid_response_and_decision(self, db: AsyncSession, org_id, manager_id, pair):
        trade = await request(db, org_id, pair)
        with pytest.raises(ValidationError, match="Response must be 'accept' or 'reject'"):
            await shift_trade_service.respond_to_trade(db, trade.id, "maybe", org_id, pair["brown"])
        with pytest.raises(ValidationError, match="Decision must be 'approve' or 'reject'"):
            await shift_trade_service.approve_or_reject_trade(db, trade.id, "defer", None, org_id, manager_id)

    async def test_cannot_respond_twice(self, db: AsyncSession, org_id, pair):
        trade = await request(db, org_id, pair)
        trade_id = trade.id
        await shift_trade_service.respond_to_trade(db, trade_id, "accept", org_id, pair["brown"])
        with pytest.raises(ValidationError, match="Shift trade is not pending"):
            await shift_trade_service.respond_to_trade(db, trade_id, "reject", org_id, pair["brown"])

    async def test_reassigned_shift_blocks_approval(self, db: AsyncSession, org_id, manager_id, pair):
        """요청 후 배정이 바뀌면 승인 불가."""
        trade = await request(db, org_id, pair)
        trade_id = trade.id
        await shift_trade_service.respond_to_trade(db, trade_id, "accept", org_id, pair["brown"])
        await shift_service.assign_worker(db, pair["tuesday"], pair["clark"], org_id, manager_id)

        with pytest.raises(ValidationError, match="Shift assignments changed since the trade was requested"):
            await shift_trade_service.approve_or_reject_trade(db, trade_id, "approve", None, org_id, manager_id)

        stored = await shift_trade_service.get_trade(db, trade_id, org_id)
        assert stored.status == "accepted"


class TestTradeCancellationAndExpiry:
    """취소 및 만료 테스트."""

    async def test_requester_cancels_pending_trade(self, db: AsyncSession, org_id, pair):
        trade = await request(db, org_id, pair)
        cancelled = await shift_trade_service.cancel_trade(db, trade.id, org_id, pair["adams"])
        assert cancelled.status == "cancelled"

    async def test_only_requester_may_cancel(self, db: AsyncSession, org_id, pair):
        trade = await request(db, org_id, pair)
        with pytest.raises(ForbiddenError, match="Only the requesting worker can cancel this trade"):
            await shift_trade_service.cancel_trade(db, trade.id, org_id, pair["brown"])

    async def test_accepted_trade_cannot_be_cancelled(self, db: AsyncSession, org_id, pair):
        trade = await request(db, org_id, pair)
        trade_id = trade.id
        await shift_trade_service.respond_to_trade(db, trade_id, "accept", org_id, pair["brown"])
        with pytest.raises(ValidationError, match="Only pending trades can be cancelled"):
            await shift_trade_service.cancel_trade(db, trade_id, org_id, pair["adams"])

    async def test_expired_trade_cannot_be_answered(self, db: AsyncSession, org_id, pair):
        """만료 시각이 지난 요청은 expired로 보고되고 진행 불가."""
        trade = await request(db, org_id, pair)
        trade_id = trade.id
        trade.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        await db.commit()

        stored = await shift_trade_service.get_trade(db, trade_id, org_id)
        assert stored.status == "pending"
        assert effective_status(stored) == "expired"
        assert shift_trade_service.build_response(stored)["status"] == "expired"

        with pytest.raises(ValidationError, match="Shift trade has expired"):
            await shift_trade_service.respond_to_trade(db, trade_id, "accept", org_id, pair["brown"])

    async def test_expired_trade_cannot_be_cancelled(self, db: AsyncSession, org_id, pair):
        """만료된 요청은 취소로 상태가 바뀌지 않음."""
        trade = await request(db, org_id, pair)
        trade_id = trade.id
        trade.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        await db.commit()

        with pytest.raises(ValidationError, match="Shift trade has expired"):
            await shift_trade_service.cancel_trade(db, trade_id, org_id, pair["adams"])

        stored = await shift_trade_service.get_trade(db, trade_id, org_id)
        assert stored.status == "pending"
        assert effective_status(stored) == "expired"

    async def test_effective_status_at_given_time(self, db: AsyncSession, org_id, pair):
        trade = await request(db, org_id, pair)
        later = datetime.now(timezone.utc) + timedelta(hours=settings.SHIFT_TRADE_DEFAULT_EXPIRY_HOURS + 1)
        assert effective_status(trade) == "pending"
        assert effective_status(trade, later) == "expired"

    async def test_worker_listing_filters(self, db: AsyncSession, org_id, pair):
        """작업자 목록: 요청자·응답자 모두 조회, expired 필터는 유효 상태 기준."""
        live = await request(db, org_id, pair)
        stale = await request(db, org_id, pair)
        live_id, stale_id = live.id, stale.id
        stale.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        await db.commit()

        for worker in (pair["adams"], pair["brown"]):
            trades = await shift_trade_service.get_trades_for_worker(db, worker, org_id)
            assert {t.id for t in trades} == {live_id, stale_id}

        pending = await shift_trade_service.get_trades_for_worker(db, pair["adams"], org_id, "pending")
        assert [t.id for t in pending] == [live_id]
        expired = await shift_trade_service.get_trades_for_worker(db, pair["adams"], org_id, "expired")
        assert [t.id for t in expired] == [stale_id]
        assert await shift_trade_service.get_trades_for_worker(db, pair["clark"], org_id) == []

    async def test_unknown_trade(self, db: AsyncSession, org_id, pair):
        with pytest.raises(NotFoundError, match="Shift trade not found"):
            await shift_trade_service.get_trade(db, uuid.uuid4(), org_id)
