"""교대 요청 라우터 — 작업자 간 시프트 교환 API.

Shift Trade Router — API endpoints for peer-to-peer shift trades.
Workers act as their ``worker`` identity claim; the manager decision requires
a manager (level <= 2).
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.api.deps import Identity, get_identity, require_manager
from schedulehub.database import get_db
from schedulehub.schemas.trade import TradeDecisionRequest, TradeRequestCreate, TradeRespondRequest, TradeResponse
from schedulehub.services.shift_trade_service import shift_trade_service

router: APIRouter = APIRouter()


@router.post("", response_model=TradeResponse, status_code=201)
async def request_trade(
    data: TradeRequestCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> dict:
    """교대 요청을 생성합니다.

    Offer one of the caller's shifts in exchange for another worker's shift.

    Args:
        data: 교대 요청 데이터 (from_shift_id, to_shift_id, notes, expires_at)
        db: 비동기 데이터베이스 세션 (Async database session)
        identity: 요청 작업자 (Requesting worker)

    Returns:
        dict: 생성된 교대 요청 (Created pending trade)
    """
    trade = await shift_trade_service.request_trade(db, data, identity.organization_id, identity.worker_id)
    return shift_trade_service.build_response(trade)


@router.get("", response_model=list[TradeResponse])
async def list_my_trades(
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_identity)],
    status: Annotated[str | None, Query()] = None,
) -> list[dict]:
    """내 교대 요청 목록 — Trades the caller requested or must answer."""
    trades = await shift_trade_service.get_trades_for_worker(
        db, identity.worker_id, identity.organization_id, status=status
    )
    return [shift_trade_service.build_response(trade) for trade in trades]


@router.get("/{trade_id}", response_model=TradeResponse)
async def get_trade(
    trade_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> dict:
    trade = await shift_trade_service.get_trade(db, trade_id, identity.organization_id)
    return shift_trade_service.build_response(trade)


@router.post("/{trade_id}/respond", response_model=TradeResponse)
async def respond_to_trade(
    trade_id: UUID,
    data: TradeRespondRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> dict:
    """교대 요청에 응답합니다 — Accept or reject a trade addressed to the caller."""
    trade = await shift_trade_service.respond_to_trade(
        db, trade_id, data.response, identity.organization_id, identity.worker_id
    )
    return shift_trade_service.build_response(trade)


@router.post("/{trade_id}/decision", response_model=TradeResponse)
async def decide_trade(
    trade_id: UUID,
    data: TradeDecisionRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(require_manager)],
) -> dict:
    """관리자가 교대 요청을 승인 또는 반려합니다.

    Approve (swapping the two shifts' workers) or reject an accepted trade.
    """
    trade = await shift_trade_service.approve_or_reject_trade(
        db, trade_id, data.decision, data.manager_notes, identity.organization_id, identity.user_id
    )
    return shift_trade_service.build_response(trade)


@router.post("/{trade_id}/cancel", response_model=TradeResponse)
async def cancel_trade(
    trade_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    identity: Annotated[Identity, Depends(get_identity)],
) -> dict:
    """교대 요청을 취소합니다 — Withdraw a pending trade."""
    trade = await shift_trade_service.cancel_trade(db, trade_id, identity.organization_id, identity.worker_id)
    return shift_trade_service.build_response(trade)
