"""교대 요청 관련 Pydantic 요청/응답 스키마 정의.

Shift trade Pydantic request/response schema definitions.
"""

from datetime import datetime

from pydantic import BaseModel


class TradeRequestCreate(BaseModel):
    """교대 요청 생성 스키마.

    Trade request creation schema. The responding worker is whoever is
    assigned to ``to_shift_id``.

    Attributes:
        from_shift_id: 요청자 본인의 시프트 UUID (Requester's own shift)
        to_shift_id: 교환 대상 시프트 UUID (Shift to swap into)
        expires_at: 만료 시각, 생략 시 기본 만료 (Expiry; defaults to the configured window)
    """

    from_shift_id: str
    to_shift_id: str
    notes: str | None = None
    expires_at: datetime | None = None


class TradeRespondRequest(BaseModel):
    """교대 요청 응답 스키마 — response는 "accept" 또는 "reject"."""

    response: str


class TradeDecisionRequest(BaseModel):
    """관리자 승인/반려 스키마 — decision은 "approve" 또는 "reject"."""

    decision: str
    manager_notes: str | None = None


class TradeResponse(BaseModel):
    """교대 요청 응답 스키마.

    Trade response schema. ``status`` is the effective status: a pending or
    accepted trade past ``expires_at`` is reported as ``expired``.
    """

    id: str
    from_shift_id: str
    to_shift_id: str
    requesting_worker_id: str
    responding_worker_id: str
    status: str
    requested_at: datetime | None = None
    responded_at: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    expires_at: datetime
    notes: str | None = None
    manager_notes: str | None = None
