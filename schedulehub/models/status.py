"""시프트 및 교대 요청 상태 정의.

Shift and shift-trade status definitions.
Each status set is closed, and every allowed move is listed in an explicit
transition table. Services change a status only through ``transition``,
which raises ``ValidationError`` for any move the table does not list.
"""

import enum

from schedulehub.utils.exceptions import ValidationError


class ShiftStatus(str, enum.Enum):
    """시프트 상태 — Shift lifecycle status.

    Status Flow:
        scheduled → in_progress → completed
        scheduled | in_progress → cancelled
    """

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TradeStatus(str, enum.Enum):
    """교대 요청 상태 — Shift trade status.

    Status Flow:
        pending → accepted → approved | manager_rejected
        pending → rejected | cancelled
        pending | accepted → expired (past expires_at)
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    APPROVED = "approved"
    MANAGER_REJECTED = "manager_rejected"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class ScheduleStatus(str, enum.Enum):
    """스케줄 상태 — Schedule publication status."""

    DRAFT = "draft"
    PUBLISHED = "published"


SHIFT_TRANSITIONS: dict[ShiftStatus, frozenset[ShiftStatus]] = {
    ShiftStatus.SCHEDULED: frozenset({ShiftStatus.IN_PROGRESS, ShiftStatus.CANCELLED}),
    ShiftStatus.IN_PROGRESS: frozenset({ShiftStatus.COMPLETED, ShiftStatus.CANCELLED}),
    ShiftStatus.COMPLETED: frozenset(),
    ShiftStatus.CANCELLED: frozenset(),
}

TRADE_TRANSITIONS: dict[TradeStatus, frozenset[TradeStatus]] = {
    TradeStatus.PENDING: frozenset({
        TradeStatus.ACCEPTED, TradeStatus.REJECTED, TradeStatus.CANCELLED, TradeStatus.EXPIRED,
    }),
    TradeStatus.ACCEPTED: frozenset({TradeStatus.APPROVED, TradeStatus.MANAGER_REJECTED, TradeStatus.EXPIRED}),
    TradeStatus.REJECTED: frozenset(),
    TradeStatus.APPROVED: frozenset(),
    TradeStatus.MANAGER_REJECTED: frozenset(),
    TradeStatus.CANCELLED: frozenset(),
    TradeStatus.EXPIRED: frozenset(),
}

# 활성 교대 요청 상태 — Trades counted against the per-worker cap
ACTIVE_TRADE_STATUSES: frozenset[TradeStatus] = frozenset({TradeStatus.PENDING, TradeStatus.ACCEPTED})
TERMINAL_TRADE_STATUSES: frozenset[TradeStatus] = frozenset(
    status for status, targets in TRADE_TRANSITIONS.items() if not targets
)


def transition_shift(current: str, target: ShiftStatus) -> ShiftStatus:
    """시프트 상태 전이를 검증합니다.

    Validate moving a shift from ``current`` to ``target``.

    Raises:
        ValidationError: 허용되지 않는 전이 (Transition not in the table)
    """
    source = ShiftStatus(current)
    if target not in SHIFT_TRANSITIONS[source]:
        raise ValidationError(
            f"Cannot change shift status from {source.value} to {target.value}",
            entity="shift",
            reason="invalid_transition",
        )
    return target


def transition_trade(current: str, target: TradeStatus) -> TradeStatus:
    """교대 요청 상태 전이를 검증합니다.

    Validate moving a trade from ``current`` to ``target``.

    Raises:
        ValidationError: 허용되지 않는 전이 (Transition not in the table)
    """
    source = TradeStatus(current)
    if target not in TRADE_TRANSITIONS[source]:
        raise ValidationError(
            f"Cannot change trade status from {source.value} to {target.value}",
            entity="shift_trade",
            reason="invalid_transition",
        )
    return target
