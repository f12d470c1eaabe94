"""생성 세션 충돌 추적기 모듈.

Generation-session conflict tracker module.
Remembers the shifts placed during one schedule generation call so that a
worker is not assigned two overlapping shifts on the same date before the
datastore ever sees them. A new tracker is created for every call and
discarded with it; the datastore overlap trigger remains the hard guarantee.
"""

from collections import defaultdict
from datetime import date, time
from uuid import UUID

from schedulehub.utils.date_utils import window_minutes, windows_overlap


class SessionConflictTracker:
    """작업자별 배치된 근무 구간 기록.

    Per-worker record of ``(date, start, end)`` windows placed in this session.
    """

    def __init__(self) -> None:
        self._windows: dict[UUID, list[tuple[date, tuple[int, int]]]] = defaultdict(list)

    def add(self, worker_id: UUID, shift_date: date, start_time: time, end_time: time) -> None:
        """배치된 근무를 기록합니다 — Record a placed shift."""
        self._windows[worker_id].append((shift_date, window_minutes(start_time, end_time)))

    def has_conflict(self, worker_id: UUID, shift_date: date, start_time: time, end_time: time) -> bool:
        """같은 날짜에 겹치는 근무가 이미 배치되었는지 확인합니다.

        Return True when ``worker_id`` already holds an overlapping window on
        ``shift_date`` within this session.
        """
        candidate = window_minutes(start_time, end_time)
        return any(
            placed_date == shift_date and windows_overlap(window, candidate)
            for placed_date, window in self._windows.get(worker_id, ())
        )

    def count(self, worker_id: UUID | None = None) -> int:
        if worker_id is not None:
            return len(self._windows.get(worker_id, ()))
        return sum(len(windows) for windows in self._windows.values())
