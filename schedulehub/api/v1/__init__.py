"""ScheduleHub API 라우터 패키지 — 모든 스케줄링 엔드포인트 통합.

ScheduleHub API Router package — Aggregates all scheduling endpoints into a
single router for inclusion in the FastAPI application.

Included routers:
    - schedules: 스케줄 생성/자동 생성/게시 (Schedules, generation, publication)
    - shifts: 시프트 배정/출퇴근 (Shift assignment and time tracking)
    - trades: 교대 요청 (Shift trades)
    - coverage: 스테이션 커버리지 (Station coverage)
"""

from fastapi import APIRouter

from schedulehub.api.v1.coverage import router as coverage_router
from schedulehub.api.v1.schedules import router as schedules_router
from schedulehub.api.v1.shifts import router as shifts_router
from schedulehub.api.v1.trades import router as trades_router

api_router: APIRouter = APIRouter()

api_router.include_router(schedules_router, prefix="/schedules", tags=["Schedules"])
api_router.include_router(shifts_router, prefix="/shifts", tags=["Shifts"])
api_router.include_router(trades_router, prefix="/shift-trades", tags=["Shift Trades"])
api_router.include_router(coverage_router, prefix="/coverage", tags=["Coverage"])
