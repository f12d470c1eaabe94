"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어 및 라우터 등록.

FastAPI application entry point — Middleware and router registration.
Configures logging, Axiom request logging, CORS, the domain error handler,
health check, and the ScheduleHub routers.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from schedulehub.config import settings
from schedulehub.middleware.axiom_logging import AxiomLoggingMiddleware
from schedulehub.utils.exceptions import ConflictError, ScheduleHubError
from schedulehub.utils.logger import configure_logging

configure_logging()

app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Axiom API 로깅 미들웨어 — Axiom API request/response logging
# CORS보다 먼저 등록하여 모든 요청을 캡처 (Registered before CORS to capture all requests)
app.add_middleware(AxiomLoggingMiddleware)

# CORS 미들웨어 — Cross-Origin Resource Sharing middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ScheduleHubError)
async def schedulehub_error_handler(request: Request, exc: ScheduleHubError) -> JSONResponse:
    """도메인 예외 응답 — detail, kind, entity, reason (및 conflicts)."""
    content: dict = {
        "detail": exc.detail,
        "kind": exc.kind.value,
        "entity": exc.entity,
        "reason": exc.reason,
    }
    if isinstance(exc, ConflictError) and exc.conflicts:
        content["conflicts"] = jsonable_encoder(exc.conflicts)
    return JSONResponse(status_code=exc.status_code, content=content)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# 라우터 등록 — Router registration
# ---------------------------------------------------------------------------
from schedulehub.api.v1 import api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1/schedulehub")
