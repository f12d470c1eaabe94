"""급여 연동 클라이언트 — 근무 시간 기록을 급여 시스템에 전송.

Payroll collaborator client — Sends completed-shift time entries to the
payroll system over HTTP. The clock-out flow treats any failure here as
non-fatal; this module just reports it as ``PayrollIntegrationError``.
"""

import logging
from typing import Any, Protocol
from uuid import UUID

import httpx

from schedulehub.config import settings

logger = logging.getLogger(__name__)


class PayrollIntegrationError(Exception):
    """급여 시스템 연동 실패 — Payroll collaborator call failed."""


class PayrollClient(Protocol):
    """급여 연동 인터페이스 — Payroll collaborator contract."""

    async def record_time_entry(self, entry: dict[str, Any], user_id: UUID) -> dict[str, Any]:
        ...


class HttpPayrollClient:
    """HTTP 급여 연동 클라이언트.

    Posts time entries as JSON to ``PAYROLL_API_URL``.

    Args:
        base_url: 급여 API 주소, 비어 있으면 미설정 (Payroll endpoint; empty means not configured)
        token: Bearer 토큰 (Bearer token, optional)
        timeout: 요청 제한 시간(초) (Request timeout in seconds)
        transport: 테스트용 httpx 전송 계층 (Optional httpx transport, for tests)
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url: str = settings.PAYROLL_API_URL if base_url is None else base_url
        self.token: str = settings.PAYROLL_API_TOKEN if token is None else token
        self.timeout: float = settings.PAYROLL_TIMEOUT_SECONDS if timeout is None else timeout
        self._transport = transport

    async def record_time_entry(self, entry: dict[str, Any], user_id: UUID) -> dict[str, Any]:
        """근무 시간 기록을 전송합니다.

        Send one time entry and return ``{"time_entry_id", "success"}``.

        Args:
            entry: 근무 시간 기록 (Time entry payload, JSON-serializable)
            user_id: 요청 사용자 UUID (Acting user, forwarded for auditing)

        Returns:
            dict[str, Any]: 급여 시스템 응답 (Payroll acknowledgement)

        Raises:
            PayrollIntegrationError: 미설정, 전송 실패, 오류 응답, 잘못된 본문
                (Not configured, transport failure, error response, or malformed body)
        """
        if not self.base_url:
            raise PayrollIntegrationError("Payroll integration is not configured")

        headers: dict[str, str] = {"X-User-Id": str(user_id)}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(f"{self.base_url.rstrip('/')}/time-entries", json=entry, headers=headers)
                response.raise_for_status()
                body: Any = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise PayrollIntegrationError(f"Payroll time entry failed: {exc}") from exc

        if not isinstance(body, dict):
            raise PayrollIntegrationError(f"Unexpected payroll response: {type(body).__name__}")

        logger.info("Payroll time entry recorded for shift %s", entry.get("shift_id"))
        return {
            "time_entry_id": str(body.get("time_entry_id") or body.get("id") or "") or None,
            "success": bool(body.get("success", True)),
        }


# 싱글턴 인스턴스 — Singleton instance
payroll_client: HttpPayrollClient = HttpPayrollClient()
