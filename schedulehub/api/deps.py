"""FastAPI 의존성 주입 모듈 — 신원 확인 및 권한 검사.

FastAPI dependency injection module — Identity and authorization.
The bearer token is issued by the tenant identity service and trusted as
already authenticated; its claims carry everything the scheduling engine
needs, so no user lookup is made.

Identity Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies the JWT and returns its payload)
    3. sub/org/worker/level 클레임으로 Identity 구성
       (Identity is built from the sub/org/worker/level claims)

Authorization Flow (require_manager):
    역할 레벨이 MANAGER_MAX_LEVEL 이하가 아니면 403 Forbidden
    (403 unless the role level is at most MANAGER_MAX_LEVEL)
"""

from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from schedulehub.utils.jwt import decode_token

# HTTP Bearer 토큰 추출기 — Extracts the JWT from the Authorization header
security: HTTPBearer = HTTPBearer()

# 관리자 최대 레벨 — owner(1), general_manager(2)
MANAGER_MAX_LEVEL: int = 2


@dataclass(frozen=True)
class Identity:
    """요청 행위자 신원.

    Acting user resolved from the token.

    Attributes:
        user_id: 사용자 UUID (``sub`` claim)
        organization_id: 조직 UUID (``org`` claim, tenant scope)
        worker_id: 작업자 UUID (``worker`` claim, defaults to ``sub``)
        level: 역할 레벨, 낮을수록 높은 권한 (Role level, lower is more authority)
    """

    user_id: UUID
    organization_id: UUID
    worker_id: UUID
    level: int

    @property
    def is_manager(self) -> bool:
        return self.level <= MANAGER_MAX_LEVEL


async def get_identity(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> Identity:
    """JWT 토큰에서 요청 행위자 신원을 추출합니다.

    Decode the bearer token and return the acting identity.

    Raises:
        HTTPException(401): 토큰이 유효하지 않거나 만료됨, 필수 클레임 누락
            (Invalid or expired token, or a required claim missing)
    """
    try:
        payload: dict = decode_token(credentials.credentials)
        # 토큰 타입 검증 — Only access tokens identify a caller
        if payload.get("type") != "access":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
        user_id = UUID(str(payload["sub"]))
        organization_id = UUID(str(payload["org"]))
        worker_id = UUID(str(payload["worker"])) if payload.get("worker") else user_id
        level = int(payload.get("level", 4))
    except HTTPException:
        raise
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    return Identity(user_id=user_id, organization_id=organization_id, worker_id=worker_id, level=level)


async def require_manager(
    identity: Annotated[Identity, Depends(get_identity)],
) -> Identity:
    """관리자 권한 검사 — 403 unless the caller is a manager."""
    if not identity.is_manager:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return identity
