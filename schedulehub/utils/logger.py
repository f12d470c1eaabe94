"""애플리케이션 로깅 설정 모듈.

Application logging configuration module.
Modules obtain their logger with ``logging.getLogger(__name__)``; this module
configures the root handlers once at startup. When Axiom credentials are set,
log records are also shipped to the Axiom dataset used by the API middleware.
"""

import logging

from axiom_py import Client as AxiomClient
from axiom_py.logging import AxiomHandler

from schedulehub.config import settings

_LOG_FORMAT: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured: bool = False


def configure_logging() -> None:
    """루트 로거를 설정합니다 (중복 호출 시 무시).

    Configure the root logger: level from ``LOG_LEVEL``, a stream handler,
    and an Axiom handler when ``AXIOM_API_TOKEN`` and ``AXIOM_DATASET`` are set.
    Subsequent calls are no-ops.
    """
    global _configured
    if _configured:
        return

    root: logging.Logger = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL.upper())

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root.addHandler(stream_handler)

    # Axiom 로그 전송 — Ship application logs to Axiom
    if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
        client = AxiomClient(token=settings.AXIOM_API_TOKEN)
        root.addHandler(AxiomHandler(client, settings.AXIOM_DATASET))

    _configured = True
