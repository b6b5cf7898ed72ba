from __future__ import annotations
import logging
import sys
from typing import Optional
from loguru import logger

# ---- stdlib logging → loguru 인터셉트 ----
class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())

def _hook_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # aiohttp/aiosqlite 내부 로그도 같은 싱크로
    for noisy in ("aiohttp", "aiosqlite", "asyncio"):
        l = logging.getLogger(noisy)
        l.handlers = [InterceptHandler()]
        l.propagate = False

# ---- 개발 콘솔 포맷(사람 친화, 요청 ID만 노출) ----
DEV_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level:<7}</level> | "
    "<cyan>{extra[name]}</cyan> | "
    "<magenta>{extra[request_id]}</magenta> | "
    "<level>{message}</level>"
)

def setup_logging(log_level: str = "INFO",
                  json_logs: bool = False,
                  service_name: str = "seawater-risk-engine",
                  build_version: Optional[str] = None) -> None:
    """
    loguru 초기화.
    - 개발: 콘솔 컬러 출력
    - 운영: JSON 한 줄 출력 (service/version/request_id 등 extra 포함)
    - stdlib logging 흡수
    """
    logger.remove()  # 기본 sink 제거
    logger.configure(extra={
        "name": "seawater",
        "service": service_name,
        "version": build_version,
        "request_id": "-",
    })
    if json_logs:
        logger.add(sys.stderr, serialize=True, backtrace=False, diagnose=False,
                   level=log_level.upper())
    else:
        logger.add(sys.stderr, format=DEV_FORMAT, colorize=True, backtrace=True,
                   diagnose=False, level=log_level.upper())
    _hook_stdlib_logging()

def get_logger(name: str = "seawater", **ctx):
    """선택적으로 컨텍스트를 바인딩한 logger 반환."""
    return logger.bind(name=name, **ctx)

def request_scope(request_id: Optional[str] = None, **ctx):
    """요청 단위 컨텍스트 (request_id, user_id 등)를 그 안의 모든 로그에 부여."""
    return logger.contextualize(request_id=request_id or "-", **ctx)
