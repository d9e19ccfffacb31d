"""
logging.py

로깅 초기화 유틸리티.

- 서버 시작 시 한 번만 호출 (main.py)
- LOG_LEVEL 설정값으로 레벨 결정, 알 수 없는 값이면 INFO
- 각 모듈은 logging.getLogger(__name__) 으로 로거를 얻어 사용

"""

import logging
import sys

from building_ledger.core.config import settings


LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level(level_name: str | None = None) -> int:
    name = (level_name or settings.LOG_LEVEL or "INFO").upper()
    return LOG_LEVEL_MAP.get(name, logging.INFO)


def setup_logging() -> None:
    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    level = get_log_level()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # 재호출(reload) 시 핸들러 중복 방지
    root_logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)
