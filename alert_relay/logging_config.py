"""
로깅 설정
"""
import logging
import sys


def setup_logging(level: int = logging.INFO):
    """
    애플리케이션 로깅 설정

    - Console handler 사용
    - stdout 출력
    - 포맷: '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # 기존 핸들러 제거 (uvicorn reload 시 중복 방지)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )

    root_logger.addHandler(console_handler)

    # httpx 요청 로그는 너무 많아서 WARNING 이상만
    logging.getLogger("httpx").setLevel(logging.WARNING)
