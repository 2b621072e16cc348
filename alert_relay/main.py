# alert_relay/main.py
from fastapi import FastAPI, HTTPException
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo
import asyncio
import logging

from pydantic import BaseModel

from alert_relay.config import RELAY_CONFIG_PATH
from alert_relay.logging_config import setup_logging
from alert_relay.relay_config import load_relay_config
from alert_relay.container import ServiceContainer, init_container, get_container

logger = logging.getLogger(__name__)


class CommandRequest(BaseModel):
    """운영자 명령 수신 payload"""

    text: str
    reply_to: Optional[str] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 시작/종료 시 실행"""
    # 0. 로깅 설정
    setup_logging()

    logger.info("=" * 80)
    logger.info("🚀 Starting Zabbix Alert Relay")
    logger.info("=" * 80)

    # 1. 설정 로드 (실패 시 시작 중단)
    config = load_relay_config(RELAY_CONFIG_PATH)
    now = datetime.now(ZoneInfo(config.timezone))
    logger.info(f"🕒 Timezone {config.timezone}, local time {now.isoformat()}")

    # 2. 의존성 컨테이너 초기화
    container = init_container(config)

    # 3. 목적지 검증 (하나라도 유효하지 않으면 시작 중단)
    await container.validate_destinations()

    # 4. Orchestrator 시작
    task = asyncio.create_task(container.orchestrator.start())

    yield

    # Shutdown
    container.orchestrator.stop()
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass

    logger.info("=" * 80)
    logger.info("👋 Shutting down Zabbix Alert Relay")
    logger.info("=" * 80)


app = FastAPI(
    title="Zabbix Alert Relay",
    lifespan=lifespan
)


def _require_container() -> ServiceContainer:
    container = get_container()
    if container is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return container


@app.get("/health")
async def health():
    """헬스체크 엔드포인트"""
    container = get_container()

    return {
        "status": "ok",
        "orchestrator_running": container.orchestrator.running if container else False,
        "container_initialized": container is not None
    }


@app.get("/status")
async def status():
    """Pending/Notified 건수 (읽기 전용)"""
    container = _require_container()
    snapshot = container.store.snapshot()

    return {
        "pending_events": snapshot.pending_count,
        "notified_events": snapshot.notified_count,
        "min_severity": container.policy.min_severity,
        "uptime_seconds": int(container.orchestrator.uptime()),
    }


@app.post("/commands")
async def commands(request: CommandRequest):
    """운영자 명령 (!zabbix, !zabbix all, !status)"""
    container = _require_container()
    reply = await container.command_handler.handle(request.text, reply_to=request.reply_to)
    return {"reply": reply}
