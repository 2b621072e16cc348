# alert_relay/application/services/orchestrator.py
"""
주기 작업 스케줄러
"""
import asyncio
from typing import Any, Awaitable, Callable, List, Optional
import logging
import time

from alert_relay.application.services.notify_check import NotifyCheckService
from alert_relay.application.services.resolved_check import ResolvedCheckService
from alert_relay.domain.lifecycle import LifecycleStore
from alert_relay.domain.policy import ScheduleSettings

logger = logging.getLogger(__name__)


class RecurringTask:
    """
    고정 주기로 실행되는 작업 하나

    같은 작업의 이전 실행이 아직 끝나지 않았으면 이번 tick 은 건너뛴다.
    실행 중 예외는 여기서 로깅하고 끝낸다 (다른 작업에 영향 없음).
    """

    def __init__(
        self,
        name: str,
        interval: float,
        action: Callable[[], Awaitable[Any]],
        initial_delay: Optional[float] = None,
    ):
        self.name = name
        self.interval = interval
        self.action = action
        self.initial_delay = interval if initial_delay is None else initial_delay

        self.runs = 0
        self.skipped = 0
        self._inflight: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def tick(self) -> bool:
        """
        새 실행 시작 (이미 실행 중이면 스킵)

        Returns:
            실행을 시작했는지 여부
        """
        if self.in_flight:
            self.skipped += 1
            logger.warning(f"⏭️ {self.name} is still running, skipping this tick")
            return False

        self._inflight = asyncio.create_task(self._run_once())
        return True

    async def _run_once(self):
        self.runs += 1
        try:
            await self.action()
        except Exception as e:
            logger.error(f"{self.name} run failed: {e}", exc_info=True)

    async def wait(self):
        """진행 중인 실행이 끝날 때까지 대기"""
        if self._inflight is not None:
            await self._inflight

    def cancel(self):
        if self.in_flight:
            self._inflight.cancel()

    async def run_forever(self, is_running: Callable[[], bool]):
        await asyncio.sleep(self.initial_delay)
        while is_running():
            self.tick()
            await asyncio.sleep(self.interval)


class PollingOrchestrator:
    """
    notify-check / resolved-check / cache-eviction 주기 실행

    책임:
    - 세 작업을 각자의 주기로 실행
    - LifecycleStore 소유 (상태 조회는 snapshot 으로만)
    - Polling 생명주기 관리
    """

    def __init__(
        self,
        notify_service: NotifyCheckService,
        resolved_service: ResolvedCheckService,
        store: LifecycleStore,
        schedule: ScheduleSettings,
        clock: Callable[[], float] = time.time,
    ):
        self.notify_service = notify_service
        self.resolved_service = resolved_service
        self.store = store
        self.schedule = schedule
        self.clock = clock

        self.tasks: List[RecurringTask] = [
            RecurringTask(
                "notify-check",
                schedule.poll_interval.total_seconds(),
                notify_service.run,
                initial_delay=schedule.initial_delay.total_seconds(),
            ),
            RecurringTask(
                "resolved-check",
                schedule.resolved_interval.total_seconds(),
                resolved_service.run,
            ),
            RecurringTask(
                "cache-eviction",
                schedule.eviction_interval.total_seconds(),
                self.evict,
            ),
        ]

        self.running = False
        self.started_at: Optional[float] = None

    def uptime(self) -> float:
        """start() 이후 경과 시간 (시작 전이면 0)"""
        if self.started_at is None:
            return 0.0
        return time.monotonic() - self.started_at

    async def evict(self) -> int:
        """오래된 Pending/Notified 항목 정리"""
        async with self.store.lock:
            removed = self.store.evict_stale(self.clock())
        logger.info(f"🧹 Cache cleanup: {removed} old events removed")
        return removed

    async def start(self):
        """Polling 시작"""
        self.running = True
        self.started_at = time.monotonic()

        logger.info("=" * 80)
        logger.info("🚀 Starting alert relay orchestrator...")
        for task in self.tasks:
            logger.info(f"📍 {task.name}: every {task.interval:g}s (first run in {task.initial_delay:g}s)")
        logger.info("=" * 80)

        try:
            await asyncio.gather(
                *(task.run_forever(lambda: self.running) for task in self.tasks)
            )
        finally:
            for task in self.tasks:
                task.cancel()

    def stop(self):
        """Polling 중지"""
        self.running = False
        logger.info("Alert relay orchestrator stopped")
