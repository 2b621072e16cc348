# alert_relay/application/services/resolved_check.py
from __future__ import annotations

from typing import Callable, Optional
import logging
import time

from alert_relay.application.ports.event_source import EventSource
from alert_relay.application.services.event_feed import fetch_records, recovery_signals
from alert_relay.application.services.formatter import format_resolved_batch
from alert_relay.application.services.routing import DeliveryReport, RoutedGroup, RoutingEngine
from alert_relay.domain.lifecycle import LifecycleStore
from alert_relay.domain.policy import RoutingPolicy, ScheduleSettings
from alert_relay.domain.severity import severities_from

logger = logging.getLogger(__name__)


class ResolvedCheckService:
    """
    해결 이벤트 확인 서비스 (resolved-check)

    책임:
    - Notified 이벤트 중 recovery 신호가 붙은 것 감지 및 제거
    - 일정 시간 이상 지속된 이벤트만 해결 알림 전송
    """

    def __init__(
        self,
        source: EventSource,
        store: LifecycleStore,
        policy: RoutingPolicy,
        routing: RoutingEngine,
        schedule: ScheduleSettings,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.store = store
        self.policy = policy
        self.routing = routing
        self.schedule = schedule
        self.clock = clock

    async def run(self) -> Optional[DeliveryReport]:
        logger.info("🔍 Checking resolved events...")

        if self.store.snapshot().notified_count == 0:
            logger.info("No notified events to check")
            return None

        records = await fetch_records(
            self.source,
            lookback_hours=self.schedule.lookback_hours,
            severities=severities_from(self.policy.min_severity),
            timeout=self.schedule.request_timeout,
        )
        if records is None:
            return None

        signals = recovery_signals(records)
        now = self.clock()

        async with self.store.lock:
            resolved = self.store.detect_resolutions(signals, now)

        if not resolved:
            return DeliveryReport()

        plan = self.routing.route(resolved)

        def render(group: RoutedGroup):
            return format_resolved_batch(group.events, group.contract)

        report = await self.routing.deliver(plan, render)
        logger.info(
            f"Resolved check done: {len(resolved)} resolved, "
            f"{report.sent} groups sent, {report.failed} failed"
        )
        return report
