# alert_relay/application/services/notify_check.py
from __future__ import annotations

from typing import Callable, List, Optional, Tuple
import logging
import time

from alert_relay.application.ports.event_source import EventSource
from alert_relay.application.services.event_feed import active_ids, fetch_records
from alert_relay.application.services.formatter import DEFAULT_TIMEZONE, format_alert_batch
from alert_relay.application.services.routing import DeliveryReport, RoutedGroup, RoutingEngine
from alert_relay.domain.classifier import Classification, classify
from alert_relay.domain.events import RawEvent, parse_events
from alert_relay.domain.lifecycle import LifecycleStore
from alert_relay.domain.policy import RoutingPolicy, ScheduleSettings
from alert_relay.domain.severity import severities_from

logger = logging.getLogger(__name__)


class NotifyCheckService:
    """
    활성 이벤트 확인 및 신규 알림 서비스 (notify-check)

    책임:
    - 미확인 이벤트 조회
    - 분류 후 라이프사이클 전진 (Pending 등록 / Notified 승격)
    - 승격된 이벤트를 계약별로 묶어 전송
    """

    def __init__(
        self,
        source: EventSource,
        store: LifecycleStore,
        policy: RoutingPolicy,
        routing: RoutingEngine,
        schedule: ScheduleSettings,
        timezone: str = DEFAULT_TIMEZONE,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.store = store
        self.policy = policy
        self.routing = routing
        self.schedule = schedule
        self.timezone = timezone
        self.clock = clock

    async def run(self) -> Optional[DeliveryReport]:
        """
        한 사이클 실행

        Returns:
            전송 결과. 이벤트 조회에 실패하면 None
        """
        logger.info("🔍 Checking unacknowledged events...")

        records = await fetch_records(
            self.source,
            lookback_hours=self.schedule.lookback_hours,
            severities=severities_from(self.policy.min_severity),
            timeout=self.schedule.request_timeout,
        )
        if records is None:
            return None

        events = parse_events(records)
        now = self.clock()

        async with self.store.lock:
            admitted: List[Tuple[RawEvent, Classification]] = []
            for event in events:
                classification = classify(event, self.policy)
                if classification.admit:
                    admitted.append((event, classification))

            result = self.store.advance(admitted, active_ids(records), now)

        if not result.to_notify:
            return DeliveryReport()

        plan = self.routing.route(result.to_notify)

        def render(group: RoutedGroup):
            return format_alert_batch(group.events, group.contract, now=now, timezone=self.timezone)

        report = await self.routing.deliver(plan, render)
        logger.info(
            f"Notify check done: {len(result.to_notify)} confirmed, "
            f"{report.sent} groups sent, {report.failed} failed"
        )
        return report
