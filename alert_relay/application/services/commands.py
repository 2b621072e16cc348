# alert_relay/application/services/commands.py
from __future__ import annotations

import asyncio
from typing import Callable, Optional
import logging

from alert_relay.application.ports.event_source import EventSource
from alert_relay.application.ports.notifier import Notifier
from alert_relay.application.services.formatter import (
    DEFAULT_TIMEZONE,
    format_event_list,
    format_status,
)
from alert_relay.domain.events import parse_events
from alert_relay.domain.lifecycle import LifecycleStore
from alert_relay.domain.policy import RoutingPolicy, ScheduleSettings
from alert_relay.domain.severity import severities_from

logger = logging.getLogger(__name__)

CMD_EVENTS = "!zabbix"
CMD_ALL_EVENTS = ("!zabbix all", "!zabbix todos")
CMD_STATUS = "!status"

ALL_EVENTS_LOOKBACK_HOURS = 24
GENERIC_ERROR_REPLY = "Error processing the command. Please try again later."


class OperatorCommandHandler:
    """
    운영자 명령 처리 서비스 (읽기 전용)

    책임:
    - !zabbix: severity 기준 이상 미확인 이벤트 목록
    - !zabbix all: severity 무관 전체 미확인 이벤트 목록
    - !status: Pending/Notified 건수, 업타임

    LifecycleStore 는 snapshot 으로만 읽고 절대 변경하지 않는다.
    """

    def __init__(
        self,
        source: EventSource,
        store: LifecycleStore,
        policy: RoutingPolicy,
        notifier: Notifier,
        schedule: ScheduleSettings,
        uptime: Callable[[], float],
        timezone: str = DEFAULT_TIMEZONE,
    ):
        self.source = source
        self.store = store
        self.policy = policy
        self.notifier = notifier
        self.schedule = schedule
        self.uptime = uptime
        self.timezone = timezone

    async def handle(self, text: str, reply_to: Optional[str] = None) -> Optional[str]:
        """
        명령 텍스트를 처리하고 응답 텍스트를 돌려준다.

        Args:
            text: 수신 메시지 본문
            reply_to: 응답을 보낼 목적지 (있으면 notifier 로도 전송)

        Returns:
            응답 텍스트. 명령이 아니면 None
        """
        command = " ".join(text.split()).lower()

        try:
            if command == CMD_EVENTS:
                reply = await self._list_events(all_severities=False)
            elif command in CMD_ALL_EVENTS:
                reply = await self._list_events(all_severities=True)
            elif command == CMD_STATUS:
                reply = self._status()
            else:
                return None
        except Exception as e:
            # 내부 상세는 로그에만 남긴다
            logger.error(f"❌ Failed to process command {command!r}: {e}", exc_info=True)
            reply = GENERIC_ERROR_REPLY

        if reply_to:
            await self._reply(reply_to, reply)
        return reply

    async def _list_events(self, all_severities: bool) -> str:
        if all_severities:
            lookback, severities = ALL_EVENTS_LOOKBACK_HOURS, None
        else:
            lookback = self.schedule.lookback_hours
            severities = severities_from(self.policy.min_severity)

        records = await asyncio.wait_for(
            self.source.fetch_events(lookback_hours=lookback, severities=severities),
            timeout=self.schedule.request_timeout,
        )
        events = parse_events(records)
        return format_event_list(events, all_severities=all_severities, timezone=self.timezone).to_text()

    def _status(self) -> str:
        snapshot = self.store.snapshot()
        return format_status(snapshot, self.policy.min_severity, self.uptime()).to_text()

    async def _reply(self, destination: str, text: str):
        try:
            await asyncio.wait_for(
                self.notifier.send_message(destination, text),
                timeout=self.schedule.request_timeout,
            )
        except Exception as e:
            logger.error(f"❌ Failed to send command reply to {destination}: {e!r}")
