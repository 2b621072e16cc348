# alert_relay/application/services/formatter.py
"""
알림/해결 메시지 포맷터 (순수 함수)
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo
import time

from alert_relay.adapters.messagecard import AlertCard, Fact, Section
from alert_relay.domain.events import RawEvent
from alert_relay.domain.lifecycle import LifecycleSnapshot, NotifiedEntry, ResolvedEvent
from alert_relay.domain.severity import severity_label

DEFAULT_TIMEZONE = "UTC"
TIME_FORMAT = "%d/%m/%Y %H:%M:%S"


def format_duration(duration_ms: int) -> str:
    """
    밀리초 -> "2d 3h 14m 5s"

    앞쪽의 0 단위는 생략하고 초는 항상 표시한다.
    ex) 90061000 -> "1d 1h 1m 1s", 45000 -> "45s"
    """
    total_seconds = max(int(duration_ms), 0) // 1000
    days, rest = divmod(total_seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if days > 0 or hours > 0:
        parts.append(f"{hours}h")
    if days > 0 or hours > 0 or minutes > 0:
        parts.append(f"{minutes}m")
    parts.append(f"{seconds}s")
    return " ".join(parts)


def format_timestamp(clock: int, timezone: str = DEFAULT_TIMEZONE) -> str:
    return datetime.fromtimestamp(clock, tz=ZoneInfo(timezone)).strftime(TIME_FORMAT)


def _details(name: str, opdata: str) -> str:
    return f"{name} - {opdata}" if opdata else name


def _now(now: Optional[float]) -> float:
    return time.time() if now is None else now


def _alert_section(
    entry: NotifiedEntry,
    now: float,
    timezone: str,
    heading: Optional[str] = None,
) -> Section:
    duration_ms = int((now - entry.event_clock) * 1000)
    return Section(
        heading=heading,
        facts=[
            Fact(name="Host", value=entry.host_name),
            Fact(name="Problem", value=entry.description),
            Fact(name="Time", value=format_timestamp(entry.event_clock, timezone)),
            Fact(name="Severity", value=severity_label(entry.severity)),
            Fact(name="Details", value=_details(entry.name, entry.opdata)),
        ],
        note=f"This alert is still unresolved. Duration: {format_duration(duration_ms)}",
    )


def _resolved_section(resolved: ResolvedEvent, heading: Optional[str] = None) -> Section:
    entry = resolved.entry
    return Section(
        heading=heading,
        facts=[
            Fact(name="Host", value=entry.host_name),
            Fact(name="Problem", value=entry.description),
            Fact(name="Severity", value=severity_label(entry.severity)),
            Fact(name="Details", value=_details(entry.name, entry.opdata)),
        ],
        note=f"This alert was resolved after {format_duration(resolved.duration_ms)}.",
    )


def format_alert_message(
    entry: NotifiedEntry,
    now: Optional[float] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> AlertCard:
    return AlertCard(
        title="⚠️ ZABBIX ALERT ⚠️",
        sections=[_alert_section(entry, _now(now), timezone)],
    )


def format_alert_batch(
    entries: Sequence[NotifiedEntry],
    contract: str,
    now: Optional[float] = None,
    timezone: str = DEFAULT_TIMEZONE,
) -> AlertCard:
    now = _now(now)
    return AlertCard(
        title=f"⚠️ ZABBIX ALERT - {len(entries)} events for {contract} ⚠️",
        sections=[
            _alert_section(entry, now, timezone, heading=f"--- Event {index} ---")
            for index, entry in enumerate(entries, start=1)
        ],
    )


def format_resolved_message(resolved: ResolvedEvent) -> AlertCard:
    return AlertCard(
        title="✅ ALERT RESOLVED ✅",
        sections=[_resolved_section(resolved)],
    )


def format_resolved_batch(resolved: Sequence[ResolvedEvent], contract: str) -> AlertCard:
    return AlertCard(
        title=f"✅ ALERTS RESOLVED - {len(resolved)} events for {contract} ✅",
        sections=[
            _resolved_section(item, heading=f"--- Event {index} ---")
            for index, item in enumerate(resolved, start=1)
        ],
    )


# --- 운영자 명령 응답 -------------------------------------------------------

def format_event_list(
    events: Sequence[RawEvent],
    all_severities: bool = False,
    timezone: str = DEFAULT_TIMEZONE,
) -> AlertCard:
    """!zabbix / !zabbix all 응답"""
    if not events:
        if all_severities:
            return AlertCard(title="There are no unacknowledged events at the moment.")
        return AlertCard(title="There are no unacknowledged high-severity events at the moment.")

    title = (
        "All unacknowledged Zabbix events:"
        if all_severities
        else "Unacknowledged high-severity Zabbix events:"
    )
    sections: List[Section] = []
    for event in events:
        sections.append(
            Section(
                facts=[
                    Fact(name="Host", value=event.host_name),
                    Fact(name="Description", value=event.description),
                    Fact(name="Time", value=format_timestamp(event.clock, timezone)),
                    Fact(name="Severity", value=severity_label(event.severity, full=all_severities)),
                    Fact(name="Details", value=_details(event.name, event.opdata)),
                ]
            )
        )
    return AlertCard(title=title, sections=sections)


def format_uptime(uptime_seconds: float) -> str:
    total = max(int(uptime_seconds), 0)
    return f"{total // 3600}h {(total % 3600) // 60}m"


def format_status(snapshot: LifecycleSnapshot, min_severity: int, uptime_seconds: float) -> AlertCard:
    """!status 응답"""
    return AlertCard(
        title="System Status",
        sections=[
            Section(
                facts=[
                    Fact(name="Pending events", value=str(snapshot.pending_count)),
                    Fact(name="Notified events", value=str(snapshot.notified_count)),
                    Fact(name="Monitoring severities", value=f"{min_severity}+"),
                    Fact(name="Uptime", value=format_uptime(uptime_seconds)),
                ]
            )
        ],
    )
