# tests/helpers.py
"""
테스트 공용 헬퍼 (레코드 생성, fake adapter)
"""
from datetime import timedelta
from typing import Any, Dict, List, Optional, Sequence

from alert_relay.domain.policy import LifecycleTimings, RoutingPolicy, ScheduleSettings
from alert_relay.errors import DeliveryError, EventSourceError

T0 = 1_700_000_000.0

ACME_GROUP = "111@g.us"
DEFAULT_GROUP = "999@g.us"


def make_policy(**overrides) -> RoutingPolicy:
    values = dict(
        min_severity=4,
        default_group=DEFAULT_GROUP,
        contract_groups={"ACME": ACME_GROUP},
        blocked_hosts={"ACME": "ACME-LAB"},
        allowed_hosts=frozenset({"SRV", "DB"}),
        allowed_host_contracts=frozenset({"ACME"}),
    )
    values.update(overrides)
    return RoutingPolicy(**values)


def make_timings(confirmation: int = 60, min_resolution: int = 540, max_age_hours: int = 48) -> LifecycleTimings:
    return LifecycleTimings(
        confirmation_window=timedelta(seconds=confirmation),
        min_resolution_duration=timedelta(seconds=min_resolution),
        eviction_max_age=timedelta(hours=max_age_hours),
    )


def make_schedule(**overrides) -> ScheduleSettings:
    values = dict(lookback_hours=2, request_timeout=1.0)
    values.update(overrides)
    return ScheduleSettings(**values)


def make_record(
    eventid: str = "1001",
    host: str = "ACME-SRV-01",
    severity: int = 5,
    clock: int = int(T0) - 120,
    r_eventid: Optional[str] = "0",
    name: str = "High CPU utilization",
    description: str = "CPU load is too high",
    opdata: str = "",
) -> Dict[str, Any]:
    """Zabbix event.get 결과 레코드 한 건"""
    return {
        "eventid": eventid,
        "source": "0",
        "object": "0",
        "clock": str(clock),
        "value": "1",
        "acknowledged": "0",
        "name": name,
        "severity": str(severity),
        "r_eventid": r_eventid,
        "opdata": opdata,
        "hosts": [{"hostid": "10084", "host": host, "name": host}],
        "relatedObject": {"description": description, "expression": "{1}>90"},
    }


class FakeClock:
    def __init__(self, now: float = T0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeSource:
    """EventSource fake: records 를 돌려주거나 error 를 던진다"""

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None, error: Optional[Exception] = None):
        self.records = records or []
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def fetch_events(
        self,
        lookback_hours: int,
        severities: Optional[Sequence[int]] = None,
        acknowledged: bool = False,
    ) -> List[Dict[str, Any]]:
        self.calls.append({"lookback_hours": lookback_hours, "severities": severities})
        if self.error is not None:
            raise self.error
        return list(self.records)


class FakeNotifier:
    """Notifier fake: 전송 내역 기록, 특정 목적지는 실패"""

    def __init__(self, fail_for: Sequence[str] = (), invalid: Sequence[str] = ()):
        self.sent: List[tuple] = []
        self.fail_for = set(fail_for)
        self.invalid = set(invalid)

    async def send_message(self, destination: str, text: str) -> None:
        if destination in self.fail_for:
            raise DeliveryError(destination, "rejected")
        self.sent.append((destination, text))

    async def validate_destination(self, destination: str) -> bool:
        return destination not in self.invalid

    def texts_for(self, destination: str) -> List[str]:
        return [text for dest, text in self.sent if dest == destination]


def source_unavailable() -> FakeSource:
    return FakeSource(error=EventSourceError("Zabbix API error: 502"))
