# alert_relay/domain/policy.py
from datetime import timedelta
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RoutingPolicy:
    min_severity: int                                   # 이 값 미만 severity 는 무시
    default_group: str                                  # fallback 목적지
    contract_groups: dict[str, str] = field(default_factory=dict)    # 계약 -> 목적지
    blocked_hosts: dict[str, str] = field(default_factory=dict)      # 계약 -> 차단 substring
    allowed_hosts: frozenset[str] = frozenset()         # 허용 host 토큰 (대문자)
    allowed_host_contracts: frozenset[str] = frozenset()  # 허용 목록을 적용할 계약

    def destinations(self) -> list[str]:
        """시작 시 검증해야 하는 모든 목적지 (중복 제거, 순서 유지)"""
        seen: list[str] = []
        for dest in [*self.contract_groups.values(), self.default_group]:
            if dest and dest not in seen:
                seen.append(dest)
        return seen


@dataclass(frozen=True)
class LifecycleTimings:
    confirmation_window: timedelta = timedelta(minutes=9)       # Pending -> Notified 최소 대기
    min_resolution_duration: timedelta = timedelta(minutes=9)   # 해결 알림을 보낼 최소 지속 시간
    eviction_max_age: timedelta = timedelta(hours=48)           # 캐시 정리 기준


@dataclass(frozen=True)
class ScheduleSettings:
    poll_interval: timedelta = timedelta(minutes=1)
    resolved_interval: timedelta = timedelta(minutes=1)
    eviction_interval: timedelta = timedelta(hours=6)
    initial_delay: timedelta = timedelta(seconds=5)
    lookback_hours: int = 2
    request_timeout: float = 10.0
