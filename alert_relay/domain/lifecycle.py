# alert_relay/domain/lifecycle.py
"""
이벤트 라이프사이클 상태 저장소.

    (처음 관측) -> Pending --(confirmation window 경과)--> Notified --(recovery 신호)--> 제거

- Pending: 관측은 됐지만 아직 확정되지 않은 이벤트 (일시적인 flap 억제용)
- Notified: 알림을 보낸 이벤트. recovery 신호가 처음 보일 때 정확히 한 번 제거된다.
- Closed: Notified 에서 빠진 id. max age 동안 남아서 늦게 도착한 레코드로 다시 Pending 에 들어가는 것을 막는다.

상태는 메모리에만 있고 재시작 시 다시 채워진다.
모든 변경은 호출자가 `lock` 을 잡은 상태에서 수행해야 한다.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, Generic, Iterable, List, Mapping, Optional, Protocol, Set, Tuple, TypeVar
import logging

from alert_relay.domain.classifier import Classification
from alert_relay.domain.events import RawEvent
from alert_relay.domain.policy import LifecycleTimings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventStore(Protocol[T]):
    """
    event id 로 키잉된 저장소 인터페이스.

    기본 구현은 InMemoryEventStore. 영속 저장소로 바꿀 때 이 Protocol 만 맞추면 된다.
    """

    def get(self, event_id: str) -> Optional[T]:
        ...

    def put(self, event_id: str, entry: T) -> None:
        ...

    def delete(self, event_id: str) -> None:
        ...

    def __contains__(self, event_id: object) -> bool:
        ...

    def __len__(self) -> int:
        ...

    def items(self) -> List[Tuple[str, T]]:
        ...


class InMemoryEventStore(Generic[T]):
    """dict 기반 EventStore"""

    def __init__(self):
        self._entries: Dict[str, T] = {}

    def get(self, event_id: str) -> Optional[T]:
        return self._entries.get(event_id)

    def put(self, event_id: str, entry: T) -> None:
        self._entries[event_id] = entry

    def delete(self, event_id: str) -> None:
        self._entries.pop(event_id, None)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def items(self) -> List[Tuple[str, T]]:
        # 순회 중 삭제할 수 있도록 복사본 반환
        return list(self._entries.items())


@dataclass(frozen=True)
class PendingEntry:
    event_id: str
    first_seen_at: float


@dataclass(frozen=True)
class NotifiedEntry:
    event_id: str
    host_name: str
    description: str
    contract: str
    severity: int
    name: str
    opdata: str
    event_clock: int      # 원래 알림 발생 시각 (표시용)
    notified_at: float    # Pending -> Notified 승격 시각


@dataclass(frozen=True)
class ClosedEntry:
    event_id: str
    closed_at: float


@dataclass(frozen=True)
class ResolvedEvent:
    entry: NotifiedEntry
    resolved_at: float
    duration_ms: int
    recovery_event_id: str

    @property
    def event_id(self) -> str:
        return self.entry.event_id

    @property
    def host_name(self) -> str:
        return self.entry.host_name

    @property
    def contract(self) -> str:
        return self.entry.contract


@dataclass(frozen=True)
class AdvanceResult:
    to_notify: List[NotifiedEntry]
    still_pending: Set[str]


@dataclass(frozen=True)
class LifecycleSnapshot:
    pending_count: int
    notified_count: int


class LifecycleStore:
    """
    Pending / Notified 두 저장소와 전이 규칙.

    책임:
    - 관측된 이벤트를 Pending 에 등록하고 확정 시 Notified 로 승격
    - recovery 신호로 해결된 이벤트 제거
    - 오래된 항목 정리
    """

    def __init__(
        self,
        timings: LifecycleTimings,
        pending: Optional[EventStore[PendingEntry]] = None,
        notified: Optional[EventStore[NotifiedEntry]] = None,
        closed: Optional[EventStore[ClosedEntry]] = None,
    ):
        self.timings = timings
        self.pending: EventStore[PendingEntry] = pending if pending is not None else InMemoryEventStore()
        self.notified: EventStore[NotifiedEntry] = notified if notified is not None else InMemoryEventStore()
        self.closed: EventStore[ClosedEntry] = closed if closed is not None else InMemoryEventStore()
        self.lock = asyncio.Lock()

    def _close(self, event_id: str, now: float):
        self.notified.delete(event_id)
        self.closed.put(event_id, ClosedEntry(event_id=event_id, closed_at=now))

    def advance(
        self,
        admitted: Iterable[Tuple[RawEvent, Classification]],
        active_ids: Set[str],
        now: float,
    ) -> AdvanceResult:
        """
        한 번의 poll 결과로 상태를 전진시킨다.

        Args:
            admitted: classify 를 통과한 (이벤트, 분류결과) 목록
            active_ids: 이번 poll 에서 조회된 전체 이벤트 id (Pending 정리 기준)
            now: 현재 시각 (epoch seconds)

        Returns:
            이번에 승격된 NotifiedEntry 목록과 남아있는 Pending id
        """
        window = self.timings.confirmation_window.total_seconds()
        to_notify: List[NotifiedEntry] = []
        seen: Set[str] = set()

        for event, classification in admitted:
            event_id = event.event_id

            # 같은 poll 안의 중복 레코드는 한 번만 처리
            if event_id in seen or event_id in self.notified or event_id in self.closed:
                continue
            seen.add(event_id)

            pending = self.pending.get(event_id)
            if pending is None:
                self.pending.put(event_id, PendingEntry(event_id=event_id, first_seen_at=now))
                logger.info(
                    f"⏳ Event {event_id} ({event.host_name}, severity {event.severity}) "
                    f"marked pending for confirmation"
                )
                continue

            if now - pending.first_seen_at < window:
                continue

            entry = NotifiedEntry(
                event_id=event_id,
                host_name=event.host_name,
                description=event.description,
                contract=classification.contract,
                severity=event.severity,
                name=event.name,
                opdata=event.opdata,
                event_clock=event.clock,
                notified_at=now,
            )
            self.notified.put(event_id, entry)
            self.pending.delete(event_id)
            to_notify.append(entry)
            logger.info(
                f"🔔 Event {event_id} ({event.host_name}) confirmed for contract "
                f"{classification.contract}"
            )

        for pending_id, _ in self.pending.items():
            if pending_id not in active_ids:
                logger.info(f"Event {pending_id} is no longer active, dropping from pending")
                self.pending.delete(pending_id)

        return AdvanceResult(
            to_notify=to_notify,
            still_pending={pending_id for pending_id, _ in self.pending.items()},
        )

    def detect_resolutions(self, recovery_signals: Mapping[str, str], now: float) -> List[ResolvedEvent]:
        """
        recovery 신호가 붙은 Notified 이벤트를 제거하고, 알림 대상만 반환한다.

        Args:
            recovery_signals: 이번 poll 의 event id -> recovery event id (raw 레코드 기준)
            now: 현재 시각 (epoch seconds)

        active set 에서 사라진 것만으로는 해결로 보지 않는다 (조회 범위 밖으로 밀려났을 수 있음).
        """
        min_duration = self.timings.min_resolution_duration.total_seconds()
        resolved: List[ResolvedEvent] = []

        for event_id, entry in self.notified.items():
            recovery_id = recovery_signals.get(event_id)
            if recovery_id is None:
                continue

            self._close(event_id, now)
            duration = now - entry.notified_at

            if duration > min_duration:
                resolved.append(
                    ResolvedEvent(
                        entry=entry,
                        resolved_at=now,
                        duration_ms=int(duration * 1000),
                        recovery_event_id=recovery_id,
                    )
                )
                logger.info(
                    f"✅ Event {event_id} ({entry.host_name}) resolved, recovery id {recovery_id}"
                )
            else:
                logger.info(
                    f"Event {event_id} ({entry.host_name}) resolved after "
                    f"{int(duration)}s, below threshold; not notifying"
                )

        return resolved

    def evict_stale(self, now: float) -> int:
        """max age 보다 오래된 Pending/Notified 항목 제거. 제거 건수 반환 (Closed 정리는 제외)."""
        cutoff = now - self.timings.eviction_max_age.total_seconds()
        removed = 0

        for event_id, closed in self.closed.items():
            if closed.closed_at < cutoff:
                self.closed.delete(event_id)

        for event_id, entry in self.notified.items():
            if entry.notified_at < cutoff:
                self._close(event_id, now)
                removed += 1

        for event_id, pending in self.pending.items():
            if pending.first_seen_at < cutoff:
                self.pending.delete(event_id)
                removed += 1

        return removed

    def snapshot(self) -> LifecycleSnapshot:
        return LifecycleSnapshot(
            pending_count=len(self.pending),
            notified_count=len(self.notified),
        )
