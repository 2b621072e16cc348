# alert_relay/domain/classifier.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
import logging

from alert_relay.domain.contract import extract_contract, is_host_allowed, is_host_blocked
from alert_relay.domain.events import RawEvent
from alert_relay.domain.policy import RoutingPolicy

logger = logging.getLogger(__name__)


class ClassifyReason(Enum):
    """
    이벤트 분류 결과.

    - ADMITTED: 라이프사이클 처리 대상
    - BELOW_MIN_SEVERITY: 설정된 최소 severity 미만
    - HOST_BLOCKED: 계약별 차단 host
    - ALREADY_RESOLVED: r_eventid 가 이미 붙어있음
    """

    ADMITTED = auto()
    BELOW_MIN_SEVERITY = auto()
    HOST_BLOCKED = auto()
    ALREADY_RESOLVED = auto()


@dataclass(frozen=True)
class Classification:
    admit: bool
    reason: ClassifyReason
    contract: str
    severity: int
    host_allowed: bool = True


def classify(event: RawEvent, policy: RoutingPolicy) -> Classification:
    """
    RawEvent 가 라이프사이클 처리 대상인지 판단한다. (부수효과 없음)

    검사 순서: severity -> 차단 host -> 이미 해결됨.
    host_allowed 는 참고용이고, 실제 fallback 여부는 라우팅 시점에 다시 계산한다.
    """
    contract = extract_contract(event.host_name)

    def reject(reason: ClassifyReason) -> Classification:
        logger.debug(
            "Event %s (%s) rejected: %s", event.event_id, event.host_name, reason.name
        )
        return Classification(
            admit=False, reason=reason, contract=contract, severity=event.severity
        )

    if event.severity < policy.min_severity:
        return reject(ClassifyReason.BELOW_MIN_SEVERITY)

    if is_host_blocked(event.host_name, contract, policy):
        return reject(ClassifyReason.HOST_BLOCKED)

    if event.is_recovered:
        logger.info(
            f"Event {event.event_id} ({event.host_name}) already resolved "
            f"(r_eventid: {event.recovery_event_id}), ignoring"
        )
        return reject(ClassifyReason.ALREADY_RESOLVED)

    return Classification(
        admit=True,
        reason=ClassifyReason.ADMITTED,
        contract=contract,
        severity=event.severity,
        host_allowed=is_host_allowed(event.host_name, contract, policy),
    )
