# alert_relay/application/services/routing.py
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Iterable, List, Protocol, Tuple, TypeVar
import logging

from alert_relay.adapters.messagecard import AlertCard
from alert_relay.application.ports.notifier import Notifier
from alert_relay.domain.contract import is_host_allowed
from alert_relay.domain.policy import RoutingPolicy

logger = logging.getLogger(__name__)


class Routable(Protocol):
    @property
    def contract(self) -> str:
        ...

    @property
    def host_name(self) -> str:
        ...


E = TypeVar("E", bound=Routable)


@dataclass
class RoutedGroup(Generic[E]):
    """한 목적지로 보낼 한 계약의 이벤트 묶음"""

    destination: str
    contract: str
    events: List[E] = field(default_factory=list)
    fallback: bool = False


RoutingPlan = Dict[str, List[RoutedGroup]]


@dataclass
class DeliveryReport:
    sent: int = 0
    failed: int = 0


class RoutingEngine:
    """
    계약 기반 라우팅 서비스

    책임:
    - 이벤트를 계약별로 묶고 목적지 결정 (계약 그룹 또는 기본 그룹)
    - 그룹별 독립 전송 (한 그룹 실패가 다른 그룹을 막지 않음)
    """

    def __init__(self, policy: RoutingPolicy, notifier: Notifier, send_timeout: float = 10.0):
        """
        Args:
            policy: 라우팅 정책
            notifier: 알림 전송 구현체
            send_timeout: 그룹당 전송 타임아웃 (초)
        """
        self.policy = policy
        self.notifier = notifier
        self.send_timeout = send_timeout

    def resolve_destination(self, contract: str, host_name: str) -> Tuple[str, bool]:
        """
        Returns:
            (목적지, fallback 여부)
        """
        destination = self.policy.contract_groups.get(contract)
        allowed = is_host_allowed(host_name, contract, self.policy)

        if not destination or not allowed:
            if not destination:
                logger.info(f"No destination configured for contract {contract}, using default group")
            else:
                logger.info(f"Host {host_name} not allowed for contract {contract}, using default group")
            return self.policy.default_group, True

        return destination, False

    def route(self, batch: Iterable[E]) -> RoutingPlan:
        """
        배치를 (목적지, 계약) 단위 그룹으로 나눈다.
        모든 이벤트는 정확히 하나의 그룹에 들어간다.
        """
        groups: Dict[Tuple[str, str], RoutedGroup] = {}

        for event in batch:
            destination, fallback = self.resolve_destination(event.contract, event.host_name)
            key = (destination, event.contract)
            group = groups.get(key)
            if group is None:
                group = RoutedGroup(destination=destination, contract=event.contract, fallback=fallback)
                groups[key] = group
            group.events.append(event)

        plan: RoutingPlan = {}
        for group in groups.values():
            plan.setdefault(group.destination, []).append(group)
        return plan

    async def deliver(
        self,
        plan: RoutingPlan,
        render: Callable[[RoutedGroup], AlertCard],
    ) -> DeliveryReport:
        report = DeliveryReport()

        for destination, groups in plan.items():
            for group in groups:
                try:
                    card = render(group)
                    await asyncio.wait_for(
                        self.notifier.send_message(destination, card.to_text()),
                        timeout=self.send_timeout,
                    )
                except Exception as e:
                    report.failed += 1
                    logger.error(
                        f"❌ Failed to deliver {len(group.events)} events of contract "
                        f"{group.contract} to {destination}: {e!r}"
                    )
                    continue

                report.sent += 1
                logger.info(
                    f"📤 Sent {len(group.events)} events of contract {group.contract} "
                    f"to {destination}{' (default group)' if group.fallback else ''}"
                )

        return report
