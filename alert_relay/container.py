# alert_relay/container.py
"""
의존성 조립 (Dependency Assembly)
"""
import logging
from typing import Optional

from alert_relay.adapters.chat_gateway import ChatGatewayNotifier
from alert_relay.adapters.zabbix_client import ZabbixClient
from alert_relay.application.ports.event_source import EventSource
from alert_relay.application.ports.notifier import Notifier
from alert_relay.application.services.commands import OperatorCommandHandler
from alert_relay.application.services.notify_check import NotifyCheckService
from alert_relay.application.services.orchestrator import PollingOrchestrator
from alert_relay.application.services.resolved_check import ResolvedCheckService
from alert_relay.application.services.routing import RoutingEngine
from alert_relay.domain.lifecycle import LifecycleStore
from alert_relay.errors import DestinationValidationError
from alert_relay.relay_config import RelayConfig

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    서비스 컨테이너

    애플리케이션의 모든 의존성을 생성하고 조립합니다.
    LifecycleStore 는 여기서 하나만 만들어 모든 서비스가 공유합니다.
    """

    def __init__(
        self,
        config: RelayConfig,
        notifier: Optional[Notifier] = None,
        source: Optional[EventSource] = None,
    ):
        self.config = config
        self.policy = config.to_policy()
        self.schedule = config.to_schedule()

        # Adapter 생성 (Singleton)
        self._notifier = notifier or ChatGatewayNotifier(timeout=config.request_timeout_seconds)
        self._source = source or ZabbixClient(timeout=config.request_timeout_seconds)

        # 상태
        self._store = LifecycleStore(config.to_timings())

        # Services 생성
        self._routing = RoutingEngine(self.policy, self._notifier, send_timeout=config.request_timeout_seconds)
        notify_service = NotifyCheckService(
            self._source, self._store, self.policy, self._routing, self.schedule,
            timezone=config.timezone,
        )
        resolved_service = ResolvedCheckService(
            self._source, self._store, self.policy, self._routing, self.schedule,
        )
        self._orchestrator = PollingOrchestrator(
            notify_service, resolved_service, self._store, self.schedule,
        )
        self._command_handler = OperatorCommandHandler(
            self._source,
            self._store,
            self.policy,
            self._notifier,
            self.schedule,
            uptime=self._orchestrator.uptime,
            timezone=config.timezone,
        )

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    @property
    def store(self) -> LifecycleStore:
        return self._store

    @property
    def orchestrator(self) -> PollingOrchestrator:
        return self._orchestrator

    @property
    def command_handler(self) -> OperatorCommandHandler:
        return self._command_handler

    async def validate_destinations(self) -> None:
        """
        설정된 모든 목적지 검증 (시작 시 한 번)

        Raises:
            DestinationValidationError: 하나라도 유효하지 않으면
        """
        invalid = []
        for destination in self.policy.destinations():
            try:
                valid = await self._notifier.validate_destination(destination)
            except Exception as e:
                logger.error(f"❌ Destination check failed for {destination}: {e!r}")
                valid = False
            if not valid:
                invalid.append(destination)

        if invalid:
            raise DestinationValidationError(invalid)

        logger.info(f"✅ All {len(self.policy.destinations())} destinations are valid")


# 전역 컨테이너 인스턴스
_container: Optional[ServiceContainer] = None


def get_container() -> Optional[ServiceContainer]:
    """
    ServiceContainer 인스턴스 반환 (초기화 전이면 None)
    """
    return _container


def init_container(
    config: RelayConfig,
    notifier: Optional[Notifier] = None,
    source: Optional[EventSource] = None,
) -> ServiceContainer:
    """
    ServiceContainer 초기화

    애플리케이션 시작 시 명시적으로 호출합니다.
    """
    global _container
    _container = ServiceContainer(config, notifier=notifier, source=source)
    logger.info("✅ Service container initialized")
    return _container


def reset_container() -> None:
    """테스트에서 전역 컨테이너를 비울 때 사용한다."""
    global _container
    _container = None
