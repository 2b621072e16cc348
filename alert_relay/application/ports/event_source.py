# alert_relay/application/ports/event_source.py
"""
이벤트 소스 포트 (인터페이스)
"""
from typing import Any, Dict, List, Optional, Protocol, Sequence


class EventSource(Protocol):
    """
    모니터링 시스템 이벤트 조회 인터페이스

    구현체:
    - ZabbixClient (adapters/zabbix_client.py)
    """

    async def fetch_events(
        self,
        lookback_hours: int,
        severities: Optional[Sequence[int]] = None,
        acknowledged: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        최근 lookback_hours 시간 동안의 문제 이벤트 레코드 조회

        Args:
            lookback_hours: 조회 범위 (시간)
            severities: severity 필터 (None 이면 전체)
            acknowledged: 확인(ack) 여부 필터

        Raises:
            EventSourceError: 조회 실패
        """
        ...
