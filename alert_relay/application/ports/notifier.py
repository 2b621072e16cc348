# alert_relay/application/ports/notifier.py
"""
알림 전송 포트 (인터페이스)

Secondary Port: 애플리케이션이 외부 메시징 시스템을 사용하기 위한 인터페이스
"""
from typing import Protocol


class Notifier(Protocol):
    """
    알림 전송 인터페이스

    이 Protocol을 구현하는 어댑터:
    - ChatGatewayNotifier (adapters/chat_gateway.py)

    Protocol을 사용하는 서비스:
    - routing.py (그룹별 메시지 전송)
    - commands.py (운영자 명령 응답)
    - container.py (시작 시 목적지 검증)
    """

    async def send_message(self, destination: str, text: str) -> None:
        """
        목적지로 텍스트 메시지 전송

        Args:
            destination: 목적지 핸들 (채팅 그룹 ID 등)
            text: 렌더링된 메시지 본문

        Raises:
            DeliveryError: 전송 실패
        """
        ...

    async def validate_destination(self, destination: str) -> bool:
        """
        목적지가 존재하고 접근 가능한지 확인

        Returns:
            유효 여부
        """
        ...
