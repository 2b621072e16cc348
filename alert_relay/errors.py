# alert_relay/errors.py
"""
서비스 전역 예외 정의
"""


class RelayError(Exception):
    """alert relay 예외의 공통 베이스"""


class ConfigError(RelayError):
    """설정 파일을 읽을 수 없거나 값이 잘못된 경우 (시작 시 치명적)"""


class EventSourceError(RelayError):
    """Zabbix 이벤트 조회 실패 (HTTP/JSON-RPC 에러, 타임아웃)"""


class MalformedEventError(RelayError):
    """필수 필드가 빠진 이벤트 레코드"""


class DeliveryError(RelayError):
    """목적지로 메시지 전송 실패"""

    def __init__(self, destination: str, reason: str):
        super().__init__(f"delivery to {destination} failed: {reason}")
        self.destination = destination
        self.reason = reason


class DestinationValidationError(RelayError):
    """설정된 목적지 중 유효하지 않은 것이 있음 (시작 시 치명적)"""

    def __init__(self, invalid: list[str]):
        super().__init__(f"invalid destinations: {', '.join(invalid)}")
        self.invalid = invalid
