# alert_relay/domain/events.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
import logging

from pydantic import BaseModel, ValidationError, field_validator

from alert_relay.errors import MalformedEventError

logger = logging.getLogger(__name__)


class RawEvent(BaseModel):
    """
    Zabbix event.get 결과 한 건의 도메인 모델.

    - hosts[0].name -> host_name
    - relatedObject.description -> description
    - r_eventid -> recovery_event_id ("0" 이거나 비어있으면 아직 미해결)
    """

    event_id: str
    host_name: str
    severity: int
    clock: int
    name: str
    description: str
    opdata: str = ""
    recovery_event_id: Optional[str] = None

    @field_validator("event_id", "host_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    @property
    def is_recovered(self) -> bool:
        """upstream 에서 이미 recovery 이벤트가 붙었는지"""
        return bool(self.recovery_event_id) and self.recovery_event_id != "0"

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "RawEvent":
        """
        Zabbix 레코드 -> RawEvent

        Raises:
            MalformedEventError: 필수 필드가 없거나 타입이 맞지 않을 때
        """
        try:
            hosts = record.get("hosts") or []
            related = record.get("relatedObject") or {}
            r_eventid = record.get("r_eventid")
            return cls(
                event_id=str(record["eventid"]),
                host_name=hosts[0]["name"],
                severity=int(record["severity"]),
                clock=int(record["clock"]),
                name=record.get("name") or "",
                description=related.get("description") or "",
                opdata=record.get("opdata") or "",
                recovery_event_id=str(r_eventid) if r_eventid is not None else None,
            )
        except (AttributeError, KeyError, IndexError, TypeError, ValueError, ValidationError) as exc:
            event_id = record.get("eventid") if isinstance(record, dict) else None
            raise MalformedEventError(
                f"malformed event record (eventid={event_id!r}): {exc}"
            ) from exc


def parse_events(records: Iterable[Dict[str, Any]]) -> List[RawEvent]:
    """
    레코드 목록을 RawEvent 로 변환한다.
    잘못된 레코드는 로그만 남기고 건너뛴다 (배치 전체를 버리지 않음).
    """
    events: List[RawEvent] = []
    for record in records:
        try:
            events.append(RawEvent.from_record(record))
        except MalformedEventError as exc:
            logger.warning(f"⚠️ Skipping record: {exc}")
    return events
