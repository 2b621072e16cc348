# alert_relay/application/services/event_feed.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence, Set
import logging

from alert_relay.application.ports.event_source import EventSource

logger = logging.getLogger(__name__)


async def fetch_records(
    source: EventSource,
    lookback_hours: int,
    severities: Optional[Sequence[int]],
    timeout: float,
) -> Optional[List[Dict[str, Any]]]:
    """
    타임아웃을 걸고 이벤트 레코드를 조회한다.

    Returns:
        레코드 목록. 조회 실패/타임아웃이면 None (호출자는 이번 사이클을 종료한다)
    """
    try:
        records = await asyncio.wait_for(
            source.fetch_events(lookback_hours=lookback_hours, severities=severities),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.error(f"❌ Event source timed out after {timeout}s")
        return None
    except Exception as e:
        logger.error(f"❌ Failed to fetch events: {e}", exc_info=True)
        return None

    logger.info(f"📬 Retrieved {len(records)} unacknowledged events")
    return records


def active_ids(records: Sequence[Dict[str, Any]]) -> Set[str]:
    """조회된 레코드의 eventid 집합 (형식이 깨진 레코드도 id 가 있으면 포함)"""
    ids: Set[str] = set()
    for record in records:
        if isinstance(record, dict) and record.get("eventid") is not None:
            ids.add(str(record["eventid"]))
    return ids


def recovery_signals(records: Sequence[Dict[str, Any]]) -> Dict[str, str]:
    """
    eventid -> r_eventid (recovery id 가 있고 "0" 이 아닌 레코드만)

    host 정보가 빠진 레코드도 해결 신호로는 유효하므로 전체 파싱 없이 raw 필드만 본다.
    """
    signals: Dict[str, str] = {}
    for record in records:
        if not isinstance(record, dict):
            continue
        event_id = record.get("eventid")
        recovery_id = record.get("r_eventid")
        if event_id is None or recovery_id is None:
            continue
        recovery_id = str(recovery_id).strip()
        if recovery_id and recovery_id != "0":
            signals[str(event_id)] = recovery_id
    return signals
