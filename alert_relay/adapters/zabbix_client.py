"""
Zabbix JSON-RPC API 클라이언트
"""
import aiohttp
import asyncio
from typing import Optional, List, Dict, Any, Sequence
import logging
import time

from alert_relay.config import ZABBIX_API_URL, ZABBIX_API_TOKEN
from alert_relay.errors import EventSourceError

logger = logging.getLogger(__name__)


class ZabbixClient:
    """Zabbix API 클라이언트 (event.get)"""

    def __init__(
        self,
        api_url: str = ZABBIX_API_URL,
        api_token: str = ZABBIX_API_TOKEN,
        timeout: float = 10.0,
    ):
        self.api_url = api_url
        self.api_token = api_token
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._request_id = 0

    def build_event_query(
        self,
        lookback_hours: int,
        severities: Optional[Sequence[int]] = None,
        acknowledged: bool = False,
        now: Optional[float] = None,
    ) -> Dict[str, Any]:
        """event.get JSON-RPC 요청 본문"""
        now = time.time() if now is None else now
        self._request_id += 1

        params: Dict[str, Any] = {
            "output": "extend",
            "time_from": int(now) - 3600 * lookback_hours,
            "sortfield": ["clock", "eventid"],
            "sortorder": "DESC",
            "selectHosts": ["host", "name"],
            "selectRelatedObject": ["description", "expression"],
            "selectHostGroups": ["groupid", "name"],
            "acknowledged": acknowledged,
            # 문제 이벤트만 (recovery 이벤트 제외)
            "value": 1,
        }
        if severities is not None:
            params["severities"] = list(severities)

        return {
            "jsonrpc": "2.0",
            "method": "event.get",
            "params": params,
            "id": self._request_id,
        }

    async def fetch_events(
        self,
        lookback_hours: int,
        severities: Optional[Sequence[int]] = None,
        acknowledged: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        최근 이벤트 조회

        Raises:
            EventSourceError: HTTP 에러, JSON-RPC 에러, 타임아웃
        """
        body = self.build_event_query(lookback_hours, severities, acknowledged)
        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.api_url, json=body, headers=headers) as resp:
                    if resp.status != 200:
                        text = await resp.text()
                        raise EventSourceError(f"Zabbix API error: {resp.status} - {text[:200]}")
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise EventSourceError(f"Zabbix request failed: {e!r}") from e

        if not isinstance(data, dict):
            raise EventSourceError("Zabbix response is not a JSON object")

        if "error" in data:
            error = data["error"]
            raise EventSourceError(
                f"Zabbix JSON-RPC error: {error.get('message')} {error.get('data', '')}".strip()
            )

        result = data.get("result")
        if not isinstance(result, list):
            raise EventSourceError("Zabbix response has no result list")

        logger.debug(f"Zabbix event.get returned {len(result)} records")
        return result
