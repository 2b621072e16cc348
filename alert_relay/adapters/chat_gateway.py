# alert_relay/adapters/chat_gateway.py
"""
Chat gateway (WhatsApp HTTP gateway) 메시지 전송 어댑터
"""
from typing import Dict
import logging
import re

import httpx

from alert_relay.config import CHAT_GATEWAY_URL, CHAT_GATEWAY_TOKEN
from alert_relay.errors import DeliveryError

logger = logging.getLogger(__name__)

# 그룹 ID 형식: "120363025246125888@g.us"
GROUP_ID_RE = re.compile(r"^\d+@g\.us$")


class ChatGatewayNotifier:
    """HTTP chat gateway 로 텍스트 메시지 전송"""

    def __init__(
        self,
        base_url: str = CHAT_GATEWAY_URL,
        token: str = CHAT_GATEWAY_TOKEN,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=self._headers(),
            transport=self.transport,
        )

    async def send_message(self, destination: str, text: str) -> None:
        """
        목적지로 메시지 전송

        Raises:
            DeliveryError: 게이트웨이 미설정, 요청 실패, 에러 응답
        """
        if not self.base_url:
            raise DeliveryError(destination, "chat gateway url is not configured")

        async with self._client() as client:
            try:
                resp = await client.post("/messages", json={"chatId": destination, "text": text})
            except httpx.RequestError as exc:
                raise DeliveryError(destination, f"request error: {exc}") from exc

        if resp.is_error:
            raise DeliveryError(
                destination,
                f"status={resp.status_code} body={resp.text[:200]}",
            )

        logger.info(f"✅ Message successfully posted to {destination}")

    async def validate_destination(self, destination: str) -> bool:
        """
        그룹 ID 형식 검사 후 게이트웨이에 존재/접근 가능 여부 확인
        """
        if not GROUP_ID_RE.match(destination or ""):
            logger.error(f"❌ Invalid group id: {destination}")
            return False

        if not self.base_url:
            logger.error("❌ Chat gateway url is not configured")
            return False

        async with self._client() as client:
            try:
                resp = await client.get(f"/chats/{destination}")
            except httpx.RequestError as exc:
                logger.error(f"❌ Chat gateway request error for {destination}: {exc}")
                return False

        if resp.is_error:
            logger.error(f"❌ Group not found or not accessible: {destination} (status={resp.status_code})")
            return False

        return True
