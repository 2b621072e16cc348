# alert_relay/domain/contract.py
"""
host 이름 -> 계약(contract) 코드 변환 및 host 단위 차단/허용 정책
"""
from __future__ import annotations

import logging
import re

from alert_relay.domain.policy import RoutingPolicy

logger = logging.getLogger(__name__)

UNKNOWN_CONTRACT = "UNKNOWN"

# 첫 번째 '-' 앞부분이 계약 코드 (예: "ACME-SRV-DB01" -> "ACME")
_CONTRACT_RE = re.compile(r"^([^-]+)-")
_WHITESPACE_RE = re.compile(r"\s+")


def extract_contract(host_name: str) -> str:
    match = _CONTRACT_RE.match(host_name)
    return match.group(1) if match else UNKNOWN_CONTRACT


def is_host_blocked(host_name: str, contract: str, policy: RoutingPolicy) -> bool:
    """계약별 차단 문자열이 host 이름에 포함되어 있으면 차단 (대소문자 구분)"""
    blocked = policy.blocked_hosts.get(contract)
    if blocked and blocked in host_name:
        logger.info(f"🚫 Host {host_name} is blocked for contract {contract}")
        return True
    return False


def host_tokens(host_name: str) -> list[str]:
    """공백 -> '-' 치환, 대문자 변환 후 '-' 로 분리"""
    return _WHITESPACE_RE.sub("-", host_name).upper().split("-")


def is_host_allowed(host_name: str, contract: str, policy: RoutingPolicy) -> bool:
    """
    허용 목록이 설정된 계약이면 host 토큰 중 하나라도 허용 목록에 있어야 한다.
    허용 목록 대상이 아닌 계약은 모든 host 허용.
    """
    if contract not in policy.allowed_host_contracts:
        return True
    return any(token in policy.allowed_hosts for token in host_tokens(host_name))
