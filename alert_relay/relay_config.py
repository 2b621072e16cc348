# alert_relay/relay_config.py
"""
라우팅/라이프사이클 설정 파일 (INI) 로더

[GENERAL]                  시간대, 최소 severity, 기본 그룹, 각종 주기
[CONTRACT_GROUPS]          계약 = 그룹 ID
[BLOCKED_HOSTS]            계약 = 차단 host substring
[ALLOWED_HOSTS]            HOSTS = 허용 토큰 목록 (콤마 구분)
[ALLOWED_HOSTS_CONTRACTS]  CONTRACTS = 허용 목록을 적용할 계약 (콤마 구분)
"""
from __future__ import annotations

from configparser import ConfigParser, Error as ConfigParserError
from datetime import timedelta
from pathlib import Path
from typing import Dict, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, ValidationError, field_validator

from alert_relay.domain.policy import LifecycleTimings, RoutingPolicy, ScheduleSettings
from alert_relay.errors import ConfigError


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class RelayConfig(BaseModel):
    """시작 시 한 번 읽는 설정 (실행 중 다시 읽지 않음)"""

    timezone: str = "UTC"
    min_severity: int = Field(default=4, ge=0, le=5)
    default_group_id: str
    confirmation_window_seconds: int = Field(default=540, ge=0)
    min_resolution_duration_seconds: int = Field(default=540, ge=0)
    poll_interval_seconds: int = Field(default=60, gt=0)
    resolved_interval_seconds: int = Field(default=60, gt=0)
    eviction_interval_seconds: int = Field(default=6 * 3600, gt=0)
    eviction_max_age_seconds: int = Field(default=48 * 3600, gt=0)
    lookback_hours: int = Field(default=2, gt=0)
    request_timeout_seconds: float = Field(default=10.0, gt=0)

    contract_groups: Dict[str, str] = Field(default_factory=dict)
    blocked_hosts: Dict[str, str] = Field(default_factory=dict)
    allowed_hosts: List[str] = Field(default_factory=list)
    allowed_host_contracts: List[str] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def _valid_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {value}") from exc
        return value

    @field_validator("default_group_id")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("DEFAULT_GROUP_ID must not be empty")
        return value.strip()

    def to_policy(self) -> RoutingPolicy:
        return RoutingPolicy(
            min_severity=self.min_severity,
            default_group=self.default_group_id,
            contract_groups=dict(self.contract_groups),
            blocked_hosts=dict(self.blocked_hosts),
            # host 토큰은 대문자로 비교하므로 허용 목록도 대문자로 맞춘다
            allowed_hosts=frozenset(host.upper() for host in self.allowed_hosts),
            allowed_host_contracts=frozenset(self.allowed_host_contracts),
        )

    def to_timings(self) -> LifecycleTimings:
        return LifecycleTimings(
            confirmation_window=timedelta(seconds=self.confirmation_window_seconds),
            min_resolution_duration=timedelta(seconds=self.min_resolution_duration_seconds),
            eviction_max_age=timedelta(seconds=self.eviction_max_age_seconds),
        )

    def to_schedule(self) -> ScheduleSettings:
        return ScheduleSettings(
            poll_interval=timedelta(seconds=self.poll_interval_seconds),
            resolved_interval=timedelta(seconds=self.resolved_interval_seconds),
            eviction_interval=timedelta(seconds=self.eviction_interval_seconds),
            lookback_hours=self.lookback_hours,
            request_timeout=self.request_timeout_seconds,
        )


def parse_relay_config(text: str) -> RelayConfig:
    """
    INI 텍스트 -> RelayConfig

    Raises:
        ConfigError: 형식 오류, 필수 값 누락, 값 검증 실패
    """
    parser = ConfigParser(interpolation=None)
    # 계약 코드 대소문자 유지
    parser.optionxform = str

    try:
        parser.read_string(text)
    except ConfigParserError as exc:
        raise ConfigError(f"invalid config file: {exc}") from exc

    if not parser.has_section("GENERAL"):
        raise ConfigError("missing [GENERAL] section")

    general = {key.lower(): value for key, value in parser.items("GENERAL")}

    def section(name: str) -> Dict[str, str]:
        return dict(parser.items(name)) if parser.has_section(name) else {}

    data = {
        **general,
        "contract_groups": section("CONTRACT_GROUPS"),
        "blocked_hosts": section("BLOCKED_HOSTS"),
        "allowed_hosts": _split_list(section("ALLOWED_HOSTS").get("HOSTS", "")),
        "allowed_host_contracts": _split_list(
            section("ALLOWED_HOSTS_CONTRACTS").get("CONTRACTS", "")
        ),
    }

    try:
        return RelayConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid relay config: {exc}") from exc


def load_relay_config(path: str | Path) -> RelayConfig:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    return parse_relay_config(text)
