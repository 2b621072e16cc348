# tests/test_relay_config.py
from datetime import timedelta

import pytest

from alert_relay.relay_config import load_relay_config, parse_relay_config
from alert_relay.errors import ConfigError

SAMPLE = """
[GENERAL]
TIMEZONE = America/Sao_Paulo
MIN_SEVERITY = 4
DEFAULT_GROUP_ID = 999@g.us
CONFIRMATION_WINDOW_SECONDS = 540

[CONTRACT_GROUPS]
ACME = 111@g.us
Beta = 222@g.us

[BLOCKED_HOSTS]
ACME = ACME-LAB

[ALLOWED_HOSTS]
HOSTS = srv, DB ,, web

[ALLOWED_HOSTS_CONTRACTS]
CONTRACTS = ACME, Beta
"""


def test_parse_full_config():
    config = parse_relay_config(SAMPLE)

    assert config.timezone == "America/Sao_Paulo"
    assert config.min_severity == 4
    assert config.default_group_id == "999@g.us"
    # 계약 코드 대소문자 유지
    assert config.contract_groups == {"ACME": "111@g.us", "Beta": "222@g.us"}
    assert config.blocked_hosts == {"ACME": "ACME-LAB"}
    assert config.allowed_hosts == ["srv", "DB", "web"]
    assert config.allowed_host_contracts == ["ACME", "Beta"]


def test_to_policy_uppercases_allowed_hosts():
    policy = parse_relay_config(SAMPLE).to_policy()

    assert policy.allowed_hosts == frozenset({"SRV", "DB", "WEB"})
    assert policy.allowed_host_contracts == frozenset({"ACME", "Beta"})
    assert policy.default_group == "999@g.us"
    assert sorted(policy.destinations()) == ["111@g.us", "222@g.us", "999@g.us"]


def test_defaults_for_optional_values():
    config = parse_relay_config("[GENERAL]\nDEFAULT_GROUP_ID = 999@g.us\n")

    assert config.timezone == "UTC"
    assert config.min_severity == 4
    assert config.contract_groups == {}
    assert config.allowed_hosts == []

    timings = config.to_timings()
    assert timings.confirmation_window == timedelta(minutes=9)
    assert timings.min_resolution_duration == timedelta(minutes=9)
    assert timings.eviction_max_age == timedelta(hours=48)

    schedule = config.to_schedule()
    assert schedule.poll_interval == timedelta(minutes=1)
    assert schedule.eviction_interval == timedelta(hours=6)
    assert schedule.lookback_hours == 2


@pytest.mark.parametrize("text", [
    "",
    "[CONTRACT_GROUPS]\nACME = 111@g.us\n",
    "[GENERAL]\nTIMEZONE = UTC\n",
    "[GENERAL]\nDEFAULT_GROUP_ID =   \n",
    "[GENERAL]\nDEFAULT_GROUP_ID = 999@g.us\nTIMEZONE = Mars/Olympus\n",
    "[GENERAL]\nDEFAULT_GROUP_ID = 999@g.us\nMIN_SEVERITY = 9\n",
    "[GENERAL]\nDEFAULT_GROUP_ID = 999@g.us\nMIN_SEVERITY = high\n",
    "not an ini file",
])
def test_invalid_config_raises(text):
    with pytest.raises(ConfigError):
        parse_relay_config(text)


def test_load_from_file(tmp_path):
    path = tmp_path / "config.cfg"
    path.write_text(SAMPLE, encoding="utf-8")

    assert load_relay_config(path).default_group_id == "999@g.us"


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        load_relay_config(tmp_path / "missing.cfg")
