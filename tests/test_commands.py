# tests/test_commands.py
import pytest

from alert_relay.application.services.commands import (
    GENERIC_ERROR_REPLY,
    OperatorCommandHandler,
)
from alert_relay.domain.lifecycle import LifecycleStore, PendingEntry
from alert_relay.errors import EventSourceError
from helpers import (
    ACME_GROUP,
    T0,
    FakeNotifier,
    FakeSource,
    make_policy,
    make_record,
    make_schedule,
    make_timings,
)


# --- 픽스처 ----------------------------------------------------------------

@pytest.fixture
def store():
    return LifecycleStore(make_timings())


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def handler(source, store, notifier):
    return OperatorCommandHandler(
        source,
        store,
        make_policy(),
        notifier,
        make_schedule(),
        uptime=lambda: 2 * 3600 + 5 * 60,
        timezone="UTC",
    )


# --- !status ---------------------------------------------------------------

@pytest.mark.anyio
async def test_status_reports_counts_and_uptime(handler, store):
    store.pending.put("1", PendingEntry("1", T0))
    store.pending.put("2", PendingEntry("2", T0))

    reply = await handler.handle("!status")

    assert reply.startswith("*System Status*")
    assert "*Pending events:* 2" in reply
    assert "*Notified events:* 0" in reply
    assert "*Monitoring severities:* 4+" in reply
    assert "*Uptime:* 2h 5m" in reply


@pytest.mark.anyio
async def test_status_does_not_touch_source_or_state(handler, source, store):
    store.pending.put("1", PendingEntry("1", T0))

    await handler.handle("!status")

    assert source.calls == []
    assert len(store.pending) == 1


# --- !zabbix ---------------------------------------------------------------

@pytest.mark.anyio
async def test_zabbix_lists_high_severity_events(handler, source, store):
    source.records = [make_record(eventid="1", host="ACME-SRV-01", severity=5)]

    reply = await handler.handle("!zabbix")

    assert source.calls == [{"lookback_hours": 2, "severities": [4, 5]}]
    assert "*Host:* ACME-SRV-01" in reply
    assert "*Severity:* Critical" in reply
    # 조회만 하고 lifecycle 상태는 바꾸지 않음
    assert len(store.pending) == 0


@pytest.mark.anyio
@pytest.mark.parametrize("text", ["!zabbix all", "!zabbix todos", "  !ZABBIX   All "])
async def test_zabbix_all_queries_every_severity(handler, source, text):
    source.records = [make_record(eventid="1", severity=2)]

    reply = await handler.handle(text)

    assert source.calls == [{"lookback_hours": 24, "severities": None}]
    assert "*Severity:* Warning" in reply


@pytest.mark.anyio
async def test_zabbix_empty_result(handler):
    reply = await handler.handle("!zabbix")

    assert "no unacknowledged high-severity events" in reply


@pytest.mark.anyio
async def test_source_error_returns_generic_reply(store, notifier, caplog):
    handler = OperatorCommandHandler(
        FakeSource(error=EventSourceError("Zabbix API error: 500 - secret detail")),
        store,
        make_policy(),
        notifier,
        make_schedule(),
        uptime=lambda: 0,
    )

    reply = await handler.handle("!zabbix")

    assert reply == GENERIC_ERROR_REPLY
    assert "secret detail" not in reply
    assert "Failed to process command" in caplog.text


@pytest.mark.anyio
@pytest.mark.parametrize("text", ["hello", "!zabbixx", "", "zabbix"])
async def test_non_command_returns_none(handler, notifier, text):
    assert await handler.handle(text, reply_to=ACME_GROUP) is None
    assert notifier.sent == []


# --- reply_to --------------------------------------------------------------

@pytest.mark.anyio
async def test_reply_sent_to_requester(handler, notifier):
    reply = await handler.handle("!status", reply_to=ACME_GROUP)

    assert notifier.sent == [(ACME_GROUP, reply)]


@pytest.mark.anyio
async def test_reply_delivery_failure_is_logged(source, store, caplog):
    notifier = FakeNotifier(fail_for=[ACME_GROUP])
    handler = OperatorCommandHandler(
        source, store, make_policy(), notifier, make_schedule(), uptime=lambda: 0,
    )

    reply = await handler.handle("!status", reply_to=ACME_GROUP)

    assert reply.startswith("*System Status*")
    assert "Failed to send command reply" in caplog.text
