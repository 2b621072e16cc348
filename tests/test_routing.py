# tests/test_routing.py
import asyncio

import pytest

from alert_relay.adapters.messagecard import AlertCard
from alert_relay.application.services.routing import RoutingEngine
from alert_relay.domain.lifecycle import NotifiedEntry
from helpers import ACME_GROUP, DEFAULT_GROUP, T0, FakeNotifier, make_policy


def make_entry(event_id: str, host: str, contract: str) -> NotifiedEntry:
    return NotifiedEntry(
        event_id=event_id,
        host_name=host,
        description="desc",
        contract=contract,
        severity=5,
        name="name",
        opdata="",
        event_clock=int(T0),
        notified_at=T0,
    )


def render(group) -> AlertCard:
    return AlertCard(title=f"{group.contract}:{len(group.events)}")


# --- 픽스처 ----------------------------------------------------------------

@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def engine(notifier):
    return RoutingEngine(make_policy(), notifier, send_timeout=0.5)


# --- route 테스트 ----------------------------------------------------------

def test_routes_to_contract_destination(engine):
    plan = engine.route([make_entry("1", "ACME-SRV-01", "ACME")])

    assert list(plan) == [ACME_GROUP]
    group = plan[ACME_GROUP][0]
    assert group.contract == "ACME"
    assert group.fallback is False


def test_unmapped_contract_goes_to_default_group(engine):
    """목적지가 없는 계약은 기본 그룹으로, 계약 이름은 유지"""
    plan = engine.route([make_entry("2", "BETA-WEB-01", "BETA")])

    assert list(plan) == [DEFAULT_GROUP]
    group = plan[DEFAULT_GROUP][0]
    assert group.contract == "BETA"
    assert group.fallback is True


def test_not_allowed_host_goes_to_default_group_even_with_destination(engine):
    """허용 목록에 없는 host 는 계약 목적지가 있어도 기본 그룹으로"""
    plan = engine.route([make_entry("3", "ACME-WEB-02", "ACME")])

    assert list(plan) == [DEFAULT_GROUP]
    assert plan[DEFAULT_GROUP][0].contract == "ACME"


def test_allow_policy_is_per_event(engine):
    """같은 계약이라도 허용된 host 와 아닌 host 는 다른 그룹"""
    plan = engine.route([
        make_entry("1", "ACME-SRV-01", "ACME"),
        make_entry("3", "ACME-WEB-02", "ACME"),
    ])

    assert [e.event_id for e in plan[ACME_GROUP][0].events] == ["1"]
    assert [e.event_id for e in plan[DEFAULT_GROUP][0].events] == ["3"]


def test_default_group_keeps_contracts_separate(engine):
    plan = engine.route([
        make_entry("2", "BETA-WEB-01", "BETA"),
        make_entry("4", "GAMMA-APP-01", "GAMMA"),
        make_entry("5", "BETA-WEB-02", "BETA"),
    ])

    groups = plan[DEFAULT_GROUP]
    assert [(g.contract, len(g.events)) for g in groups] == [("BETA", 2), ("GAMMA", 1)]


def test_routing_covers_every_event_exactly_once(engine):
    """모든 이벤트가 정확히 한 그룹에 들어감"""
    batch = [
        make_entry("1", "ACME-SRV-01", "ACME"),
        make_entry("2", "BETA-WEB-01", "BETA"),
        make_entry("3", "ACME-WEB-02", "ACME"),
        make_entry("4", "standalone", "UNKNOWN"),
        make_entry("5", "ACME-DB-09", "ACME"),
    ]

    plan = engine.route(batch)

    routed = [event.event_id for groups in plan.values() for group in groups for event in group.events]
    assert sorted(routed) == ["1", "2", "3", "4", "5"]


def test_route_empty_batch(engine):
    assert engine.route([]) == {}


# --- deliver 테스트 --------------------------------------------------------

@pytest.mark.anyio
async def test_deliver_sends_one_message_per_group(engine, notifier):
    plan = engine.route([
        make_entry("1", "ACME-SRV-01", "ACME"),
        make_entry("2", "BETA-WEB-01", "BETA"),
    ])

    report = await engine.deliver(plan, render)

    assert report.sent == 2
    assert report.failed == 0
    assert notifier.sent == [(ACME_GROUP, "*ACME:1*"), (DEFAULT_GROUP, "*BETA:1*")]


@pytest.mark.anyio
async def test_delivery_failure_does_not_stop_other_groups(caplog):
    """한 그룹 전송 실패가 다른 그룹 전송을 막지 않음"""
    notifier = FakeNotifier(fail_for=[ACME_GROUP])
    engine = RoutingEngine(make_policy(), notifier)
    plan = engine.route([
        make_entry("1", "ACME-SRV-01", "ACME"),
        make_entry("2", "BETA-WEB-01", "BETA"),
    ])

    report = await engine.deliver(plan, render)

    assert report.sent == 1
    assert report.failed == 1
    assert notifier.texts_for(DEFAULT_GROUP) == ["*BETA:1*"]
    assert "Failed to deliver" in caplog.text


@pytest.mark.anyio
async def test_delivery_timeout_counts_as_failure(notifier):
    class SlowNotifier(FakeNotifier):
        async def send_message(self, destination, text):
            if destination == ACME_GROUP:
                await asyncio.sleep(1)
            await super().send_message(destination, text)

    slow = SlowNotifier()
    engine = RoutingEngine(make_policy(), slow, send_timeout=0.01)
    plan = engine.route([
        make_entry("1", "ACME-SRV-01", "ACME"),
        make_entry("2", "BETA-WEB-01", "BETA"),
    ])

    report = await engine.deliver(plan, render)

    assert report.failed == 1
    assert report.sent == 1
    assert slow.texts_for(DEFAULT_GROUP) == ["*BETA:1*"]


@pytest.mark.anyio
async def test_render_error_is_isolated(engine, notifier):
    def broken_render(group):
        if group.contract == "ACME":
            raise ValueError("boom")
        return render(group)

    plan = engine.route([
        make_entry("1", "ACME-SRV-01", "ACME"),
        make_entry("2", "BETA-WEB-01", "BETA"),
    ])

    report = await engine.deliver(plan, broken_render)

    assert report.failed == 1
    assert notifier.texts_for(DEFAULT_GROUP) == ["*BETA:1*"]
