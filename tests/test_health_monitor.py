"""HealthMonitor: exact-match liveness, failure coarsening, idempotent
transitions, scheduling and overlap behaviour."""

import asyncio

import pytest

from core.domain.models import Endpoint, HealthState
from core.services.command_invoker import CommandInvoker
from core.services.health_monitor import HealthMonitor, interpret_probe
from mock_host import Gated, ScriptedTransport, json_route, refuse, text_route


async def wait_for_state(monitor: HealthMonitor, state: HealthState, timeout: float = 1.0) -> None:
    reached = asyncio.Event()
    if monitor.state is state:
        return
    unsubscribe = monitor.subscribe(lambda s: reached.set() if s is state else None)
    try:
        await asyncio.wait_for(reached.wait(), timeout)
    finally:
        unsubscribe()


class TestTransitions:
    def test_initial_state_is_unknown(self):
        monitor = HealthMonitor(ScriptedTransport("true"))
        assert monitor.state is HealthState.UNKNOWN
        assert not monitor.running

    @pytest.mark.parametrize(
        "data,expected",
        [
            ("true", HealthState.UP),
            ("false", HealthState.DOWN),
            ("TRUE", HealthState.DOWN),
            ("True", HealthState.DOWN),
            ("1", HealthState.DOWN),
            ("", HealthState.DOWN),
            (" true", HealthState.DOWN),
            ("true\n", HealthState.DOWN),
        ],
    )
    def test_interpret_probe_exact_match(self, data, expected):
        assert interpret_probe(data) is expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data,expected", [("true", HealthState.UP), ("TRUE", HealthState.DOWN)])
    async def test_tick_applies_probe(self, data, expected):
        transport = ScriptedTransport(data)
        monitor = HealthMonitor(transport)
        assert await monitor.tick() is expected
        assert monitor.state is expected
        assert transport.calls == [Endpoint.HEALTH_CHECK]

    @pytest.mark.asyncio
    async def test_transport_error_means_down(self, transport_error):
        monitor = HealthMonitor(ScriptedTransport(transport_error()))
        assert await monitor.tick() is HealthState.DOWN

    @pytest.mark.asyncio
    async def test_refused_and_malformed_are_indistinguishable(self, make_http_transport):
        refused, _ = make_http_transport({Endpoint.HEALTH_CHECK.value: refuse})
        malformed, _ = make_http_transport({Endpoint.HEALTH_CHECK.value: text_route("oops")})
        async with refused, malformed:
            a = HealthMonitor(refused)
            b = HealthMonitor(malformed)
            await a.tick()
            await b.tick()
        assert a.state is b.state is HealthState.DOWN

    @pytest.mark.asyncio
    async def test_repeated_state_does_not_notify(self):
        monitor = HealthMonitor(ScriptedTransport("true"))
        seen = []
        monitor.subscribe(seen.append)

        await monitor.tick()
        await monitor.tick()

        assert seen == [HealthState.UP]

    @pytest.mark.asyncio
    async def test_down_until_probe_reports_true(self, transport_error):
        monitor = HealthMonitor(
            ScriptedTransport(transport_error(), transport_error(), "false", "true")
        )
        seen = []
        monitor.subscribe(seen.append)

        states = [await monitor.tick() for _ in range(4)]

        assert states == [HealthState.DOWN, HealthState.DOWN, HealthState.DOWN, HealthState.UP]
        assert seen == [HealthState.DOWN, HealthState.UP]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_others(self):
        monitor = HealthMonitor(ScriptedTransport("true"))
        seen = []

        def broken(state):
            raise RuntimeError("render failed")

        monitor.subscribe(broken)
        monitor.subscribe(seen.append)

        assert await monitor.tick() is HealthState.UP
        assert seen == [HealthState.UP]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        monitor = HealthMonitor(ScriptedTransport("true", "false"))
        seen = []
        unsubscribe = monitor.subscribe(seen.append)
        await monitor.tick()
        unsubscribe()
        unsubscribe()
        await monitor.tick()
        assert seen == [HealthState.UP]

    @pytest.mark.asyncio
    async def test_last_completing_tick_wins(self, transport_error):
        slow_ok = asyncio.Event()
        fast_fail = asyncio.Event()
        monitor = HealthMonitor(
            ScriptedTransport(Gated(slow_ok, "true"), Gated(fast_fail, transport_error()))
        )

        first = asyncio.create_task(monitor.tick())
        second = asyncio.create_task(monitor.tick())
        await asyncio.sleep(0)

        fast_fail.set()
        assert await second is HealthState.DOWN
        assert monitor.state is HealthState.DOWN

        slow_ok.set()
        assert await first is HealthState.UP
        assert monitor.state is HealthState.UP


class TestScheduling:
    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            HealthMonitor(ScriptedTransport("true"), interval_seconds=0)

    @pytest.mark.asyncio
    async def test_first_tick_fires_immediately(self):
        transport = ScriptedTransport("true")
        monitor = HealthMonitor(transport, interval_seconds=60)
        async with monitor:
            await wait_for_state(monitor, HealthState.UP, timeout=1.0)
        assert transport.calls == [Endpoint.HEALTH_CHECK]

    @pytest.mark.asyncio
    async def test_keeps_polling_after_failures(self, transport_error):
        transport = ScriptedTransport(transport_error(), transport_error(), "true")
        monitor = HealthMonitor(transport, interval_seconds=0.01)
        async with monitor:
            await wait_for_state(monitor, HealthState.DOWN)
            await wait_for_state(monitor, HealthState.UP)
            assert monitor.running
        assert len(transport.calls) >= 3

    @pytest.mark.asyncio
    async def test_slow_probe_does_not_delay_next_tick(self):
        gate = asyncio.Event()
        transport = ScriptedTransport(Gated(gate, "true"), "false")
        monitor = HealthMonitor(transport, interval_seconds=0.01)
        async with monitor:
            await wait_for_state(monitor, HealthState.DOWN)
            gate.set()
            await wait_for_state(monitor, HealthState.UP)
        assert len(transport.calls) >= 2

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self):
        monitor = HealthMonitor(ScriptedTransport("true"), interval_seconds=60)
        monitor.start()
        timer = monitor._timer
        monitor.start()
        assert monitor._timer is timer
        await monitor.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_timer_and_inflight_ticks(self):
        never = asyncio.Event()
        transport = ScriptedTransport(Gated(never, "true"))
        monitor = HealthMonitor(transport, interval_seconds=0.01)
        monitor.start()
        await asyncio.sleep(0.05)

        await monitor.stop()

        assert not monitor.running
        assert monitor.state is HealthState.UNKNOWN
        calls = len(transport.calls)
        await asyncio.sleep(0.05)
        assert len(transport.calls) == calls

    @pytest.mark.asyncio
    async def test_healthy_host_over_http(self, make_http_transport, settings):
        transport, router = make_http_transport({Endpoint.HEALTH_CHECK.value: json_route({"data": "true"})})
        async with transport:
            async with HealthMonitor(transport, interval_seconds=settings.poll_interval_seconds) as monitor:
                await wait_for_state(monitor, HealthState.UP)
        assert router.count(Endpoint.HEALTH_CHECK) >= 1

    @pytest.mark.asyncio
    async def test_reboot_failure_does_not_affect_monitor(self, make_http_transport):
        transport, _ = make_http_transport(
            {
                Endpoint.HEALTH_CHECK.value: json_route({"data": "true"}),
                Endpoint.REBOOT_GUEST.value: json_route({"data": "x"}, status_code=500),
            }
        )
        async with transport:
            async with HealthMonitor(transport, interval_seconds=0.01) as monitor:
                await wait_for_state(monitor, HealthState.UP)
                await CommandInvoker(transport).reboot_guest()
                await asyncio.sleep(0.03)
                assert monitor.state is HealthState.UP
                assert monitor.running
