# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the concurrent check dispatcher.
"""

import threading
import time

import pytest

from netcheck.core.dispatcher import CancellationToken, Dispatcher, run_bundle
from netcheck.core.exceptions import DialError
from netcheck.core.models import Bundle, Check, Duration, Event, Protocol, Trigger
from netcheck.core.probes.base import BaseProbe
from netcheck.core.triggers import TriggerRunner


class RecordingProbe(BaseProbe):
    """Succeeds for addresses starting with ``up``, fails otherwise."""

    def __init__(self, delay: float = 0.0):
        super().__init__("fake")
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def probe(self, address, timeout):
        with self._lock:
            self.calls.append(address)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if not address.startswith("up"):
                raise DialError(f"error dialling {address}: refused")
            return {"peer": address}
        finally:
            with self._lock:
                self.in_flight -= 1


class ExplodingProbe(BaseProbe):
    def __init__(self):
        super().__init__("exploding")

    def probe(self, address, timeout):
        raise RuntimeError("unexpected state")


def make_bundle(addresses, concurrency=2, retries=1, wait="1ms", triggers=None) -> Bundle:
    checks = [Check(address=a, protocol=Protocol.TCP, triggers=list(triggers or [])) for a in addresses]
    return Bundle(
        id="test",
        timeout=Duration.parse("1s"),
        retries=retries,
        wait=Duration.parse(wait),
        concurrency=concurrency,
        checks=checks,
    )


class TestDispatcherCompleteness:
    """Test one result per check for every pool size."""

    @pytest.mark.parametrize("concurrency", range(1, 13))
    def test_every_check_gets_exactly_one_result(self, fast_defaults, concurrency):
        addresses = [f"up-{i}" if i % 2 else f"down-{i}" for i in range(7)]
        probe = RecordingProbe()
        dispatcher = Dispatcher(probes={Protocol.TCP: probe}, defaults=fast_defaults)

        bundle = make_bundle(addresses, concurrency=concurrency)
        results = dispatcher.run(bundle)

        assert len(results) == len(addresses)
        assert [r.endpoint for r in results] == addresses
        assert sorted(r.index for r in results) == list(range(len(addresses)))
        assert sorted(probe.calls) == sorted(addresses)
        for address, result in zip(addresses, results):
            assert result.ok == address.startswith("up")

    def test_results_are_written_back_to_checks(self, fast_defaults):
        bundle = make_bundle(["up-a", "down-b"])
        Dispatcher(probes={Protocol.TCP: RecordingProbe()}, defaults=fast_defaults).run(bundle)

        assert bundle.checks[0].result.ok
        assert bundle.checks[1].result.cause == "dial failed"

    def test_empty_bundle(self, fast_defaults):
        bundle = make_bundle([])
        assert Dispatcher(probes={}, defaults=fast_defaults).run(bundle) == []

    def test_concurrency_bounds_in_flight_probes(self, fast_defaults):
        probe = RecordingProbe(delay=0.05)
        bundle = make_bundle([f"up-{i}" for i in range(8)], concurrency=3)
        Dispatcher(probes={Protocol.TCP: probe}, defaults=fast_defaults).run(bundle)

        assert 1 <= probe.max_in_flight <= 3


class TestDispatcherFailures:
    """Test failure isolation."""

    def test_retries_report_last_error(self, fast_defaults):
        probe = RecordingProbe()
        bundle = make_bundle(["down-x"], retries=2)
        (result,) = Dispatcher(probes={Protocol.TCP: probe}, defaults=fast_defaults).run(bundle)

        assert probe.calls == ["down-x", "down-x"]
        assert result.attempts == 2
        assert "refused" in str(result)

    def test_unexpected_probe_exception_becomes_internal_error(self, fast_defaults):
        bundle = make_bundle(["a", "b", "c"], concurrency=1)
        results = Dispatcher(probes={Protocol.TCP: ExplodingProbe()}, defaults=fast_defaults).run(bundle)

        assert len(results) == 3
        assert all(r.cause == "internal error" for r in results)

    def test_missing_probe_is_internal_error(self, fast_defaults):
        bundle = make_bundle(["up"])
        (result,) = Dispatcher(probes={}, defaults=fast_defaults).run(bundle)
        assert result.cause == "internal error"


class TestDispatcherNetwork:
    """Test the dispatcher against real local sockets."""

    def test_open_and_closed_ports(self, fast_defaults, tcp_listener, closed_port):
        bundle = Bundle.from_dict(
            {
                "id": "local",
                "concurrency": 2,
                "checks": [
                    {"address": closed_port, "protocol": "tcp", "retries": 1},
                    {"address": tcp_listener, "protocol": "tcp", "retries": 1},
                ],
            },
            fast_defaults,
        )
        results = run_bundle(bundle, defaults=fast_defaults)

        assert len(results) == 2
        assert results[0].is_error
        assert results[0].cause == "dial failed"
        assert results[1].ok

    def test_running_twice_is_idempotent(self, fast_defaults, tcp_listener):
        bundle = Bundle.from_dict({"id": "again", "checks": [{"address": tcp_listener}]}, fast_defaults)
        dispatcher = Dispatcher(defaults=fast_defaults)

        (first,) = dispatcher.run(bundle)
        (second,) = dispatcher.run(bundle)

        assert first.ok and second.ok
        assert (first.protocol, first.endpoint) == (second.protocol, second.endpoint)

    def test_hand_built_bundle_gets_dispatcher_defaults(self, fast_defaults, tcp_listener, closed_port):
        bundle = Bundle(
            id="manual",
            checks=[
                Check(address=closed_port, retries=1),
                Check(address=tcp_listener, retries=1),
            ],
        )
        results = Dispatcher(defaults=fast_defaults).run(bundle)

        assert results[0].cause == "dial failed"
        assert results[1].ok
        assert bundle.concurrency == fast_defaults.concurrency
        assert bundle.timeout == fast_defaults.timeout
        assert bundle.retries == fast_defaults.retries


class TestDispatcherCancellation:
    """Test cooperative cancellation."""

    def test_cancelled_token_yields_cancelled_results(self, fast_defaults):
        token = CancellationToken()
        token.cancel()
        probe = RecordingProbe()
        bundle = make_bundle(["up-a", "up-b", "up-c"])

        results = Dispatcher(probes={Protocol.TCP: probe}, defaults=fast_defaults).run(bundle, token)

        assert len(results) == 3
        assert all(r.cause == "cancelled" for r in results)
        assert probe.calls == []

    def test_cancel_interrupts_retry_wait(self, fast_defaults):
        token = CancellationToken()
        probe = RecordingProbe()
        bundle = make_bundle(["down-a"], retries=5, wait="30s")

        timer = threading.Timer(0.1, token.cancel)
        timer.start()
        started = time.monotonic()
        (result,) = Dispatcher(probes={Protocol.TCP: probe}, defaults=fast_defaults).run(bundle, token)
        timer.cancel()

        assert time.monotonic() - started < 10
        assert result.cause == "cancelled"
        assert len(probe.calls) == 1

    def test_token_wait_returns_early(self):
        token = CancellationToken()
        token.cancel()
        assert token.cancelled
        assert token.wait(5) is True


class TestDispatcherTriggers:
    """Test trigger firing after checks."""

    def test_only_matching_triggers_fire(self, fast_defaults):
        ran = []

        class FakeRunner(TriggerRunner):
            def run(self, trigger):
                ran.append(trigger.command)
                return super().run(trigger)

        triggers = [
            Trigger(on=Event.SUCCESS, command="true"),
            Trigger(on=Event.FAILURE, command="echo", args=["down"]),
        ]
        bundle = make_bundle(["down-a"], triggers=triggers)
        dispatcher = Dispatcher(
            probes={Protocol.TCP: RecordingProbe()},
            defaults=fast_defaults,
            with_triggers=True,
            trigger_runner=FakeRunner(),
        )
        (result,) = dispatcher.run(bundle)

        assert ran == ["echo"]
        assert len(result.actions) == 1
        assert result.actions[0].command == ["echo", "down"]
        assert result.actions[0].stdout == "down\n"

    def test_triggers_disabled_by_default(self, fast_defaults):
        bundle = make_bundle(["down-a"], triggers=[Trigger(on=Event.ALWAYS, command="echo")])
        (result,) = Dispatcher(probes={Protocol.TCP: RecordingProbe()}, defaults=fast_defaults).run(bundle)
        assert result.actions == []

    def test_undecodable_trigger_output_keeps_check_result(self, fast_defaults):
        triggers = [
            Trigger(on=Event.ALWAYS, command="sh", args=["-c", "printf '\\377'"]),
            Trigger(on=Event.ALWAYS, command="echo", args=["after"]),
        ]
        bundle = make_bundle(["up-a"], triggers=triggers)
        dispatcher = Dispatcher(probes={Protocol.TCP: RecordingProbe()}, defaults=fast_defaults, with_triggers=True)
        (result,) = dispatcher.run(bundle)

        assert result.ok
        assert [a.stdout for a in result.actions] == ["\ufffd", "after\n"]
