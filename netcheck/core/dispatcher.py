# Copyright 2026 Cisco Systems, Inc.
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
Concurrent check dispatcher.

A bundle's checks are pushed onto a bounded input queue, consumed by a fixed
pool of worker threads, and their results are collected from an output
queue. Results are matched back to checks by submission index, so the
returned list is in submission order whatever order the workers finish in.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from .exceptions import InternalProbeError, ProbeError
from .models import Bundle, Check, Result
from .probes import BaseProbe, build_probes
from .retry import retry
from .triggers import TriggerRunner

if TYPE_CHECKING:
    from ..config.config import Defaults

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation shared between a caller and the workers."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to *timeout* seconds; return True if cancelled meanwhile."""
        return self._event.wait(timeout)


class Dispatcher:
    """
    Runs every check of a bundle with at most ``bundle.concurrency`` in flight.

    Example:
        >>> dispatcher = Dispatcher()
        >>> results = dispatcher.run(bundle)
        >>> print(all(r.ok for r in results))
    """

    def __init__(
        self,
        probes: dict | None = None,
        defaults: Defaults | None = None,
        with_triggers: bool = False,
        trigger_runner: TriggerRunner | None = None,
    ):
        """
        Initialize dispatcher.

        Args:
            probes: Mapping from Protocol to probe. If None, the standard
                probes are built from *defaults*.
            defaults: Process-wide defaults
            with_triggers: Whether to fire check triggers after each check
            trigger_runner: Runner used for triggers. If None, one is
                created with the defaults timeout.
        """
        if defaults is None:
            from ..config.config import Defaults

            defaults = Defaults()
        self.defaults = defaults
        self.probes: dict = probes if probes is not None else build_probes(defaults)
        self.with_triggers = with_triggers
        self.trigger_runner = trigger_runner or TriggerRunner(default_timeout=defaults.timeout)

    def run(self, bundle: Bundle, token: CancellationToken | None = None) -> list[Result]:
        """
        Run every check of *bundle* and attach the results to its checks.

        Args:
            bundle: Bundle to run; unset bundle-level values are filled from
                the dispatcher defaults
            token: Optional cancellation token

        Returns:
            One result per check, in submission order
        """
        token = token or CancellationToken()
        bundle.resolve_defaults(self.defaults)
        checks = bundle.defaulted_checks()
        total = len(checks)
        if total == 0:
            return []

        workers = bundle.concurrency
        # one slot per check plus one stop marker per worker, so the producer never blocks
        inputs: queue.Queue = queue.Queue(maxsize=total + workers)
        outputs: queue.Queue = queue.Queue()

        logger.info("running %d check(s) from bundle %r with concurrency %d", total, bundle.id, workers)

        for index, check in enumerate(checks):
            inputs.put((index, check))
        for _ in range(workers):
            inputs.put(None)

        results: list[Result | None] = [None] * total
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="netcheck-worker") as executor:
            for _ in range(workers):
                executor.submit(self._worker, inputs, outputs, token)
            for _ in range(total):
                result = outputs.get()
                results[result.index] = result

        for check, result in zip(bundle.checks, results):
            check.result = result

        failed = sum(1 for r in results if r is not None and r.is_error)
        logger.info("bundle %r finished: %d succeeded, %d failed", bundle.id, total - failed, failed)
        return results  # type: ignore[return-value]

    def _worker(self, inputs: queue.Queue, outputs: queue.Queue, token: CancellationToken) -> None:
        while True:
            item = inputs.get()
            if item is None:
                return
            index, check = item
            try:
                result = self.execute(check, token)
            except Exception as e:
                logger.error("worker failed on %s: %s", check.address, e, exc_info=True)
                result = Result(
                    protocol=check.protocol,
                    endpoint=check.address,
                    name=check.name,
                    failure=InternalProbeError(f"internal error while running check of {check.address}: {e}"),
                )
            result.index = index
            outputs.put(result)

    def execute(self, check: Check, token: CancellationToken | None = None) -> Result:
        """
        Run one check with retries and, if enabled, its triggers.

        Never raises: a probe that fails in an unexpected way is reported
        as an internal error on the result.
        """
        token = token or CancellationToken()
        label = f"{check.protocol.value} check of {check.address}"
        probe: BaseProbe | None = self.probes.get(check.protocol)
        result = Result(protocol=check.protocol, endpoint=check.address, name=check.name)

        if probe is None:
            result.failure = InternalProbeError(f"no probe registered for protocol {check.protocol.value}")
        else:
            timeout = check.timeout.seconds

            def attempt():
                return probe.probe(check.address, timeout)

            try:
                outcome = retry(
                    attempt,
                    check.retries,
                    check.wait.seconds,
                    sleep=token.wait,
                    cancelled=lambda: token.cancelled,
                    label=label,
                )
            except ProbeError as e:
                result.failure = e
            except Exception as e:
                logger.error("unexpected error during %s: %s", label, e, exc_info=True)
                result.failure = InternalProbeError(f"internal error during {label}: {e}")
            else:
                result.failure = outcome.error
                result.details = outcome.details
                result.attempts = outcome.count

        if result.is_error:
            logger.info("%s failed: %s", label, result.failure)

        if self.with_triggers and check.triggers and not token.cancelled:
            result.actions = self.trigger_runner.fire(check.triggers, result.ok)
        return result


def run_bundle(
    bundle: Bundle,
    defaults: Defaults | None = None,
    with_triggers: bool = False,
    token: CancellationToken | None = None,
) -> list[Result]:
    """
    Convenience function to run one bundle with the standard probes.

    Args:
        bundle: Bundle to run
        defaults: Process-wide defaults
        with_triggers: Whether to fire check triggers
        token: Optional cancellation token

    Returns:
        One result per check, in submission order
    """
    return Dispatcher(defaults=defaults, with_triggers=with_triggers).run(bundle, token)
