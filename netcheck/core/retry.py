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
Fixed-interval retry loop around a single probe.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .exceptions import CheckCancelledError, ProbeError

logger = logging.getLogger(__name__)


@dataclass
class Attempts:
    """What a retry loop ended with."""

    count: int = 0
    details: dict[str, Any] = field(default_factory=dict)
    error: ProbeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def retry(
    attempt: Callable[[], dict[str, Any] | None],
    retries: int,
    wait: float,
    *,
    sleep: Callable[[float], Any] = time.sleep,
    cancelled: Callable[[], bool] | None = None,
    label: str = "check",
) -> Attempts:
    """
    Call *attempt* until it succeeds or *retries* attempts have failed.

    The wait between attempts is constant and there is no wait after the
    last attempt. Only :class:`ProbeError` is retried; anything else
    propagates to the caller.

    Args:
        attempt: Zero-argument callable running one probe attempt
        retries: Maximum number of attempts (values below 1 mean 1)
        wait: Seconds to sleep between failed attempts
        sleep: Sleep function, replaceable for cancellation or tests
        cancelled: Polled before each attempt; True stops the loop
        label: Name used in log messages

    Returns:
        Attempts holding either the success details or the last error
    """
    retries = max(1, retries)
    outcome = Attempts()

    for number in range(1, retries + 1):
        if cancelled is not None and cancelled():
            logger.debug("%s cancelled before attempt %d", label, number)
            outcome.error = CheckCancelledError(f"{label} cancelled after {outcome.count} attempt(s)")
            return outcome

        outcome.count = number
        try:
            details = attempt()
        except ProbeError as e:
            outcome.error = e
            logger.warning("%s failed (attempt %d/%d): %s", label, number, retries, e)
            if number < retries:
                sleep(wait)
            continue

        logger.debug("%s successful on attempt %d", label, number)
        outcome.error = None
        outcome.details = details or {}
        return outcome

    return outcome
