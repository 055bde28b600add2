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
ICMP echo probe.

Echo requests need a raw socket, which usually means root or the
CAP_NET_RAW capability (``setcap cap_net_raw=+ep``). The probe asks for
privileged mode first and falls back to unprivileged datagram ICMP sockets
where the platform offers them.
"""

from __future__ import annotations

import logging
from typing import Any

import icmplib

from ..exceptions import EchoError
from .base import BaseProbe

logger = logging.getLogger(__name__)


class ICMPProbe(BaseProbe):
    """Sends a fixed number of echo requests and reports the statistics.

    Packet loss is not a failure: only an error from the underlying
    send/receive path fails the probe.
    """

    def __init__(self, count: int = 10, interval: float = 0.1, size: int = 64):
        """
        Initialize ICMP probe.

        Args:
            count: Echo requests per attempt
            interval: Seconds between requests
            size: Payload size in bytes
        """
        super().__init__("icmp")
        self.count = count
        self.interval = interval
        self.size = size

    def probe(self, address: str, timeout: float) -> dict[str, Any]:
        # each reply wait gets a slice of the check timeout
        reply_timeout = max(timeout / self.count, 0.001)

        try:
            host = self._ping(address, reply_timeout, privileged=True)
        except icmplib.SocketPermissionError:
            logger.debug("privileged ICMP socket denied for %s, trying unprivileged mode", address)
            try:
                host = self._ping(address, reply_timeout, privileged=False)
            except icmplib.ICMPLibError as e:
                raise EchoError(
                    f"error running ping against {address}: {e} "
                    "(raw sockets need root or cap_net_raw; unprivileged ICMP may be disabled)"
                ) from e
        except icmplib.ICMPLibError as e:
            logger.debug("error running ping against %s: %s", address, e)
            raise EchoError(f"error running ping against {address}: {e}") from e
        except OSError as e:
            raise EchoError(f"error running ping against {address}: {e}") from e

        stats = {
            "address": host.address,
            "transmitted": host.packets_sent,
            "received": host.packets_received,
            "loss_percent": round(host.packet_loss * 100, 2),
            "rtt_min_ms": host.min_rtt,
            "rtt_avg_ms": host.avg_rtt,
            "rtt_max_ms": host.max_rtt,
            "jitter_ms": host.jitter,
        }
        logger.debug("ping statistics for %s: %s", address, stats)
        logger.info("successfully tested connection to %s on protocol icmp", address)
        return stats

    def _ping(self, address: str, reply_timeout: float, privileged: bool) -> icmplib.Host:
        return icmplib.ping(
            address,
            count=self.count,
            interval=self.interval,
            timeout=reply_timeout,
            privileged=privileged,
            payload_size=self.size,
        )
