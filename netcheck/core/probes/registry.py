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
Protocol to probe dispatch.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..models import Protocol
from .base import BaseProbe, Transport
from .icmp import ICMPProbe
from .network import SocketProbe
from .ssh import SSHProbe
from .tls import TLSProbe

if TYPE_CHECKING:
    from ...config.config import Defaults


def build_probes(defaults: Defaults | None = None) -> dict[Protocol, BaseProbe]:
    """
    Build one probe per supported protocol.

    Args:
        defaults: Process-wide defaults supplying the ICMP echo parameters.
            If None, hardcoded defaults are used.

    Returns:
        Mapping from protocol to the probe that handles it
    """
    if defaults is None:
        from ...config.config import Defaults

        defaults = Defaults()

    return {
        Protocol.TCP: SocketProbe(Transport.STREAM),
        Protocol.UDP: SocketProbe(Transport.DATAGRAM),
        Protocol.ICMP: ICMPProbe(
            count=defaults.ping_count,
            interval=defaults.ping_interval.seconds,
            size=defaults.ping_size,
        ),
        Protocol.TLS: TLSProbe(Transport.STREAM),
        Protocol.DTLS: TLSProbe(Transport.DATAGRAM),
        Protocol.SSH: SSHProbe(),
    }
