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
Plain TCP and UDP connection probes.
"""

from __future__ import annotations

import logging
import socket
from typing import Any

from ..exceptions import DialError
from ..models import split_address
from .base import BaseProbe, Transport

logger = logging.getLogger(__name__)


def open_datagram(host: str, port: int, timeout: float) -> socket.socket:
    """Create a UDP socket bound to its peer, trying each resolved address."""
    last_error: OSError | None = None
    for family, socktype, proto, _, sockaddr in socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM):
        sock = socket.socket(family, socktype, proto)
        try:
            sock.settimeout(timeout)
            sock.connect(sockaddr)
            return sock
        except OSError as e:
            sock.close()
            last_error = e
    raise last_error or OSError(f"no usable address for {host}")


class SocketProbe(BaseProbe):
    """Opens a connection and closes it straight away; no data is exchanged.

    For UDP, "connecting" only resolves the address and binds the socket to
    its peer, so it fails on resolution or routing errors but not on a
    silent remote.
    """

    def __init__(self, transport: Transport = Transport.STREAM):
        super().__init__("tcp" if transport is Transport.STREAM else "udp")
        self.transport = transport

    def probe(self, address: str, timeout: float) -> dict[str, Any]:
        try:
            host, port = split_address(address)
        except ValueError as e:
            raise DialError(f"error dialling {address} on protocol {self.name}: {e}")
        if port is None:
            raise DialError(f"error dialling {address} on protocol {self.name}: missing port in address")

        try:
            if self.transport is Transport.STREAM:
                sock = socket.create_connection((host, port), timeout=timeout)
            else:
                sock = open_datagram(host, port, timeout)
        except OSError as e:
            logger.debug("error dialling %s on protocol %s: %s", address, self.name, e)
            raise DialError(f"error dialling {address} on protocol {self.name}: {e}") from e

        with sock:
            peer = sock.getpeername()
        logger.info("successfully tested connection to %s on protocol %s", address, self.name)
        return {"peer": f"{peer[0]}:{peer[1]}"}
