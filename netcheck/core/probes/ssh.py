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
SSH transport reachability probe.

The probe completes key exchange without checking the host key and without
offering credentials. Reaching the authentication step counts as success:
the client records the moment authentication begins, so a later
"permission denied" is recognised from connection state rather than from
the wording of an error message.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import asyncssh

from ..exceptions import HandshakeError
from ..models import split_address
from .base import BaseProbe

logger = logging.getLogger(__name__)

DEFAULT_SSH_PORT = 22


class _ReachabilityClient(asyncssh.SSHClient):
    """Client callbacks that only track how far the connection got."""

    def __init__(self):
        self.handshake_complete = False

    def begin_auth(self, username: str) -> bool:
        # key exchange is done once authentication starts
        self.handshake_complete = True
        return True


class SSHProbe(BaseProbe):
    """Tests SSH transport reachability, not credential validity."""

    def __init__(self):
        super().__init__("ssh")

    def probe(self, address: str, timeout: float) -> dict[str, Any]:
        try:
            host, port = split_address(address, default_port=DEFAULT_SSH_PORT)
        except ValueError as e:
            raise HandshakeError(f"error opening SSH session to {address}: {e}")

        client = _ReachabilityClient()
        try:
            authenticated = asyncio.run(self._connect(host, port, timeout, client))
        except (OSError, asyncio.TimeoutError, asyncssh.Error) as e:
            if client.handshake_complete:
                logger.debug("SSH handshake with %s completed, authentication refused: %s", address, e)
                logger.info("successfully tested connection to %s on protocol ssh", address)
                return {"authenticated": False}
            logger.debug("error opening SSH session to %s: %s (%s)", address, e, type(e).__name__)
            raise HandshakeError(f"error opening SSH session to {address}: {e}") from e

        logger.info("successfully tested connection to %s on protocol ssh", address)
        return {"authenticated": authenticated}

    @staticmethod
    async def _connect(host: str, port: int, timeout: float, client: _ReachabilityClient) -> bool:
        connection = await asyncio.wait_for(
            asyncssh.connect(
                host,
                port,
                known_hosts=None,
                client_factory=lambda: client,
                client_keys=None,
                agent_path=None,
                password=None,
                preferred_auth="password",
                connect_timeout=timeout,
                login_timeout=timeout,
            ),
            timeout=timeout,
        )
        # the server accepted "none" authentication
        connection.close()
        await connection.wait_closed()
        return True
