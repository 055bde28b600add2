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
Base probe interface for protocol reachability checks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class Transport(str, Enum):
    """Socket kind a probe runs over."""

    STREAM = "stream"
    DATAGRAM = "datagram"


class BaseProbe(ABC):
    """Abstract base class for all protocol probes.

    A probe performs one attempt against one address. It holds no state
    between calls and may be shared by every worker in a pool.
    """

    def __init__(self, name: str):
        """
        Initialize probe.

        Args:
            name: Name of the probe
        """
        self.name = name

    @abstractmethod
    def probe(self, address: str, timeout: float) -> dict[str, Any]:
        """
        Run a single attempt against *address*.

        Args:
            address: ``host[:port]`` target, semantics depend on the protocol
            timeout: Deadline for the whole attempt, in seconds

        Returns:
            Diagnostic details for a passing attempt (may be empty)

        Raises:
            ProbeError: If the attempt fails
        """
        pass

    def get_name(self) -> str:
        """Get the probe name."""
        return self.name
