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

"""Netcheck exceptions.

This module defines custom exceptions for Netcheck operations.
All exceptions inherit from NetcheckError for easy catching.

Probe failures are raised as ProbeError subclasses. Each subclass carries a
stable ``cause`` tag that survives into the check result, so callers can tell
a refused connection from a certificate problem without parsing messages.

Example:
    >>> from netcheck.core.loader import load_bundle
    >>> from netcheck.core.exceptions import BundleLoadError, BundleValidationError
    >>>
    >>> try:
    ...     bundle = load_bundle("checks.yaml")
    ... except BundleValidationError as e:
    ...     print(f"Invalid bundle: {e}")
    ... except BundleLoadError as e:
    ...     print(f"Failed to load bundle: {e}")
"""

from __future__ import annotations

from datetime import datetime


class NetcheckError(Exception):
    """Base exception for all Netcheck errors."""

    pass


class ConfigurationError(NetcheckError):
    """Raised when a defaults file exists but cannot be read or parsed."""

    pass


class BundleLoadError(NetcheckError):
    """Raised when unable to load a check bundle.

    This can indicate:
    - Missing or unreadable bundle file
    - HTTP errors while downloading the bundle
    - Undetectable or unsupported serialization format
    - Malformed YAML, JSON or TOML
    """

    pass


class BundleValidationError(BundleLoadError):
    """Raised when a bundle parses but holds values the engine cannot use.

    This indicates:
    - Unknown protocol or trigger event names
    - Unparseable duration text
    - Missing check address
    """

    pass


class TriggerExecutionError(NetcheckError):
    """Raised when a trigger command cannot be run to completion.

    A command that runs and exits non-zero is not an execution error; its
    exit code is recorded in the resulting action instead.
    """

    pass


class ProbeError(NetcheckError):
    """Base class for a failed probe attempt."""

    cause = "probe failed"


class DialError(ProbeError):
    """The transport could not be established within the timeout."""

    cause = "dial failed"


class HostnameMismatchError(ProbeError):
    """The peer certificate does not cover the target hostname."""

    cause = "hostname mismatch"


class CertificateExpiredError(ProbeError):
    """The peer leaf certificate is past its NotAfter timestamp."""

    cause = "certificate expired"

    def __init__(self, message: str, expiry: datetime, issuer: str):
        super().__init__(message)
        self.expiry = expiry
        self.issuer = issuer


class EchoError(ProbeError):
    """ICMP echo could not be sent or received (packet loss is not an error)."""

    cause = "echo failed"


class HandshakeError(ProbeError):
    """SSH transport failed before reaching the authentication step."""

    cause = "handshake failed"


class InternalProbeError(ProbeError):
    """A probe raised something unexpected; wrapped so the worker survives."""

    cause = "internal error"


class CheckCancelledError(ProbeError):
    """The run was cancelled before the check could finish."""

    cause = "cancelled"
