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
Data models for check bundles, checks, triggers and their results.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Any

from .exceptions import BundleValidationError, ProbeError

if TYPE_CHECKING:
    from ..config.config import Defaults

logger = logging.getLogger(__name__)

_NANOSECOND = 1
_MICROSECOND = 1_000 * _NANOSECOND
_MILLISECOND = 1_000 * _MICROSECOND
_SECOND = 1_000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE

_DURATION_UNITS = {
    "ns": _NANOSECOND,
    "us": _MICROSECOND,
    "µs": _MICROSECOND,  # micro sign
    "μs": _MICROSECOND,  # greek mu
    "ms": _MILLISECOND,
    "s": _SECOND,
    "m": _MINUTE,
    "h": _HOUR,
}

# "ms" must be tried before "m" and "s"
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def _format_fraction(value: int, unit: int) -> str:
    """Render ``value / unit`` without trailing zeros (``1500, 1000 -> "1.5"``)."""
    whole, rest = divmod(value, unit)
    if not rest:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{rest:0{digits}d}".rstrip("0")


@dataclass(frozen=True, order=True)
class Duration:
    """An elapsed-time quantity with a compact text form such as ``"20s"``.

    Text input follows the familiar ``<number><unit>`` sequence
    (``"1m30s"``, ``"100ms"``, ``"1.5h"``); bare numbers are seconds.
    """

    nanoseconds: int = 0

    @classmethod
    def parse(cls, value: Any) -> Duration:
        """
        Parse a duration from text, a number of seconds, or a timedelta.

        Args:
            value: Value read from a bundle or defaults document

        Returns:
            Parsed Duration

        Raises:
            BundleValidationError: If the value is not a recognisable duration
        """
        if isinstance(value, Duration):
            return value
        if isinstance(value, timedelta):
            return cls((value // timedelta(microseconds=1)) * _MICROSECOND)
        if isinstance(value, bool) or value is None:
            raise BundleValidationError(f"invalid duration: {value!r}")
        if isinstance(value, (int, float)):
            return cls(int(round(Decimal(str(value)) * _SECOND)))
        if not isinstance(value, str):
            raise BundleValidationError(f"invalid duration: {value!r}")

        text = value.strip()
        sign = 1
        if text[:1] in ("+", "-"):
            sign = -1 if text[0] == "-" else 1
            text = text[1:]
        if text == "0":
            return cls(0)

        total = Decimal(0)
        position = 0
        for match in _DURATION_PART.finditer(text):
            if match.start() != position:
                break
            try:
                total += Decimal(match.group(1)) * _DURATION_UNITS[match.group(2)]
            except InvalidOperation:
                raise BundleValidationError(f"invalid duration: {value!r}")
            position = match.end()

        if position == 0 or position != len(text):
            raise BundleValidationError(f"invalid duration: {value!r}")
        return cls(sign * int(total))

    @classmethod
    def from_seconds(cls, seconds: float) -> Duration:
        return cls(int(round(seconds * _SECOND)))

    @property
    def seconds(self) -> float:
        return self.nanoseconds / _SECOND

    @property
    def is_positive(self) -> bool:
        return self.nanoseconds > 0

    def or_default(self, default: Duration) -> Duration:
        """Return this duration, or *default* when this one is zero or negative."""
        return self if self.is_positive else default

    def __str__(self) -> str:
        ns = self.nanoseconds
        if ns == 0:
            return "0s"
        sign = "-" if ns < 0 else ""
        ns = abs(ns)

        if ns < _MICROSECOND:
            return f"{sign}{ns}ns"
        if ns < _MILLISECOND:
            return f"{sign}{_format_fraction(ns, _MICROSECOND)}µs"
        if ns < _SECOND:
            return f"{sign}{_format_fraction(ns, _MILLISECOND)}ms"

        hours, rest = divmod(ns, _HOUR)
        minutes, rest = divmod(rest, _MINUTE)
        seconds = _format_fraction(rest, _SECOND)
        if hours:
            return f"{sign}{hours}h{minutes}m{seconds}s"
        if minutes:
            return f"{sign}{minutes}m{seconds}s"
        return f"{sign}{seconds}s"


class Protocol(str, Enum):
    """Protocols a check can probe."""

    TCP = "tcp"
    UDP = "udp"
    ICMP = "icmp"
    TLS = "tls"
    DTLS = "dtls"  # TLS over UDP
    SSH = "ssh"

    @classmethod
    def parse(cls, value: Any) -> Protocol:
        """Parse a canonical lowercase protocol name; unknown names are an error."""
        if isinstance(value, Protocol):
            return value
        try:
            return cls(value)
        except ValueError:
            raise BundleValidationError(f"unsupported protocol: {value!r}")

    def __str__(self) -> str:
        return self.value


class Event(str, Enum):
    """Outcome events a trigger can be bound to."""

    SUCCESS = "success"
    FAILURE = "failure"
    ALWAYS = "always"

    @classmethod
    def parse(cls, value: Any) -> Event:
        if isinstance(value, Event):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise BundleValidationError(f"unsupported trigger event: {value!r}")

    def fires(self, ok: bool) -> bool:
        """Check whether a check outcome (*ok* = passed) fires this event."""
        if self is Event.ALWAYS:
            return True
        return ok if self is Event.SUCCESS else not ok

    def __str__(self) -> str:
        return self.value


def split_address(address: str, default_port: int | None = None) -> tuple[str, int | None]:
    """
    Split ``host[:port]`` into its parts.

    Bracketed IPv6 literals (``[::1]:22``) are supported; an unbracketed
    address with several colons is taken to be a bare IPv6 host.

    Args:
        address: Address as written in the check
        default_port: Port to use when the address has none

    Returns:
        Tuple of (host, port)

    Raises:
        ValueError: If the port is not a number
    """
    address = address.strip()
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port_text = rest[1:] if rest.startswith(":") else ""
    elif address.count(":") == 1:
        host, _, port_text = address.partition(":")
    else:
        host, port_text = address, ""

    if not port_text:
        return host, default_port
    if not port_text.isdigit():
        raise ValueError(f"invalid port in address {address!r}")
    return host, int(port_text)


@dataclass
class Trigger:
    """A command to run when a check's outcome matches ``on``."""

    on: Event
    command: str
    args: list[str] = field(default_factory=list)
    timeout: Duration = field(default_factory=Duration)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Trigger:
        if not isinstance(data, dict):
            raise BundleValidationError(f"trigger must be a mapping, got {type(data).__name__}")
        if not data.get("command"):
            raise BundleValidationError("trigger is missing required field: command")
        args = data.get("args") or []
        if not isinstance(args, list):
            raise BundleValidationError("trigger args must be a list")
        # YAML 1.1 reads a bare `on:` key as boolean True
        on = data.get("on", data.get(True, Event.ALWAYS.value))
        return cls(
            on=Event.parse(on),
            command=str(data["command"]),
            args=[str(a) for a in args],
            timeout=Duration.parse(data["timeout"]) if data.get("timeout") is not None else Duration(),
        )

    @property
    def command_line(self) -> list[str]:
        return [self.command, *self.args]

    def fires(self, ok: bool) -> bool:
        return self.on.fires(ok)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"on": self.on.value, "command": self.command}
        if self.args:
            data["args"] = list(self.args)
        if self.timeout.is_positive:
            data["timeout"] = str(self.timeout)
        return data


@dataclass
class Action:
    """The captured execution of one trigger."""

    command: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "command": list(self.command),
            "exitcode": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
        }


@dataclass
class Result:
    """Outcome of one check: success, or the failure of its last attempt."""

    protocol: Protocol
    endpoint: str
    index: int = -1  # submission slot in the bundle
    name: str | None = None
    failure: ProbeError | None = None
    details: dict[str, Any] = field(default_factory=dict)
    attempts: int = 0
    actions: list[Action] = field(default_factory=list)

    @property
    def is_error(self) -> bool:
        return self.failure is not None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def cause(self) -> str | None:
        """Stable failure tag (e.g. ``"hostname mismatch"``), or None on success."""
        if self.failure is None:
            return None
        return self.failure.cause

    def __str__(self) -> str:
        if self.failure is not None:
            return str(self.failure)
        return "success"

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary."""
        return {
            "name": self.name,
            "protocol": self.protocol.value,
            "endpoint": self.endpoint,
            "result": str(self),
            "cause": self.cause,
            "attempts": self.attempts,
            "details": self.details,
            "actions": [a.to_dict() for a in self.actions],
        }


@dataclass
class Check:
    """A single reachability probe: address, protocol and timing policy."""

    address: str
    protocol: Protocol = Protocol.TCP
    name: str | None = None
    timeout: Duration = field(default_factory=Duration)
    retries: int = 0
    wait: Duration = field(default_factory=Duration)
    triggers: list[Trigger] = field(default_factory=list)
    result: Result | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Check:
        """
        Build a check from a parsed bundle entry.

        Raises:
            BundleValidationError: On a missing address or unusable values
        """
        if not isinstance(data, dict):
            raise BundleValidationError(f"check must be a mapping, got {type(data).__name__}")
        if not data.get("address"):
            raise BundleValidationError(f"check {data.get('name') or '<unnamed>'} is missing required field: address")

        # an omitted protocol means tcp; a misspelt one is an error
        protocol = Protocol.parse(data["protocol"]) if data.get("protocol") is not None else Protocol.TCP
        triggers = data.get("triggers") or []
        if not isinstance(triggers, list):
            raise BundleValidationError("check triggers must be a list")

        return cls(
            address=str(data["address"]),
            protocol=protocol,
            name=data.get("name"),
            timeout=Duration.parse(data["timeout"]) if data.get("timeout") is not None else Duration(),
            retries=_parse_int(data.get("retries"), "retries"),
            wait=Duration.parse(data["wait"]) if data.get("wait") is not None else Duration(),
            triggers=[Trigger.from_dict(t) for t in triggers],
        )

    @property
    def host(self) -> str:
        return split_address(self.address)[0]

    @property
    def port(self) -> int | None:
        try:
            return split_address(self.address)[1]
        except ValueError:
            return None

    def with_defaults(self, timeout: Duration, retries: int, wait: Duration) -> Check:
        """Return a copy whose zero/empty timing fields inherit the given values."""
        return replace(
            self,
            timeout=self.timeout.or_default(timeout),
            retries=self.retries if self.retries >= 1 else retries,
            wait=self.wait.or_default(wait),
            triggers=list(self.triggers),
            result=None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.name:
            data["name"] = self.name
        data["address"] = self.address
        data["protocol"] = self.protocol.value
        if self.timeout.is_positive:
            data["timeout"] = str(self.timeout)
        if self.retries:
            data["retries"] = self.retries
        if self.wait.is_positive:
            data["wait"] = str(self.wait)
        if self.triggers:
            data["triggers"] = [t.to_dict() for t in self.triggers]
        if self.result is not None:
            data["result"] = self.result.to_dict()
        return data


@dataclass
class Bundle:
    """An ordered set of checks sharing default timing parameters."""

    id: str = ""
    description: str = ""
    timeout: Duration = field(default_factory=Duration)
    retries: int = 0
    wait: Duration = field(default_factory=Duration)
    concurrency: int = 0
    checks: list[Check] = field(default_factory=list)
    source: str = ""  # where the bundle was loaded from; not serialized

    @classmethod
    def from_dict(cls, data: dict[str, Any], defaults: Defaults | None = None) -> Bundle:
        """
        Build a bundle from a parsed document and resolve its defaults.

        Args:
            data: Parsed bundle document
            defaults: Process-wide defaults; hardcoded defaults if None

        Returns:
            Bundle with every timing field resolved

        Raises:
            BundleValidationError: If the document holds unusable values
        """
        if not isinstance(data, dict):
            raise BundleValidationError(f"bundle must be a mapping, got {type(data).__name__}")
        checks = data.get("checks") or []
        if not isinstance(checks, list):
            raise BundleValidationError("bundle checks must be a list")

        bundle = cls(
            id=str(data.get("id") or ""),
            description=str(data.get("description") or ""),
            timeout=Duration.parse(data["timeout"]) if data.get("timeout") is not None else Duration(),
            retries=_parse_int(data.get("retries"), "retries"),
            wait=Duration.parse(data["wait"]) if data.get("wait") is not None else Duration(),
            concurrency=_parse_int(data.get("concurrency"), "concurrency"),
            checks=[Check.from_dict(c) for c in checks],
        )
        bundle.resolve_defaults(defaults)
        return bundle

    def resolve_defaults(self, defaults: Defaults | None = None) -> None:
        """Replace zero, negative or missing bundle-level values with *defaults*."""
        if defaults is None:
            from ..config.config import Defaults

            defaults = Defaults()

        if self.concurrency < 1:
            logger.debug("bundle %r: concurrency %d replaced by %d", self.id, self.concurrency, defaults.concurrency)
            self.concurrency = defaults.concurrency
        if self.retries < 1:
            self.retries = defaults.retries
        self.timeout = self.timeout.or_default(defaults.timeout)
        self.wait = self.wait.or_default(defaults.wait)

    def defaulted_checks(self) -> list[Check]:
        """Copies of the checks with bundle-level values filled in."""
        return [c.with_defaults(self.timeout, self.retries, self.wait) for c in self.checks]

    @property
    def results(self) -> list[Result | None]:
        return [c.result for c in self.checks]

    @property
    def is_healthy(self) -> bool:
        """True when every check has run and succeeded."""
        return all(c.result is not None and c.result.ok for c in self.checks)

    def to_dict(self) -> dict[str, Any]:
        """Convert bundle (with any attached results) to dictionary."""
        return {
            "id": self.id,
            "description": self.description,
            "timeout": str(self.timeout),
            "retries": self.retries,
            "wait": str(self.wait),
            "concurrency": self.concurrency,
            "checks": [c.to_dict() for c in self.checks],
        }


def _parse_int(value: Any, field_name: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise BundleValidationError(f"invalid {field_name}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BundleValidationError(f"invalid {field_name}: {value!r}")
