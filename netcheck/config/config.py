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
Process-wide defaults for check execution.

Defaults are built once at process entry and handed explicitly to the
bundle-defaulting step and to the ICMP probe.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..core.exceptions import BundleValidationError, ConfigurationError
from ..core.models import Duration
from .constants import NetcheckConstants

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = Duration.parse(NetcheckConstants.DEFAULT_TIMEOUT)
_DEFAULT_WAIT = Duration.parse(NetcheckConstants.DEFAULT_WAIT)
_DEFAULT_PING_INTERVAL = Duration.parse(NetcheckConstants.DEFAULT_PING_INTERVAL)


@dataclass
class Defaults:
    """
    Default timing and ICMP parameters.

    Values missing from a defaults file keep the hardcoded defaults; zero,
    negative or malformed values are clamped back to them.
    """

    timeout: Duration = field(default_factory=lambda: _DEFAULT_TIMEOUT)
    retries: int = NetcheckConstants.DEFAULT_RETRIES
    wait: Duration = field(default_factory=lambda: _DEFAULT_WAIT)
    concurrency: int = NetcheckConstants.DEFAULT_CONCURRENCY

    # ICMP echo parameters
    ping_count: int = NetcheckConstants.DEFAULT_PING_COUNT
    ping_interval: Duration = field(default_factory=lambda: _DEFAULT_PING_INTERVAL)
    ping_size: int = NetcheckConstants.DEFAULT_PING_SIZE

    def __post_init__(self):
        """Apply environment overrides, then clamp unusable values."""

        if self.timeout == _DEFAULT_TIMEOUT:
            if env_timeout := os.getenv("NETCHECK_TIMEOUT"):
                self.timeout = _duration_or_default(env_timeout, _DEFAULT_TIMEOUT, "NETCHECK_TIMEOUT")

        if self.retries == NetcheckConstants.DEFAULT_RETRIES:
            if env_retries := os.getenv("NETCHECK_RETRIES"):
                self.retries = _positive_or_default(env_retries, NetcheckConstants.DEFAULT_RETRIES, "NETCHECK_RETRIES")

        if self.wait == _DEFAULT_WAIT:
            if env_wait := os.getenv("NETCHECK_WAIT"):
                self.wait = _duration_or_default(env_wait, _DEFAULT_WAIT, "NETCHECK_WAIT")

        if self.concurrency == NetcheckConstants.DEFAULT_CONCURRENCY:
            if env_concurrency := os.getenv("NETCHECK_CONCURRENCY"):
                self.concurrency = _positive_or_default(
                    env_concurrency, NetcheckConstants.DEFAULT_CONCURRENCY, "NETCHECK_CONCURRENCY"
                )

        self.timeout = _duration_or_default(self.timeout, _DEFAULT_TIMEOUT, "timeout")
        self.retries = _positive_or_default(self.retries, NetcheckConstants.DEFAULT_RETRIES, "retries")
        self.wait = _duration_or_default(self.wait, _DEFAULT_WAIT, "wait")
        self.concurrency = _positive_or_default(self.concurrency, NetcheckConstants.DEFAULT_CONCURRENCY, "concurrency")
        self.ping_count = _positive_or_default(self.ping_count, NetcheckConstants.DEFAULT_PING_COUNT, "ping.count")
        self.ping_interval = _duration_or_default(self.ping_interval, _DEFAULT_PING_INTERVAL, "ping.interval")
        self.ping_size = _positive_or_default(self.ping_size, NetcheckConstants.DEFAULT_PING_SIZE, "ping.size")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Defaults:
        """
        Create defaults from a parsed defaults document.

        Args:
            data: Mapping shaped like ``{timeout, retries, wait, concurrency,
                ping: {count, interval, size}}``

        Returns:
            Defaults instance
        """
        ping = data.get("ping") or {}
        if not isinstance(ping, dict):
            logger.warning("ignoring malformed ping section in defaults: %r", ping)
            ping = {}

        values: dict[str, Any] = {}
        for key, source in (
            ("timeout", data.get("timeout")),
            ("retries", data.get("retries")),
            ("wait", data.get("wait")),
            ("concurrency", data.get("concurrency")),
            ("ping_count", ping.get("count")),
            ("ping_interval", ping.get("interval")),
            ("ping_size", ping.get("size")),
        ):
            if source is not None:
                values[key] = source
        return cls(**values)

    @classmethod
    def from_file(cls, config_file: str | Path) -> Defaults:
        """
        Load defaults from a YAML file.

        Args:
            config_file: Path to the defaults file; ``~`` is expanded

        Returns:
            Defaults instance

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: If the file cannot be read or parsed
        """
        path = Path(config_file).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Failed to read defaults file {path}: {e}")

        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse defaults file {path}: {e}")
        if not isinstance(data, dict):
            raise ConfigurationError(f"Defaults file {path} must hold a mapping")

        defaults = cls.from_dict(data)
        logger.info("defaults loaded from %s: %s", path, defaults.to_dict())
        return defaults

    @classmethod
    def load(cls, paths: list[str | Path] | None = None) -> Defaults:
        """
        Load defaults from the first existing file among *paths*.

        When *paths* is None the lookup order is ``$NETCHECK_DEFAULTS``,
        ``./netcheck.conf``, ``~/netcheck.conf``. With no file found the
        hardcoded defaults are returned.
        """
        if paths is None:
            paths = list(NetcheckConstants.DEFAULTS_SEARCH_PATHS)
            if env_path := os.getenv(NetcheckConstants.DEFAULTS_ENV_VAR):
                paths.insert(0, env_path)

        for path in paths:
            try:
                return cls.from_file(path)
            except FileNotFoundError:
                logger.debug("defaults file does not exist: %s", path)
        return cls()

    def to_dict(self) -> dict[str, Any]:
        return {
            "timeout": str(self.timeout),
            "retries": self.retries,
            "wait": str(self.wait),
            "concurrency": self.concurrency,
            "ping": {
                "count": self.ping_count,
                "interval": str(self.ping_interval),
                "size": self.ping_size,
            },
        }


def _positive_or_default(value: Any, default: int, name: str) -> int:
    if not isinstance(value, bool):
        try:
            number = int(value)
        except (TypeError, ValueError):
            number = 0
        if number >= 1:
            return number
    logger.warning("invalid %s %r in defaults, using %d", name, value, default)
    return default


def _duration_or_default(value: Any, default: Duration, name: str) -> Duration:
    try:
        duration = Duration.parse(value)
    except BundleValidationError:
        duration = Duration()
    if duration.is_positive:
        return duration
    logger.warning("invalid %s %r in defaults, using %s", name, value, default)
    return default
