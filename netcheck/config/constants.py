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
Constants for Netcheck.
"""

from pathlib import Path

try:
    from .._version import __version__ as PACKAGE_VERSION
except ImportError:  # pragma: no cover
    PACKAGE_VERSION = "0.0.0-dev"


class NetcheckConstants:
    """Constants used throughout the check engine."""

    VERSION = PACKAGE_VERSION

    PACKAGE_ROOT = Path(__file__).parent.parent

    # Default values
    DEFAULT_TIMEOUT = "20s"
    DEFAULT_RETRIES = 3
    DEFAULT_WAIT = "1s"
    DEFAULT_CONCURRENCY = 10
    DEFAULT_PING_COUNT = 10
    DEFAULT_PING_INTERVAL = "100ms"
    DEFAULT_PING_SIZE = 64

    # Defaults file lookup, first readable file wins
    DEFAULTS_ENV_VAR = "NETCHECK_DEFAULTS"
    DEFAULTS_SEARCH_PATHS = ("./netcheck.conf", "~/netcheck.conf")

    LOG_LEVEL_ENV_VAR = "NETCHECK_LOG_LEVEL"

    # Output formats
    FORMAT_TEXT = "text"
    FORMAT_JSON = "json"
    FORMAT_YAML = "yaml"
    FORMAT_TEMPLATE = "template"
