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
Serialization formats a bundle document may use.
"""

from __future__ import annotations

import json
import logging
import tomllib
from enum import Enum
from pathlib import PurePosixPath
from typing import Any

import yaml

from .exceptions import BundleLoadError

logger = logging.getLogger(__name__)


class Format(str, Enum):
    YAML = "yaml"
    JSON = "json"
    TOML = "toml"


_EXTENSIONS = {
    ".yaml": Format.YAML,
    ".yml": Format.YAML,
    ".json": Format.JSON,
    ".toml": Format.TOML,
}

_CONTENT_TYPES = {
    "application/json": Format.JSON,
    "application/x-yaml": Format.YAML,
    "application/yaml": Format.YAML,
    "text/yaml": Format.YAML,
    "application/toml": Format.TOML,
}


def from_extension(path: str) -> Format | None:
    """Guess the format from a file name or URL path extension."""
    return _EXTENSIONS.get(PurePosixPath(path).suffix.lower())


def from_content_type(content_type: str | None) -> Format | None:
    """Guess the format from an HTTP Content-Type header (parameters ignored)."""
    if not content_type:
        return None
    media_type = content_type.split(";", 1)[0].strip().lower()
    return _CONTENT_TYPES.get(media_type)


def detect(data: str) -> Format:
    """
    Detect the format from the document text itself.

    A leading ``---`` means YAML; a leading ``{`` or ``[`` means JSON.

    Raises:
        BundleLoadError: If the format cannot be detected
    """
    trimmed = data.lstrip("\n\r\t ")
    if trimmed.startswith("---"):
        logger.debug("format is YAML")
        return Format.YAML
    if trimmed.startswith(("{", "[")):
        logger.debug("format is JSON")
        return Format.JSON
    raise BundleLoadError("unsupported or undetected format")


def parse(data: str, fmt: Format) -> Any:
    """
    Parse *data* as *fmt*.

    Raises:
        BundleLoadError: If the document is malformed
    """
    try:
        if fmt is Format.JSON:
            return json.loads(data)
        if fmt is Format.TOML:
            return tomllib.loads(data)
        return yaml.safe_load(data)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise BundleLoadError(f"malformed {fmt.value.upper()} document: {e}") from e
