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
Bundle loader for local files and HTTP(S) URLs.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urlsplit, urlunsplit

import httpx

from . import formats
from .exceptions import BundleLoadError
from .models import Bundle

if TYPE_CHECKING:
    from ..config.config import Defaults

logger = logging.getLogger(__name__)

# "https-://host/path" fetches over HTTPS without verifying the server certificate
INSECURE_HTTPS_SCHEME = "https-"
_HTTP_SCHEMES = {"http", "https", INSECURE_HTTPS_SCHEME}


class BundleLoader:
    """Loads check bundles and resolves their defaults.

    Sources are either local paths or ``http://``, ``https://`` and
    ``https-://`` URLs. The document format is taken from the file
    extension, then the HTTP Content-Type, then the content itself.
    """

    def __init__(self, defaults: Defaults | None = None, transport: httpx.BaseTransport | None = None):
        """
        Initialize bundle loader.

        Args:
            defaults: Process-wide defaults applied to every loaded bundle
            transport: Optional httpx transport, e.g. ``httpx.MockTransport``
        """
        if defaults is None:
            from ..config.config import Defaults

            defaults = Defaults()
        self.defaults = defaults
        self.transport = transport

    def load(self, source: str | Path) -> Bundle:
        """
        Load a bundle from *source*.

        Args:
            source: Local path or HTTP(S) URL

        Returns:
            Bundle with defaults resolved

        Raises:
            BundleLoadError: If the bundle cannot be read or parsed
            BundleValidationError: If the bundle holds unusable values
        """
        source = str(source)
        if urlsplit(source).scheme.lower() in _HTTP_SCHEMES:
            text, fmt = self._fetch(source)
        else:
            text, fmt = self._read(Path(source))

        if fmt is None:
            fmt = formats.detect(text)
        logger.debug("parsing bundle from %s as %s", source, fmt.value)

        data = formats.parse(text, fmt)
        if data is None:
            raise BundleLoadError(f"Bundle {source} is empty")
        if not isinstance(data, dict):
            raise BundleLoadError(f"Bundle {source} must hold a mapping, got {type(data).__name__}")

        bundle = Bundle.from_dict(data, self.defaults)
        bundle.source = source
        logger.info("loaded bundle %r with %d check(s) from %s", bundle.id, len(bundle.checks), source)
        return bundle

    def _read(self, path: Path) -> tuple[str, formats.Format | None]:
        path = path.expanduser()
        if not path.exists():
            raise BundleLoadError(f"Bundle file does not exist: {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise BundleLoadError(f"Failed to read bundle file {path}: {e}")
        return text, formats.from_extension(path.name)

    def _fetch(self, url: str) -> tuple[str, formats.Format | None]:
        parts = urlsplit(url)
        verify = True
        if parts.scheme.lower() == INSECURE_HTTPS_SCHEME:
            logger.debug("disabling TLS verification for %s", url)
            verify = False
            url = urlunsplit(parts._replace(scheme="https"))

        logger.debug("downloading bundle from %s", url)
        try:
            with httpx.Client(
                verify=verify,
                timeout=httpx.Timeout(self.defaults.timeout.seconds),
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                response = client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BundleLoadError(f"HTTP {e.response.status_code} downloading bundle from {url}") from e
        except httpx.HTTPError as e:
            raise BundleLoadError(f"Failed to download bundle from {url}: {e}") from e

        fmt = formats.from_extension(parts.path) or formats.from_content_type(response.headers.get("content-type"))
        return response.text, fmt


def load_bundle(
    source: str | Path,
    defaults: Defaults | None = None,
    transport: httpx.BaseTransport | None = None,
) -> Bundle:
    """
    Convenience function to load a bundle.

    Args:
        source: Local path or HTTP(S) URL
        defaults: Process-wide defaults
        transport: Optional httpx transport

    Returns:
        Bundle with defaults resolved
    """
    return BundleLoader(defaults=defaults, transport=transport).load(source)
