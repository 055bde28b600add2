# Copyright 2026 Cisco Systems, Inc. and its affiliates
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
Tests for bundle loading and format detection.
"""

from pathlib import Path

import httpx
import pytest

from netcheck.config.config import Defaults
from netcheck.core import formats
from netcheck.core.exceptions import BundleLoadError, BundleValidationError
from netcheck.core.loader import BundleLoader, load_bundle
from netcheck.core.models import Duration, Event, Protocol

YAML_BUNDLE = """\
---
id: web
description: public web endpoints
timeout: 5s
retries: 2
concurrency: 4
checks:
  - name: homepage
    address: example.com:443
    protocol: tls
  - address: example.com:80
    triggers:
      - on: failure
        command: echo
        args: ["down"]
"""

JSON_BUNDLE = '{"id": "dns", "checks": [{"address": "192.0.2.53:53", "protocol": "udp"}]}'

TOML_BUNDLE = """\
id = "ssh"
wait = "2s"

[[checks]]
address = "bastion:22"
protocol = "ssh"
"""


class TestFormatDetection:
    """Test serialization format detection."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("checks.yaml", formats.Format.YAML),
            ("checks.YML", formats.Format.YAML),
            ("checks.json", formats.Format.JSON),
            ("/srv/checks.toml", formats.Format.TOML),
            ("checks.txt", None),
        ],
    )
    def test_from_extension(self, name, expected):
        assert formats.from_extension(name) is expected

    def test_from_content_type(self):
        assert formats.from_content_type("application/json; charset=utf-8") is formats.Format.JSON
        assert formats.from_content_type("text/yaml") is formats.Format.YAML
        assert formats.from_content_type("text/html") is None
        assert formats.from_content_type(None) is None

    def test_detect_from_content(self):
        assert formats.detect("\n---\nid: x\n") is formats.Format.YAML
        assert formats.detect("  {\"id\": 1}") is formats.Format.JSON
        assert formats.detect("[1, 2]") is formats.Format.JSON

    def test_undetectable_content(self):
        with pytest.raises(BundleLoadError, match="undetected"):
            formats.detect("id: no-marker")

    def test_malformed_document(self):
        with pytest.raises(BundleLoadError, match="JSON"):
            formats.parse("{broken", formats.Format.JSON)


class TestFileLoading:
    """Test loading bundles from disk."""

    def test_yaml_bundle(self, tmp_path: Path):
        path = tmp_path / "web.yaml"
        path.write_text(YAML_BUNDLE)
        bundle = load_bundle(path)

        assert bundle.id == "web"
        assert bundle.source == str(path)
        assert bundle.timeout == Duration.parse("5s")
        assert bundle.wait == Duration.parse("1s")
        assert [c.protocol for c in bundle.checks] == [Protocol.TLS, Protocol.TCP]
        assert bundle.checks[1].triggers[0].on is Event.FAILURE

    def test_json_bundle(self, tmp_path: Path):
        path = tmp_path / "dns.json"
        path.write_text(JSON_BUNDLE)
        bundle = load_bundle(path)

        assert bundle.id == "dns"
        assert bundle.checks[0].protocol is Protocol.UDP

    def test_toml_bundle(self, tmp_path: Path):
        path = tmp_path / "ssh.toml"
        path.write_text(TOML_BUNDLE)
        bundle = load_bundle(path)

        assert bundle.wait == Duration.parse("2s")
        assert bundle.checks[0].protocol is Protocol.SSH

    def test_unknown_extension_is_sniffed(self, tmp_path: Path):
        path = tmp_path / "bundle.conf"
        path.write_text(JSON_BUNDLE)
        assert load_bundle(path).id == "dns"

    def test_defaults_are_applied(self, tmp_path: Path):
        path = tmp_path / "dns.json"
        path.write_text(JSON_BUNDLE)
        bundle = load_bundle(path, defaults=Defaults(concurrency=3, retries=9))

        assert bundle.concurrency == 3
        assert bundle.retries == 9

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(BundleLoadError, match="does not exist"):
            load_bundle(tmp_path / "absent.yaml")

    def test_invalid_protocol(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("id: bad\nchecks:\n  - address: a:1\n    protocol: carrier-pigeon\n")
        with pytest.raises(BundleValidationError):
            load_bundle(path)

    def test_non_mapping_document(self, tmp_path: Path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(BundleLoadError, match="mapping"):
            load_bundle(path)


class TestHTTPLoading:
    """Test loading bundles over HTTP with a mock transport."""

    def test_content_type_selects_format(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=TOML_BUNDLE, headers={"Content-Type": "application/toml"})

        bundle = BundleLoader(transport=httpx.MockTransport(handler)).load("http://config.local/bundle")
        assert bundle.id == "ssh"
        assert bundle.source == "http://config.local/bundle"

    def test_extension_beats_content_type(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=JSON_BUNDLE, headers={"Content-Type": "text/plain"})

        bundle = BundleLoader(transport=httpx.MockTransport(handler)).load("https://config.local/dns.json")
        assert bundle.id == "dns"

    def test_insecure_scheme_is_rewritten(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, text=YAML_BUNDLE)

        BundleLoader(transport=httpx.MockTransport(handler)).load("https-://config.local/web")
        assert seen == ["https://config.local/web"]

    def test_http_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        with pytest.raises(BundleLoadError, match="404"):
            BundleLoader(transport=httpx.MockTransport(handler)).load("http://config.local/missing.yaml")

    def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        with pytest.raises(BundleLoadError, match="Failed to download"):
            BundleLoader(transport=httpx.MockTransport(handler)).load("http://config.local/web.yaml")
