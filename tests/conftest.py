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
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest before running tests.
All fixtures defined here are available to every test module without
explicit imports.
"""

from __future__ import annotations

import datetime
import ipaddress
import socket
import ssl
import threading
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from netcheck.config.config import Defaults

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_netcheck_env(monkeypatch):
    """Keep NETCHECK_* variables from the developer's shell out of tests."""
    for name in (
        "NETCHECK_DEFAULTS",
        "NETCHECK_TIMEOUT",
        "NETCHECK_RETRIES",
        "NETCHECK_WAIT",
        "NETCHECK_CONCURRENCY",
        "NETCHECK_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fast_defaults() -> Defaults:
    """Defaults with short timeouts so failing checks finish quickly."""
    return Defaults(timeout="2s", retries=1, wait="10ms", concurrency=4)


# ---------------------------------------------------------------------------
# Network fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tcp_listener():
    """A listening TCP socket on 127.0.0.1; yields its ``host:port`` address.

    Connections are accepted (and closed) by the kernel backlog, so no
    accept loop is needed for reachability probes.
    """
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(64)
    host, port = server.getsockname()
    yield f"{host}:{port}"
    server.close()


@pytest.fixture
def closed_port() -> str:
    """An address on 127.0.0.1 where nothing listens."""
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    host, port = probe.getsockname()
    probe.close()
    return f"{host}:{port}"


# ---------------------------------------------------------------------------
# Certificate fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_certificate(tmp_path: Path):
    """Factory fixture for self-signed certificates.

    Usage::

        cert_path, key_path = make_certificate(dns_names=["localhost"], ip_addresses=["127.0.0.1"])
        cert_path, key_path = make_certificate(expired=True)

    Returns paths to PEM files usable with ``ssl.SSLContext.load_cert_chain``.
    """
    _counter = [0]

    def _make(
        dns_names: list[str] | None = None,
        ip_addresses: list[str] | None = None,
        expired: bool = False,
        common_name: str = "netcheck-test",
    ) -> tuple[Path, Path]:
        _counter[0] += 1
        key = ec.generate_private_key(ec.SECP256R1())
        name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])

        now = datetime.datetime.now(datetime.timezone.utc)
        if expired:
            not_before = now - datetime.timedelta(days=30)
            not_after = now - datetime.timedelta(days=1)
        else:
            not_before = now - datetime.timedelta(days=1)
            not_after = now + datetime.timedelta(days=30)

        builder = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
        )
        alt_names: list[x509.GeneralName] = [x509.DNSName(n) for n in dns_names or []]
        alt_names += [x509.IPAddress(ipaddress.ip_address(a)) for a in ip_addresses or []]
        if alt_names:
            builder = builder.add_extension(x509.SubjectAlternativeName(alt_names), critical=False)
        certificate = builder.sign(key, hashes.SHA256())

        cert_path = tmp_path / f"cert-{_counter[0]}.pem"
        key_path = tmp_path / f"key-{_counter[0]}.pem"
        cert_path.write_bytes(certificate.public_bytes(serialization.Encoding.PEM))
        key_path.write_bytes(
            key.private_bytes(
                serialization.Encoding.PEM,
                serialization.PrivateFormat.PKCS8,
                serialization.NoEncryption(),
            )
        )
        return cert_path, key_path

    return _make


@pytest.fixture
def tls_server():
    """Factory fixture starting a local TLS server for a certificate.

    Usage::

        address = tls_server(cert_path, key_path)   # "127.0.0.1:<port>"

    Each server completes handshakes in a background thread until the test
    ends.
    """
    servers: list[tuple[socket.socket, threading.Event]] = []

    def _start(cert_path: Path, key_path: Path) -> str:
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.load_cert_chain(str(cert_path), str(key_path))

        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.bind(("127.0.0.1", 0))
        listener.listen(16)
        listener.settimeout(0.2)
        stop = threading.Event()

        def serve():
            while not stop.is_set():
                try:
                    conn, _ = listener.accept()
                except TimeoutError:
                    continue
                except OSError:
                    return
                conn.settimeout(5)
                try:
                    with context.wrap_socket(conn, server_side=True):
                        pass
                except (OSError, ssl.SSLError):
                    conn.close()

        threading.Thread(target=serve, daemon=True).start()
        servers.append((listener, stop))
        host, port = listener.getsockname()
        return f"{host}:{port}"

    yield _start

    for listener, stop in servers:
        stop.set()
        listener.close()
