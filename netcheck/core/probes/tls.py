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
TLS and DTLS probes.

Both protocols share one handshake-and-verify routine; the only difference is
whether records travel over a stream or a datagram socket. The handshake runs
through an in-memory BIO so the same pump works for either socket kind.

Chain trust is not evaluated. Only the leaf certificate's hostname coverage
and expiry are checked, each reported as its own failure cause.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
import ssl
import time
from datetime import datetime, timezone
from typing import Any

from cryptography import x509

from ..exceptions import CertificateExpiredError, DialError, HostnameMismatchError
from ..models import split_address
from .base import BaseProbe, Transport
from .network import open_datagram

logger = logging.getLogger(__name__)

_RECV_SIZE = 65536


def _remaining(deadline: float) -> float:
    left = deadline - time.monotonic()
    if left <= 0:
        raise TimeoutError("timed out during TLS handshake")
    return left


def _match_dns_name(pattern: str, hostname: str) -> bool:
    """Match one certificate DNS name against *hostname*; ``*`` covers one left-most label."""
    pattern = pattern.lower().rstrip(".")
    hostname = hostname.lower().rstrip(".")
    if not pattern.startswith("*."):
        return pattern == hostname
    label, _, rest = hostname.partition(".")
    return bool(label) and bool(rest) and rest == pattern[2:]


def certificate_matches_hostname(certificate: x509.Certificate, hostname: str) -> bool:
    """
    Check whether *certificate* is valid for *hostname*.

    Only subjectAltName entries are considered: DNS names for host names,
    IP address entries for address literals. A certificate without a SAN
    extension matches nothing.
    """
    try:
        san = certificate.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        return False

    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        ip = None

    if ip is not None:
        return ip in san.get_values_for_type(x509.IPAddress)
    return any(_match_dns_name(name, hostname) for name in san.get_values_for_type(x509.DNSName))


class TLSProbe(BaseProbe):
    """Handshakes without a client certificate, then checks hostname and expiry.

    The three conditions (dial, hostname, expiry) are checked in that order
    and the first failure wins.
    """

    def __init__(self, transport: Transport = Transport.STREAM):
        super().__init__("tls" if transport is Transport.STREAM else "dtls")
        self.transport = transport

    def probe(self, address: str, timeout: float) -> dict[str, Any]:
        try:
            host, port = split_address(address)
        except ValueError as e:
            raise DialError(f"error dialling {address} on protocol {self.name}: {e}")
        if port is None:
            raise DialError(f"error dialling {address} on protocol {self.name}: missing port in address")

        try:
            der = self._handshake(host, port, time.monotonic() + timeout)
        except OSError as e:
            logger.debug("error dialling %s on protocol %s: %s", address, self.name, e)
            raise DialError(f"error dialling {address} on protocol {self.name}: {e}") from e
        if not der:
            raise DialError(f"error dialling {address} on protocol {self.name}: peer presented no certificate")

        try:
            certificate = x509.load_der_x509_certificate(der)
        except ValueError as e:
            raise DialError(
                f"error dialling {address} on protocol {self.name}: peer presented an unreadable certificate: {e}"
            ) from e

        if not certificate_matches_hostname(certificate, host):
            logger.debug("hostname %s does not match certificate from %s", host, address)
            raise HostnameMismatchError(
                f"hostname mismatch in certificate from host {address} on protocol {self.name}: "
                f"certificate is not valid for {host}"
            )

        expiry = certificate.not_valid_after_utc
        issuer = certificate.issuer.rfc4514_string()
        if datetime.now(timezone.utc) > expiry:
            logger.debug("certificate from %s expired on %s", address, expiry.isoformat())
            raise CertificateExpiredError(
                f"certificate from host {address} on protocol {self.name} expired on "
                f"{expiry.isoformat()} (issuer: {issuer})",
                expiry=expiry,
                issuer=issuer,
            )

        logger.info(
            "successfully tested connection to %s on protocol %s (issuer %s, expiry %s)",
            address,
            self.name,
            issuer,
            expiry.isoformat(),
        )
        return {"issuer": issuer, "expiry": expiry.isoformat()}

    def _handshake(self, host: str, port: int, deadline: float) -> bytes | None:
        """Run the client handshake and return the peer's DER certificate."""
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

        incoming = ssl.MemoryBIO()
        outgoing = ssl.MemoryBIO()
        tls = context.wrap_bio(incoming, outgoing, server_hostname=host)

        with self._connect(host, port, deadline) as sock:
            while True:
                try:
                    tls.do_handshake()
                    break
                except ssl.SSLWantReadError:
                    self._flush(sock, outgoing)
                    sock.settimeout(_remaining(deadline))
                    data = sock.recv(_RECV_SIZE)
                    if not data:
                        raise ConnectionResetError("connection closed during TLS handshake")
                    incoming.write(data)
            self._flush(sock, outgoing)
            return tls.getpeercert(binary_form=True)

    def _connect(self, host: str, port: int, deadline: float) -> socket.socket:
        if self.transport is Transport.STREAM:
            return socket.create_connection((host, port), timeout=_remaining(deadline))
        return open_datagram(host, port, _remaining(deadline))

    def _flush(self, sock: socket.socket, outgoing: ssl.MemoryBIO) -> None:
        data = outgoing.read()
        if not data:
            return
        if self.transport is Transport.STREAM:
            sock.sendall(data)
        else:
            sock.send(data)
