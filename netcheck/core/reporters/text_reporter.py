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
Plain text reporter.

One header line per bundle, then one line per check: an up or down marker,
the port, the protocol, the bundle source and the target host. Failed checks
carry the failure text in parentheses.
"""

from __future__ import annotations

from rich.text import Text

from ..models import Bundle, Check, split_address
from .colour import render

UP = "▲"
DOWN = "▼"
HEADER = "►"


def _target_and_port(check: Check) -> tuple[str, str]:
    try:
        host, port = split_address(check.address)
    except ValueError:
        return check.address, "-"
    return host, str(port) if port is not None else "-"


class TextReporter:
    """Generates the human-readable check listing."""

    def __init__(self, colour: bool = False):
        """
        Initialize text reporter.

        Args:
            colour: If True, emit ANSI colours (use when writing to a terminal)
        """
        self.colour = colour

    def generate_report(self, bundles: list[Bundle]) -> str:
        lines: list[str] = []
        for bundle in bundles:
            lines.append(self._line(Text.assemble((HEADER, "yellow"), " ", bundle.id)))
            for check in bundle.checks:
                lines.append(self._check_line(check, bundle.source))
        return "\n".join(lines)

    def _check_line(self, check: Check, source: str) -> str:
        target, port = _target_and_port(check)
        protocol = check.protocol.value
        result = check.result
        failed = result is not None and result.is_error

        line = Text.assemble(
            (DOWN, "red") if failed else (UP, "green"),
            " ",
            (f"{port:>5}", "cyan"),
            " ",
            (f"{protocol:<4}", "magenta"),
            f" : {source} → {target}",
        )
        if failed:
            line.append(f" ({result})", style="blue")
        elif result is None:
            line.append(" (not run)", style="yellow")
        return self._line(line)

    def _line(self, text: Text) -> str:
        if self.colour:
            return render(text)
        return text.plain
