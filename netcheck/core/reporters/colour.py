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
Terminal colour helpers shared by the text and template reporters.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.text import Text

# template filter name -> rich style
COLOURS = {
    "blue": "blue",
    "cyan": "cyan",
    "green": "green",
    "magenta": "magenta",
    "purple": "magenta",
    "red": "red",
    "yellow": "yellow",
    "white": "white",
    "hiblue": "bright_blue",
    "hicyan": "bright_cyan",
    "higreen": "bright_green",
    "himagenta": "bright_magenta",
    "hipurple": "bright_magenta",
    "hired": "bright_red",
    "hiyellow": "bright_yellow",
    "hiwhite": "bright_white",
}


def render(text: Text) -> str:
    """Render styled *text* to a string of ANSI escape sequences."""
    console = Console(force_terminal=True, color_system="standard", highlight=False)
    with console.capture() as capture:
        console.print(text, end="", soft_wrap=True)
    return capture.get()


def colourize(value: Any, style: str) -> str:
    return render(Text(str(value), style=style))
