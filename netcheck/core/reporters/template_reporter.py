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
Template reporter.

Renders a user-supplied Jinja2 template with the list of bundles in the
context as ``bundles``. Colour filters (``red``, ``green``, ``hiblue``, ...)
wrap a value in ANSI escape sequences.
"""

from __future__ import annotations

import logging
from pathlib import Path

import jinja2

from ..exceptions import NetcheckError
from ..models import Bundle
from .colour import COLOURS, colourize

logger = logging.getLogger(__name__)


def _colour_filter(style: str):
    def apply(value):
        return colourize(value, style)

    return apply


class TemplateReporter:
    """Generates reports from a Jinja2 template file."""

    def __init__(self, template_path: str | Path):
        """
        Initialize template reporter.

        Args:
            template_path: Path to the Jinja2 template file
        """
        self.template_path = Path(template_path).expanduser()
        self.environment = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(self.template_path.parent)),
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )
        for name, style in COLOURS.items():
            self.environment.filters[name] = _colour_filter(style)

    def generate_report(self, bundles: list[Bundle]) -> str:
        """
        Render the template.

        Raises:
            NetcheckError: If the template cannot be found, parsed or rendered
        """
        logger.debug("using template file %s", self.template_path)
        try:
            template = self.environment.get_template(self.template_path.name)
            return template.render(bundles=bundles)
        except jinja2.TemplateNotFound as e:
            raise NetcheckError(f"Template file not found: {self.template_path}") from e
        except jinja2.TemplateError as e:
            raise NetcheckError(f"Error applying template file {self.template_path}: {e}") from e
