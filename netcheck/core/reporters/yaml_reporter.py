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
YAML format reporter for check results.
"""

import yaml

from ..models import Bundle


class YAMLReporter:
    """Generates YAML format reports."""

    def generate_report(self, bundles: list[Bundle]) -> str:
        data = [b.to_dict() for b in bundles]
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
