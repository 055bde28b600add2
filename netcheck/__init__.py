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
Netcheck - bulk reachability checks for network endpoints.
"""

try:
    from ._version import __version__
except ImportError:
    __version__ = "0.0.0+unknown"

__author__ = "Cisco Systems, Inc."


def __getattr__(name: str):
    """Lazy-load public API symbols on first access.

    Importing the package alone does not pull in the probe libraries
    (cryptography, asyncssh, icmplib) until a symbol that needs them is used.
    """
    _lazy_map = {
        "Defaults": (".config.config", "Defaults"),
        "NetcheckConstants": (".config.constants", "NetcheckConstants"),
        "BundleLoader": (".core.loader", "BundleLoader"),
        "load_bundle": (".core.loader", "load_bundle"),
        "Action": (".core.models", "Action"),
        "Bundle": (".core.models", "Bundle"),
        "Check": (".core.models", "Check"),
        "Duration": (".core.models", "Duration"),
        "Event": (".core.models", "Event"),
        "Protocol": (".core.models", "Protocol"),
        "Result": (".core.models", "Result"),
        "Trigger": (".core.models", "Trigger"),
        "CancellationToken": (".core.dispatcher", "CancellationToken"),
        "Dispatcher": (".core.dispatcher", "Dispatcher"),
        "run_bundle": (".core.dispatcher", "run_bundle"),
        "TriggerRunner": (".core.triggers", "TriggerRunner"),
    }
    if name in _lazy_map:
        module_path, attr = _lazy_map[name]
        import importlib

        mod = importlib.import_module(module_path, __package__)
        val = getattr(mod, attr)
        # Cache on the module so __getattr__ is only called once per symbol
        globals()[name] = val
        return val
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Dispatcher",
    "run_bundle",
    "CancellationToken",
    "Bundle",
    "Check",
    "Result",
    "Trigger",
    "Action",
    "Protocol",
    "Event",
    "Duration",
    "BundleLoader",
    "load_bundle",
    "TriggerRunner",
    "Defaults",
    "NetcheckConstants",
]
