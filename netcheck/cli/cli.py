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

"""Command-line interface for Netcheck."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from rich.console import Console

from ..config.config import Defaults
from ..config.constants import NetcheckConstants
from ..core.dispatcher import Dispatcher
from ..core.exceptions import NetcheckError
from ..core.loader import BundleLoader
from ..core.models import Bundle
from ..core.reporters.json_reporter import JSONReporter
from ..core.reporters.template_reporter import TemplateReporter
from ..core.reporters.text_reporter import TextReporter
from ..core.reporters.yaml_reporter import YAMLReporter

logger = logging.getLogger("netcheck.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CHECKS_FAILED = 2

_LOG_LEVELS = {
    logging.DEBUG: ("debug", "dbg", "d", "trace", "trc", "t"),
    logging.INFO: ("info", "inf", "i", "informational"),
    logging.WARNING: ("warn", "warning", "wrn", "w"),
    logging.ERROR: ("error", "err", "e", "fatal", "ftl", "f"),
}


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def parse_log_level(value: str | None) -> int:
    """Map a level name or one of its aliases to a logging level (default WARNING)."""
    if not value:
        return logging.WARNING
    name = value.strip().lower()
    for level, aliases in _LOG_LEVELS.items():
        if name in aliases:
            return level
    return logging.WARNING


def _configure_logging(args: argparse.Namespace) -> None:
    level = parse_log_level(args.log_level or os.getenv(NetcheckConstants.LOG_LEVEL_ENV_VAR))
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_defaults(args: argparse.Namespace) -> Defaults:
    """Load defaults from ``--defaults`` or the standard search order."""
    if args.defaults:
        try:
            defaults = Defaults.from_file(args.defaults)
        except FileNotFoundError:
            raise NetcheckError(f"Defaults file not found: {args.defaults}")
    else:
        defaults = Defaults.load()

    if args.concurrency is not None:
        if args.concurrency < 1:
            raise NetcheckError(f"Invalid concurrency: {args.concurrency}")
        defaults.concurrency = args.concurrency
    return defaults


def _format_output(args: argparse.Namespace, bundles: list[Bundle]) -> str:
    """Generate the formatted output string for the checked bundles."""
    fmt = args.format
    if fmt == NetcheckConstants.FORMAT_JSON:
        return JSONReporter(pretty=not args.compact).generate_report(bundles)
    if fmt == NetcheckConstants.FORMAT_YAML:
        return YAMLReporter().generate_report(bundles)
    if fmt == NetcheckConstants.FORMAT_TEMPLATE:
        return TemplateReporter(args.template).generate_report(bundles)
    # text (default)
    return TextReporter(colour=not args.output and sys.stdout.isatty()).generate_report(bundles)


def _write_output(args: argparse.Namespace, output: str) -> None:
    """Write *output* to a file or stdout."""
    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(output)
        Console(stderr=True).print(f"Report saved to: {args.output}", highlight=False, markup=False)
    else:
        print(output)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netcheck",
        description="Netcheck - bulk reachability checks for TCP, UDP, TLS, DTLS, ICMP and SSH endpoints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  netcheck checks.yaml
  netcheck --format json checks.yaml more-checks.toml
  netcheck --triggers --fail-on-error https://example.com/checks.yaml
  netcheck --format template --template report.j2 checks.yaml
        """,
    )
    parser.add_argument("bundles", nargs="+", metavar="BUNDLE", help="Bundle file path or HTTP(S) URL")
    parser.add_argument(
        "--format",
        choices=[
            NetcheckConstants.FORMAT_TEXT,
            NetcheckConstants.FORMAT_JSON,
            NetcheckConstants.FORMAT_YAML,
            NetcheckConstants.FORMAT_TEMPLATE,
        ],
        default=NetcheckConstants.FORMAT_TEXT,
        help="Output format (default: text)",
    )
    parser.add_argument("--template", metavar="PATH", help="Jinja2 template file (template output only)")
    parser.add_argument("--compact", action="store_true", help="Compact JSON output")
    parser.add_argument("--defaults", metavar="PATH", help="YAML file with default timeout, retries, wait, ...")
    parser.add_argument("--concurrency", type=int, metavar="N", help="Override the default concurrency")
    parser.add_argument("--triggers", action="store_true", help="Run check triggers after each check")
    parser.add_argument("--output", "-o", help="Output file path")
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        help=f"Log level: debug, info, warn, error (or set {NetcheckConstants.LOG_LEVEL_ENV_VAR})",
    )
    parser.add_argument("--fail-on-error", action="store_true", help="Exit with status 2 if any check failed")
    parser.add_argument("--version", action="version", version=f"%(prog)s {NetcheckConstants.VERSION}")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)

    if args.format == NetcheckConstants.FORMAT_TEMPLATE and not args.template:
        parser.error("--template is required with --format template")

    try:
        defaults = _load_defaults(args)
        loader = BundleLoader(defaults=defaults)
        dispatcher = Dispatcher(defaults=defaults, with_triggers=args.triggers)

        bundles: list[Bundle] = []
        for source in args.bundles:
            bundle = loader.load(source)
            if args.concurrency is not None:
                bundle.concurrency = args.concurrency
            dispatcher.run(bundle)
            bundles.append(bundle)

        _write_output(args, _format_output(args, bundles))
    except NetcheckError as e:
        logger.debug("run aborted", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    if args.fail_on_error and not all(b.is_healthy for b in bundles):
        return EXIT_CHECKS_FAILED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
