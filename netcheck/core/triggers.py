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
Trigger execution.

A trigger is an external command run after a check completes, when the
check's outcome matches the trigger's event. A command whose text starts
with ``#!`` is an inline script: it is written to a temporary file and run
through ``$SHELL``.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from pathlib import Path

from .exceptions import TriggerExecutionError
from .models import Action, Duration, Trigger

logger = logging.getLogger(__name__)

SCRIPT_PREFIX = "#!"


class TriggerRunner:
    """Runs triggers as subprocesses and records what they did."""

    def __init__(self, default_timeout: Duration | None = None):
        """
        Args:
            default_timeout: Limit for triggers that do not set their own
                timeout. If None, such triggers may run indefinitely.
        """
        self.default_timeout = default_timeout

    def run(self, trigger: Trigger) -> Action:
        """
        Run one trigger to completion.

        Args:
            trigger: Trigger to run

        Returns:
            Action with the command line, exit code and captured output

        Raises:
            TriggerExecutionError: If the command cannot be started or
                exceeds its timeout
        """
        timeout = trigger.timeout.or_default(self.default_timeout) if self.default_timeout else trigger.timeout
        seconds = timeout.seconds if timeout.is_positive else None

        if trigger.command.startswith(SCRIPT_PREFIX):
            return self._run_script(trigger, seconds)
        return self._execute(trigger.command_line, seconds)

    def _run_script(self, trigger: Trigger, timeout: float | None) -> Action:
        shell = os.environ.get("SHELL")
        if not shell:
            raise TriggerExecutionError("cannot run inline trigger script: SHELL is not set")

        fd, name = tempfile.mkstemp(prefix="netcheck_trigger_", suffix=".sh")
        script = Path(name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(trigger.command)
            script.chmod(0o700)
            return self._execute([shell, str(script), *trigger.args], timeout)
        finally:
            script.unlink(missing_ok=True)

    def _execute(self, command: list[str], timeout: float | None) -> Action:
        logger.debug("running trigger command %s", command)
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise TriggerExecutionError(f"trigger {command[0]} timed out after {e.timeout}s") from e
        except OSError as e:
            raise TriggerExecutionError(f"failed to run trigger {command[0]}: {e}") from e

        if completed.returncode != 0:
            logger.info("trigger %s exited with status %d", command[0], completed.returncode)
        return Action(
            command=list(command),
            exit_code=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

    def fire(self, triggers: list[Trigger], ok: bool) -> list[Action]:
        """
        Run, in order, every trigger whose event matches the check outcome.

        A trigger that cannot be executed is logged and skipped; the
        remaining triggers still run.
        """
        actions: list[Action] = []
        for trigger in triggers:
            if not trigger.fires(ok):
                continue
            try:
                actions.append(self.run(trigger))
            except TriggerExecutionError as e:
                logger.error("Trigger on %s failed: %s", trigger.on.value, e)
            except Exception as e:
                logger.error("Trigger %s raised unexpectedly: %s", trigger.command, e, exc_info=True)
        return actions
