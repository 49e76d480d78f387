"""Invocation of the host module toolchain ("go") as a subprocess."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence

from common.logging_utils import Timer, extra_context, is_debug_enabled
from constants import Constants
from errors import ProjectEnvironmentError, ResolutionError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one toolchain invocation."""
    args: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr, as a user would see it."""
        return (self.stdout or "") + (self.stderr or "")


class Toolchain:
    """Runs toolchain subcommands in a working directory.

    A timeout of 0 or None means the command may run until it exits on its
    own. An expired timeout is a failed call, never a partial result.
    """

    def __init__(
        self,
        binary: str = Constants.GO_BINARY,
        workdir: Optional[str] = None,
        timeout: Optional[float] = Constants.TOOLCHAIN_TIMEOUT_SEC,
    ):
        self.binary = binary
        self.workdir = workdir
        self.timeout = timeout or None

    def run(self, args: Sequence[str]) -> CommandResult:
        """Run the toolchain; a non-zero exit status is returned, not raised."""
        cmd = [self.binary, *args]
        with Timer() as t:
            try:
                proc = subprocess.run(
                    cmd,
                    cwd=self.workdir,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                    check=False,
                    # keep terminal SIGINT away from the child; Ctrl-C is handled by the runner
                    start_new_session=True,
                )
            except FileNotFoundError as exc:
                raise ProjectEnvironmentError(
                    f"toolchain executable not found: {self.binary}",
                    details={"command": " ".join(cmd)},
                ) from exc
            except subprocess.TimeoutExpired as exc:
                raise ResolutionError(
                    f"'{' '.join(cmd)}' timed out after {self.timeout} seconds",
                ) from exc
            except OSError as exc:
                raise ResolutionError(f"error invoking '{' '.join(cmd)}': {exc}") from exc

        if is_debug_enabled(logger):
            logger.debug(
                "toolchain call finished",
                extra=extra_context(
                    event="toolchain_call",
                    component="toolchain",
                    action=" ".join(cmd),
                    outcome="success" if proc.returncode == 0 else "failure",
                    returncode=proc.returncode,
                    duration_ms=t.duration_ms(),
                ),
            )
        return CommandResult(cmd, proc.returncode, proc.stdout or "", proc.stderr or "")

    def output(self, args: Sequence[str]) -> str:
        """Run the toolchain and return stdout, raising ResolutionError on failure."""
        result = self.run(args)
        if not result.ok:
            raise ResolutionError(
                f"error invoking '{' '.join(result.args)}': exit status {result.returncode}",
                details={"output": result.stderr.strip()} if result.stderr.strip() else None,
            )
        return result.stdout
