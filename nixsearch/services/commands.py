"""
Run external tools (``nix-env``, ``nix-build``) and capture their output.
"""
from __future__ import annotations

import asyncio
import logging
import shlex
from abc import ABC, abstractmethod
from typing import Sequence

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class CommandResult(BaseModel):
    """Exit status and captured output of one external command."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(ABC):
    """Runs an external command to completion. No timeout is applied."""

    @abstractmethod
    async def run(self, args: Sequence[str]) -> CommandResult:
        pass


class SubprocessRunner(CommandRunner):
    """Runs commands as child processes of this interpreter."""

    async def run(self, args: Sequence[str]) -> CommandResult:
        args = list(args)
        logger.debug(f"Running: {shlex.join(args)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            logger.error(f"Command not found: {args[0]}")
            return CommandResult(args=args, returncode=127, stderr=str(e))

        try:
            stdout, stderr = await process.communicate()
        except BaseException:
            # Cancelled or interrupted: the child must not outlive the run.
            if process.returncode is None:
                logger.warning(f"Killing {args[0]} (pid {process.pid})")
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()
            raise
        result = CommandResult(
            args=args,
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        logger.debug(
            f"{args[0]} exited with {result.returncode} "
            f"({len(result.stdout)} bytes stdout, {len(result.stderr)} bytes stderr)"
        )
        return result
