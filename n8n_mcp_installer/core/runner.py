"""Process execution abstraction.

All package managers are driven through a ProcessRunner so the installer
can be exercised against a fake in tests.

Architecture:
- ProcessRunner: Abstract base class defining the interface
- SubprocessRunner: Production implementation using subprocess
- Strategy / run_first_success: ordered fallback chains of commands
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .models import CommandResult, InstallError

logger = logging.getLogger(__name__)

# Conventional shell exit code for "command not found"
SPAWN_FAILURE_CODE = 127


class ProcessRunner(ABC):
    """Runs external commands and reports their exit status."""

    @abstractmethod
    def run(self, argv: list[str], cwd: Path | None = None) -> CommandResult:
        """
        Run a command to completion.

        Args:
            argv: Executable and arguments (never a shell string)
            cwd: Working directory, or None for the current one

        Returns:
            CommandResult; spawn failures are reported as a non-zero result
        """
        pass


class SubprocessRunner(ProcessRunner):
    """ProcessRunner backed by subprocess.run."""

    def run(self, argv: list[str], cwd: Path | None = None) -> CommandResult:
        logger.debug(f"Running: {' '.join(argv)}" + (f" (cwd={cwd})" if cwd else ""))
        try:
            # stdin is the RPC stream when serving over stdio
            proc = subprocess.run(
                argv,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as e:
            # Missing executable or permission problem
            logger.debug(f"Failed to spawn {argv[0]}: {e}")
            return CommandResult(argv=list(argv), returncode=SPAWN_FAILURE_CODE, stderr=str(e))

        logger.debug(f"Exit code {proc.returncode} from {argv[0]}")
        return CommandResult(
            argv=list(argv),
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )


@dataclass(frozen=True)
class Strategy:
    """A single attempt in a fallback chain: a description plus the command."""
    description: str
    argv: tuple[str, ...]
    cwd: Path | None = None


def run_first_success(
    runner: ProcessRunner,
    strategies: Iterable[Strategy],
    executed: list[CommandResult] | None = None,
) -> CommandResult:
    """
    Run strategies in order until one exits successfully.

    Strategies are consumed lazily, so later ones are never built or run
    once an earlier one succeeds.

    Args:
        runner: ProcessRunner used to execute commands
        strategies: Ordered attempts
        executed: Optional list that collects every CommandResult

    Returns:
        The successful CommandResult

    Raises:
        InstallError: If every strategy fails (carries all captured output)
    """
    failures: list[str] = []

    for strategy in strategies:
        logger.info(f"{strategy.description}: {' '.join(strategy.argv)}")
        result = runner.run(list(strategy.argv), cwd=strategy.cwd)
        if executed is not None:
            executed.append(result)

        if result.ok:
            return result

        logger.warning(f"{strategy.description} failed with exit code {result.returncode}")
        failures.append(
            f"$ {' '.join(strategy.argv)} (exit {result.returncode})\n{result.output}".rstrip()
        )

    if not failures:
        raise InstallError("No install strategy was available")

    raise InstallError("All install attempts failed:", "\n\n".join(failures))
