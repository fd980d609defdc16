"""Environment probing: which runtimes and package managers are available."""

import logging

from .runner import ProcessRunner

logger = logging.getLogger(__name__)

# Everything the diagnostic report looks for
PROBE_CANDIDATES = [
    "node",
    "npm",
    "npx",
    "uv",
    "uvx",
    "pipx",
    "pip3",
    "pip",
    "python3",
    "python",
]


def probe(runner: ProcessRunner, tool: str) -> bool:
    """
    Check whether a tool can be executed.

    Runs `<tool> --version`. A missing executable and a non-zero exit are
    both reported as unavailable.

    Args:
        runner: ProcessRunner used to spawn the tool
        tool: Executable name

    Returns:
        True if the version query exited successfully
    """
    result = runner.run([tool, "--version"])
    logger.debug(f"Probe {tool}: {'found' if result.ok else 'not found'}")
    return result.ok


def probe_version(runner: ProcessRunner, tool: str) -> str | None:
    """
    Return the first line of a tool's version output, or None if unavailable.
    """
    result = runner.run([tool, "--version"])
    if not result.ok:
        return None

    lines = result.output.splitlines()
    return lines[0].strip() if lines else ""
