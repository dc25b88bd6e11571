"""Bounded retry around the coin CLI while the daemon warms up."""

import re
import time
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path

from loguru import logger

from walletkit.daemon.base import (
    CommandRejectedError,
    CommandResult,
    CommandRetryExhaustedError,
)
from walletkit.daemon.process import ProcessRunner
from walletkit.daemon.progress import WaitingDisplay

RETRY_INTERVAL = 3.0
DEFAULT_ATTEMPTS = 30
DEFAULT_WAITING_MESSAGE = "Waiting for wallet to respond. This could take several minutes..."

WARMUP_ERROR_CODE = -28
RPC_ERROR_CODE = re.compile(r"error code: (-?\d+)")

# Output that means the daemon is alive but not serving yet
WARMUP_MARKERS = (
    "couldn't connect to server",
    "error code: -28",
    "Loading block index",
    "Loading wallet",
    "Verifying blocks",
    "Rescanning",
)

# Output that means the command itself is wrong; retrying cannot help
REJECTED_MARKERS = (
    "Method not found",
    "error code: -32601",
    "The wallet passphrase entered was incorrect",
)


class Outcome(Enum):
    OK = "ok"
    RETRY = "retry"
    REJECTED = "rejected"


def classify(result: CommandResult) -> Outcome:
    """Decide whether a CLI result is success, warm-up (retry) or a rejection.

    Any RPC error code other than the warm-up code means the daemon answered
    and refused the request, so it is a rejection.
    """
    if result.ok:
        return Outcome.OK
    if any(marker in result.output for marker in WARMUP_MARKERS):
        return Outcome.RETRY
    if any(marker in result.output for marker in REJECTED_MARKERS):
        return Outcome.REJECTED
    match = RPC_ERROR_CODE.search(result.output)
    if match and int(match.group(1)) != WARMUP_ERROR_CODE:
        return Outcome.REJECTED
    # Unknown failures get the benefit of the doubt
    return Outcome.RETRY


def run_cli_command(
    binary_path: Path | str,
    command: str,
    waiting_message: str = DEFAULT_WAITING_MESSAGE,
    max_attempts: int = DEFAULT_ATTEMPTS,
    *,
    values: Sequence[str] = (),
    runner: ProcessRunner | None = None,
    interval: float = RETRY_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
    display: WaitingDisplay | None = None,
) -> str:
    """Run ``binary_path command [values...]`` until it succeeds.

    Args:
        binary_path: The coin CLI binary, e.g. ~/godivi/divi-cli.
        command: The CLI sub-command, e.g. 'getwalletinfo'.
        waiting_message: Shown with an attempt counter between attempts.
        max_attempts: Total number of invocations before giving up.
        values: Extra arguments after the command.
        runner: Process runner (injectable for tests).
        interval: Seconds to sleep between attempts.
        sleep: Sleep function (injectable for tests).
        display: Where to draw the waiting counter.

    Returns:
        Combined stdout/stderr of the first successful attempt.

    Raises:
        CommandExecutionError: The binary could not be executed. Not retried.
        CommandRejectedError: The daemon refused the command. Not retried.
        CommandRetryExhaustedError: Every attempt failed; carries the
            final attempt's error text.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    runner = runner or ProcessRunner()
    display = display or WaitingDisplay(waiting_message)
    args = [str(binary_path), command, *values]
    result: CommandResult | None = None

    try:
        for attempt in range(1, max_attempts + 1):
            result = runner.run(args)
            outcome = classify(result)

            if outcome is Outcome.OK:
                return result.output
            if outcome is Outcome.REJECTED:
                logger.error(f"{command} rejected: {result.output.strip()}")
                raise CommandRejectedError(result)

            logger.debug(f"{command} attempt {attempt}/{max_attempts} failed: {result.output.strip()}")
            if attempt == max_attempts:
                break
            display.update(attempt, max_attempts)
            sleep(interval)
    finally:
        display.finish()

    last_error = result.output if result.output.strip() else f"exit status {result.returncode}"
    logger.warning(f"{command} failed after {max_attempts} attempts: {last_error.strip()}")
    raise CommandRetryExhaustedError(max_attempts, last_error, result)
