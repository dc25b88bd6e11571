"""Process-table scanning and external command execution."""

import subprocess
from pathlib import Path

import psutil
from loguru import logger

from walletkit.daemon.base import (
    CommandExecutionError,
    CommandResult,
    ProcessEnumerationError,
    ProcessHandle,
)


class ProcessRunner:
    """Thin wrapper over psutil and subprocess so the controller can be faked in tests."""

    def find_process(self, name: str) -> ProcessHandle | None:
        """Return the first process whose executable name is exactly *name*.

        Raises:
            ProcessEnumerationError: If the process table cannot be read.
        """
        try:
            for proc in psutil.process_iter(["pid", "name"]):
                try:
                    if proc.info["name"] == name:
                        logger.debug(f"Found process {name} (PID {proc.info['pid']})")
                        return ProcessHandle(pid=proc.info["pid"], name=name)
                except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                    continue
        except (psutil.Error, OSError) as e:
            raise ProcessEnumerationError(f"Unable to list processes: {e}") from e
        return None

    def run(self, args: list[str], timeout: float | None = None) -> CommandResult:
        """Run a command to completion, capturing stdout and stderr together.

        Raises:
            CommandExecutionError: If the binary cannot be executed.
        """
        logger.debug(f"Running: {' '.join(args)}")
        try:
            proc = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandExecutionError(f"{args[0]} timed out after {timeout}s") from e
        except OSError as e:
            raise CommandExecutionError(f"Unable to run {args[0]}: {e}") from e
        return CommandResult(args=list(args), output=proc.stdout or "", returncode=proc.returncode)

    def spawn(self, args: list[str]) -> "subprocess.Popen[str]":
        """Start a detached process with its stdout piped back for reading."""
        logger.debug(f"Spawning: {' '.join(args)}")
        try:
            return subprocess.Popen(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
                text=True,
                errors="replace",
                start_new_session=True,
            )
        except OSError as e:
            raise CommandExecutionError(f"Unable to start {args[0]}: {e}") from e

    def start_background(self, path: Path) -> None:
        """Fire-and-forget start through the Windows shell."""
        try:
            subprocess.run(
                ["cmd.exe", "/C", "start", "/b", str(path)],
                check=True, capture_output=True, text=True, errors="replace",
            )
        except subprocess.CalledProcessError as e:
            raise CommandExecutionError(
                f"Failed to start {path}: {(e.stderr or '').strip()}"
            ) from e
        except OSError as e:
            raise CommandExecutionError(f"Unable to start {path}: {e}") from e
