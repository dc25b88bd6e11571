"""Daemon lifecycle types and error kinds."""

from dataclasses import dataclass
from enum import Enum


class DaemonState(Enum):
    NOT_RUNNING = "not_running"
    STARTING = "starting"
    READY = "ready"
    STOP_REQUESTED = "stop_requested"
    STOPPED_CONFIRMED = "stopped_confirmed"

    def can_transition_to(self, target: "DaemonState") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[DaemonState, frozenset[DaemonState]] = {
    DaemonState.NOT_RUNNING: frozenset({DaemonState.STARTING, DaemonState.READY}),
    DaemonState.STARTING: frozenset({DaemonState.READY, DaemonState.NOT_RUNNING}),
    DaemonState.READY: frozenset({DaemonState.STOP_REQUESTED, DaemonState.NOT_RUNNING}),
    DaemonState.STOP_REQUESTED: frozenset({DaemonState.STOPPED_CONFIRMED, DaemonState.READY}),
    DaemonState.STOPPED_CONFIRMED: frozenset(
        {DaemonState.STARTING, DaemonState.READY, DaemonState.NOT_RUNNING}
    ),
}


@dataclass(frozen=True)
class ProcessHandle:
    """A process found in the OS process table. Never cached."""
    pid: int
    name: str


@dataclass
class CommandResult:
    """Combined stdout/stderr and exit status of one CLI invocation."""
    args: list[str]
    output: str
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class DaemonInfo:
    state: DaemonState
    coin_name: str
    binary_name: str
    pid: int | None = None


class DaemonError(Exception):
    """Raised when a daemon operation fails."""


class InvalidTransitionError(DaemonError):
    """Raised on a lifecycle transition the state machine does not allow."""

    def __init__(self, current: DaemonState, target: DaemonState):
        self.current = current
        self.target = target
        super().__init__(f"Invalid daemon transition: {current.value} -> {target.value}")


class ProcessEnumerationError(DaemonError):
    """Raised when the OS process table cannot be read."""


class StartupBannerMismatchError(DaemonError):
    """Raised when the daemon never printed its startup banner."""

    def __init__(self, banner: str, lines: list[str]):
        self.banner = banner
        self.lines = lines
        seen = "; ".join(repr(line) for line in lines) or "no output"
        super().__init__(f"Daemon did not report '{banner}' (read: {seen})")


class CommandExecutionError(DaemonError):
    """Raised when a binary cannot be executed at all (missing, not permitted)."""


class CommandRejectedError(DaemonError):
    """Raised when the daemon answered but refused the command. Not retried."""

    def __init__(self, result: CommandResult):
        self.result = result
        super().__init__(result.output.strip() or f"exit status {result.returncode}")


class CommandRetryExhaustedError(DaemonError):
    """Raised when every attempt of a retried CLI command failed."""

    def __init__(self, attempts: int, last_error: str, result: CommandResult | None = None):
        self.attempts = attempts
        self.last_error = last_error
        self.result = result
        super().__init__(last_error)


class StopTimedOutError(DaemonError):
    """Raised when the daemon is still running after the stop polling budget."""

    def __init__(self, pid: int, attempts: int, interval: float):
        self.pid = pid
        self.attempts = attempts
        self.interval = interval
        super().__init__(
            f"Daemon (PID {pid}) still running after {attempts} checks "
            f"({attempts * interval:.0f}s)"
        )
