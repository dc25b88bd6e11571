"""Coin daemon lifecycle: detect, start, wait for readiness, stop."""

import queue
import subprocess
import threading
import time
from collections.abc import Callable
from pathlib import Path

from loguru import logger
from rich.console import Console

from walletkit.coins.registry import (
    CoinIdentity,
    Platform,
    app_cli_binary_name,
    app_server_binary_name,
    cli_binary_name,
    daemon_binary_name,
    get_coin,
)
from walletkit.daemon.base import (
    DaemonError,
    DaemonInfo,
    DaemonState,
    InvalidTransitionError,
    ProcessHandle,
    StartupBannerMismatchError,
    StopTimedOutError,
)
from walletkit.daemon.process import ProcessRunner
from walletkit.daemon.progress import BAR_FRAMES, WaitingDisplay
from walletkit.daemon.resolve import detect_platform, get_apps_bin_folder
from walletkit.daemon.retry import DEFAULT_ATTEMPTS, DEFAULT_WAITING_MESSAGE, run_cli_command

STOP_ATTEMPTS = 50
STOP_INTERVAL = 3.0
STOP_COMMAND_TIMEOUT = 60.0
BANNER_LINE_LIMIT = 3
BANNER_TIMEOUT = 60.0
TERMINATE_TIMEOUT = 10.0

_locks: dict[CoinIdentity, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(identity: CoinIdentity) -> threading.RLock:
    """One lock per coin, shared by every controller for that coin."""
    with _locks_guard:
        return _locks.setdefault(identity, threading.RLock())


def _pump(stream, lines: queue.Queue, matched: threading.Event) -> None:
    """Forward stdout lines to *lines* until the banner matched, then discard them.

    Keeps reading after a match so the pipe never fills up and blocks the
    daemon. ``None`` marks the end of the output.
    """
    try:
        for line in stream:
            if not matched.is_set():
                lines.put(line)
    except (OSError, ValueError) as e:
        logger.debug(f"Daemon stdout closed: {e}")
    lines.put(None)


class DaemonController:
    """Start/stop/monitor the coin daemon (e.g. divid) for one coin identity.

    Start and stop are serialized per coin, so concurrent callers in this
    process cannot both launch a daemon.
    """

    def __init__(
        self,
        identity: CoinIdentity,
        platform: Platform | None = None,
        runner: ProcessRunner | None = None,
        bin_folder: Path | None = None,
        console: Console | None = None,
        sleep: Callable[[float], None] = time.sleep,
        stop_attempts: int = STOP_ATTEMPTS,
        stop_interval: float = STOP_INTERVAL,
        banner_line_limit: int = BANNER_LINE_LIMIT,
        banner_timeout: float = BANNER_TIMEOUT,
        raise_on_stop_timeout: bool = True,
    ):
        self.identity = CoinIdentity(identity)
        self.platform = platform or detect_platform()
        self.runner = runner or ProcessRunner()
        self.bin_folder = bin_folder or get_apps_bin_folder(self.identity, self.platform)
        self.console = console or Console()
        self.sleep = sleep
        self.stop_attempts = stop_attempts
        self.stop_interval = stop_interval
        self.banner_line_limit = banner_line_limit
        self.banner_timeout = banner_timeout
        self.raise_on_stop_timeout = raise_on_stop_timeout
        self._lock = _lock_for(self.identity)
        self._state = DaemonState.NOT_RUNNING

    @property
    def coin(self):
        return get_coin(self.identity)

    @property
    def state(self) -> DaemonState:
        return self._state

    @property
    def binary_name(self) -> str:
        return daemon_binary_name(self.identity, self.platform)

    @property
    def daemon_path(self) -> Path:
        return self.bin_folder / self.binary_name

    @property
    def cli_path(self) -> Path:
        return self.bin_folder / cli_binary_name(self.identity, self.platform)

    def _transition(self, target: DaemonState) -> None:
        if target == self._state:
            return
        if not self._state.can_transition_to(target):
            raise InvalidTransitionError(self._state, target)
        logger.info(f"{self.binary_name}: {self._state.value} -> {target.value}")
        self._state = target

    def find_process(self) -> ProcessHandle | None:
        """Scan the process table for the daemon and sync the state with what was seen.

        Raises:
            ProcessEnumerationError: If the process table cannot be read.
        """
        handle = self.runner.find_process(self.binary_name)
        if handle and self._state in (DaemonState.NOT_RUNNING, DaemonState.STOPPED_CONFIRMED):
            self._transition(DaemonState.READY)
        elif handle is None and self._state == DaemonState.READY:
            self._transition(DaemonState.NOT_RUNNING)
        return handle

    def is_running(self) -> tuple[bool, int]:
        """Return (running, pid); pid is 0 when the daemon is not running."""
        handle = self.find_process()
        if handle is None:
            return False, 0
        return True, handle.pid

    def start(self, display_progress: bool = False) -> None:
        """Start the daemon unless it is already running.

        Off Windows, waits for the startup banner on the daemon's stdout,
        reading at most ``banner_line_limit`` lines within ``banner_timeout``
        seconds. A daemon that misses the banner is terminated.

        Raises:
            CommandExecutionError: If the daemon binary cannot be executed.
            StartupBannerMismatchError: If the banner was not seen in time.
        """
        with self._lock:
            running, pid = self.is_running()
            if running:
                logger.debug(f"{self.binary_name} already running (PID {pid})")
                return

            self._transition(DaemonState.STARTING)
            try:
                if self.platform == Platform.WINDOWS:
                    self.runner.start_background(self.daemon_path)
                else:
                    if display_progress:
                        self.console.print(f"Attempting to run the {self.binary_name} daemon...")
                    self._wait_for_banner()
            except DaemonError:
                self._transition(DaemonState.NOT_RUNNING)
                raise

            self._transition(DaemonState.READY)

    def _wait_for_banner(self) -> None:
        banner = self.coin.startup_banner
        proc = self.runner.spawn([str(self.daemon_path)])
        pending: queue.Queue = queue.Queue()
        matched = threading.Event()
        threading.Thread(target=_pump, args=(proc.stdout, pending, matched), daemon=True).start()

        deadline = time.monotonic() + self.banner_timeout
        lines: list[str] = []
        while len(lines) < self.banner_line_limit:
            try:
                line = pending.get(timeout=max(deadline - time.monotonic(), 0))
            except queue.Empty:
                logger.error(f"{self.binary_name} printed no banner within {self.banner_timeout}s")
                break
            if line is None:
                break
            line = line.strip()
            lines.append(line)
            if line == banner:
                matched.set()
                logger.info(f"{self.binary_name} reported '{banner}'")
                return

        matched.set()
        logger.error(f"{self.binary_name} did not report '{banner}' in {len(lines)} line(s)")
        self._abandon(proc)
        raise StartupBannerMismatchError(banner, lines)

    def _abandon(self, proc) -> None:
        """Terminate a daemon that failed its startup check and release its pipe."""
        proc.terminate()
        try:
            proc.wait(timeout=TERMINATE_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning(f"{self.binary_name} ignored terminate; killing it")
            proc.kill()
            proc.wait()
        proc.stdout.close()

    def stop(self) -> None:
        """Ask the daemon to stop and wait until it leaves the process table.

        Raises:
            DaemonError: If the stop command itself fails.
            StopTimedOutError: If the daemon is still running once the polling
                budget is spent (unless ``raise_on_stop_timeout`` is False).
        """
        with self._lock:
            handle = self.find_process()
            if handle is None:
                return

            self._transition(DaemonState.STOP_REQUESTED)
            try:
                result = self.runner.run(
                    [str(self.cli_path), "stop"], timeout=STOP_COMMAND_TIMEOUT
                )
            except DaemonError:
                self._transition(DaemonState.READY)
                raise
            if not result.ok:
                self._transition(DaemonState.READY)
                raise DaemonError(f"Unable to stop {self.binary_name}: {result.output.strip()}")

            display = WaitingDisplay(
                f"Waiting for {self.binary_name} server to stop", self.console, frames=BAR_FRAMES
            )
            try:
                for attempt in range(1, self.stop_attempts + 1):
                    handle = self.runner.find_process(self.binary_name)
                    if handle is None:
                        self._transition(DaemonState.STOPPED_CONFIRMED)
                        return
                    display.update(attempt, self.stop_attempts)
                    self.sleep(self.stop_interval)
            except DaemonError:
                self._transition(DaemonState.READY)
                raise
            finally:
                display.finish()

            self._transition(DaemonState.READY)
            if self.raise_on_stop_timeout:
                raise StopTimedOutError(handle.pid, self.stop_attempts, self.stop_interval)
            logger.warning(
                f"{self.binary_name} (PID {handle.pid}) still running after "
                f"{self.stop_attempts} checks; reporting success"
            )

    def status(self) -> DaemonInfo:
        handle = self.find_process()
        return DaemonInfo(
            state=self._state,
            coin_name=self.coin.coin_name,
            binary_name=self.binary_name,
            pid=handle.pid if handle else None,
        )

    def run_cli(
        self,
        command: str,
        *values: str,
        waiting_message: str = DEFAULT_WAITING_MESSAGE,
        attempts: int = DEFAULT_ATTEMPTS,
        display_progress: bool = True,
    ) -> str:
        """Run a coin CLI command against this daemon with the bounded retry."""
        return run_cli_command(
            self.cli_path,
            command,
            waiting_message,
            attempts,
            values=values,
            runner=self.runner,
            sleep=self.sleep,
            display=WaitingDisplay(waiting_message, self.console, enabled=display_progress),
        )


def is_app_cli_running(
    identity: CoinIdentity,
    platform: Platform | None = None,
    runner: ProcessRunner | None = None,
) -> ProcessHandle | None:
    """Find the wallet tool's CLI front-end (e.g. godivi) in the process table."""
    platform = platform or detect_platform()
    runner = runner or ProcessRunner()
    return runner.find_process(app_cli_binary_name(identity, platform))


def is_app_server_running(
    identity: CoinIdentity,
    platform: Platform | None = None,
    runner: ProcessRunner | None = None,
) -> ProcessHandle | None:
    """Find the wallet tool's server (e.g. godivis) in the process table."""
    platform = platform or detect_platform()
    runner = runner or ProcessRunner()
    return runner.find_process(app_server_binary_name(identity, platform))


def start_app_server(
    identity: CoinIdentity,
    platform: Platform | None = None,
    runner: ProcessRunner | None = None,
    bin_folder: Path | None = None,
) -> None:
    """Start the wallet tool's server unless it is already running. Fire-and-forget."""
    platform = platform or detect_platform()
    runner = runner or ProcessRunner()
    if is_app_server_running(identity, platform, runner):
        return
    path = (bin_folder or get_apps_bin_folder(identity, platform)) / app_server_binary_name(
        identity, platform
    )
    if platform == Platform.WINDOWS:
        runner.start_background(path)
    else:
        runner.spawn([str(path)])
    logger.info(f"Started {get_coin(identity).app_server_name}")
