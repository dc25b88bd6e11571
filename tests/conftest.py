"""Shared fakes: a scripted process runner and a recording sleep."""

import io
import threading

import pytest
from rich.console import Console

from walletkit.daemon.base import CommandResult, ProcessHandle


class SilentStream:
    """Daemon stdout that never yields a line until it is closed."""

    def __init__(self):
        self.closed = threading.Event()

    def __iter__(self):
        self.closed.wait()
        return iter(())

    def close(self):
        self.closed.set()


class FakeProcess:
    """Popen stand-in that records how it was shut down."""

    def __init__(self, stdout):
        self.stdout = stdout
        self.terminated = False
        self.killed = False
        self.waited = False

    def terminate(self):
        self.terminated = True

    def kill(self):
        self.killed = True

    def wait(self, timeout=None):
        self.waited = True
        return 0


class FakeRunner:
    """Stands in for ProcessRunner. Nothing is spawned or scanned for real.

    ``find_results`` is consumed one entry per scan, then ``default_handle``
    is returned. ``run_results`` is consumed one entry per run, and its last
    entry repeats. Entries that are exceptions are raised.
    """

    def __init__(self):
        self.find_results = []
        self.default_handle = None
        self.find_calls = []
        self.run_results = [("", 0)]
        self.run_calls = []
        self.run_timeouts = []
        self.spawn_output = ""
        self.spawn_stream = None
        self.spawned = []
        self.processes = []
        self.background = []
        self.handle_after_spawn = None

    def find_process(self, name):
        self.find_calls.append(name)
        result = self.find_results.pop(0) if self.find_results else self.default_handle
        if isinstance(result, Exception):
            raise result
        return result

    def run(self, args, timeout=None):
        self.run_calls.append(list(args))
        self.run_timeouts.append(timeout)
        entry = self.run_results.pop(0) if len(self.run_results) > 1 else self.run_results[0]
        if isinstance(entry, Exception):
            raise entry
        output, returncode = entry
        return CommandResult(args=list(args), output=output, returncode=returncode)

    def spawn(self, args):
        self.spawned.append(list(args))
        if self.handle_after_spawn is not None:
            self.default_handle = self.handle_after_spawn
        stdout = self.spawn_stream if self.spawn_stream is not None else io.StringIO(self.spawn_output)
        proc = FakeProcess(stdout)
        self.processes.append(proc)
        return proc

    def start_background(self, path):
        self.background.append(path)


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def quiet_console():
    return Console(file=io.StringIO(), force_terminal=False)


@pytest.fixture
def divi_handle():
    return ProcessHandle(pid=4242, name="divid")


@pytest.fixture
def silent_stream():
    stream = SilentStream()
    yield stream
    stream.close()
