"""Tests for the daemon lifecycle controller and platform resolution."""

import sys
import threading
from unittest.mock import patch

import pytest

from walletkit.coins.registry import CoinIdentity, Platform
from walletkit.daemon.base import (
    CommandExecutionError,
    DaemonError,
    DaemonState,
    InvalidTransitionError,
    ProcessEnumerationError,
    ProcessHandle,
    StartupBannerMismatchError,
    StopTimedOutError,
)
from walletkit.daemon.controller import (
    DaemonController,
    is_app_cli_running,
    is_app_server_running,
    start_app_server,
)
from walletkit.daemon.resolve import (
    UnsupportedPlatformError,
    detect_platform,
    get_apps_bin_folder,
    get_coin_home_folder,
)


def make_controller(runner, tmp_path, sleeps, console, platform=Platform.LINUX, **kwargs):
    return DaemonController(
        CoinIdentity.DIVI,
        platform=platform,
        runner=runner,
        bin_folder=tmp_path,
        console=console,
        sleep=sleeps.append,
        **kwargs,
    )


class TestDetectPlatform:
    def test_linux(self):
        with (
            patch.object(sys, "platform", "linux"),
            patch("walletkit.daemon.resolve._platform.machine", return_value="x86_64"),
        ):
            assert detect_platform() == Platform.LINUX

    def test_arm(self):
        with (
            patch.object(sys, "platform", "linux"),
            patch("walletkit.daemon.resolve._platform.machine", return_value="armv7l"),
        ):
            assert detect_platform() == Platform.ARM

    def test_aarch64_is_arm(self):
        with (
            patch.object(sys, "platform", "linux"),
            patch("walletkit.daemon.resolve._platform.machine", return_value="aarch64"),
        ):
            assert detect_platform() == Platform.ARM

    def test_windows(self):
        with patch.object(sys, "platform", "win32"):
            assert detect_platform() == Platform.WINDOWS

    def test_macos_raises(self):
        with patch.object(sys, "platform", "darwin"):
            with pytest.raises(UnsupportedPlatformError):
                detect_platform()


class TestFolders:
    def test_unix_bin_folder(self, tmp_path):
        with patch("walletkit.daemon.resolve.Path.home", return_value=tmp_path):
            assert get_apps_bin_folder(CoinIdentity.DIVI, Platform.LINUX) == tmp_path / "godivi"

    def test_windows_bin_folder(self, tmp_path):
        with patch("walletkit.daemon.resolve.Path.home", return_value=tmp_path):
            result = get_apps_bin_folder(CoinIdentity.PHORE, Platform.WINDOWS)
            assert result == tmp_path / "appdata" / "roaming" / "BoxPhore"

    def test_coin_home_folder(self, tmp_path):
        with patch("walletkit.daemon.resolve.Path.home", return_value=tmp_path):
            assert get_coin_home_folder(CoinIdentity.PIVX, Platform.ARM) == tmp_path / ".pivx"


class TestDaemonState:
    def test_allowed_transitions(self):
        assert DaemonState.NOT_RUNNING.can_transition_to(DaemonState.STARTING)
        assert DaemonState.READY.can_transition_to(DaemonState.STOP_REQUESTED)
        assert DaemonState.STOP_REQUESTED.can_transition_to(DaemonState.STOPPED_CONFIRMED)

    def test_disallowed_transitions(self):
        assert not DaemonState.NOT_RUNNING.can_transition_to(DaemonState.STOP_REQUESTED)
        assert not DaemonState.STARTING.can_transition_to(DaemonState.STOPPED_CONFIRMED)
        assert not DaemonState.STOP_REQUESTED.can_transition_to(DaemonState.STARTING)

    def test_controller_rejects_invalid_transition(self, runner, tmp_path, sleeps, quiet_console):
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)
        with pytest.raises(InvalidTransitionError) as exc:
            controller._transition(DaemonState.STOPPED_CONFIRMED)
        assert exc.value.current == DaemonState.NOT_RUNNING
        assert controller.state == DaemonState.NOT_RUNNING


class TestIsRunning:
    def test_not_running_is_not_an_error(self, runner, tmp_path, sleeps, quiet_console):
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)
        assert controller.is_running() == (False, 0)

    def test_running_reports_pid(self, runner, tmp_path, sleeps, quiet_console, divi_handle):
        runner.default_handle = divi_handle
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)
        assert controller.is_running() == (True, 4242)
        assert controller.state == DaemonState.READY

    def test_searches_platform_binary_name(self, runner, tmp_path, sleeps, quiet_console):
        controller = make_controller(
            runner, tmp_path, sleeps, quiet_console, platform=Platform.WINDOWS
        )
        controller.is_running()
        assert runner.find_calls == ["divid.exe"]

    def test_enumeration_failure_propagates(self, runner, tmp_path, sleeps, quiet_console):
        runner.find_results = [ProcessEnumerationError("denied")]
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)
        with pytest.raises(ProcessEnumerationError):
            controller.is_running()


class TestStart:
    def test_banner_on_first_line(self, runner, tmp_path, sleeps, quiet_console):
        runner.spawn_output = "DIVI server starting\n"
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)

        controller.start()

        assert runner.spawned == [[str(tmp_path / "divid")]]
        assert controller.state == DaemonState.READY

    @pytest.mark.parametrize("output", [
        "Loading config\nDIVI server starting\n",
        "Loading config\nChecking datadir\nDIVI server starting\n",
    ])
    def test_banner_within_line_limit(self, runner, tmp_path, sleeps, quiet_console, output):
        runner.spawn_output = output
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)

        controller.start()

        assert controller.state == DaemonState.READY

    def test_banner_after_line_limit_fails(self, runner, tmp_path, sleeps, quiet_console):
        runner.spawn_output = "one\ntwo\nthree\nDIVI server starting\n"
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)

        with pytest.raises(StartupBannerMismatchError) as exc:
            controller.start()

        assert exc.value.lines == ["one", "two", "three"]
        assert controller.state == DaemonState.NOT_RUNNING
        proc = runner.processes[0]
        assert proc.terminated
        assert proc.waited
        assert proc.stdout.closed

    def test_banner_match_leaves_daemon_running(self, runner, tmp_path, sleeps, quiet_console):
        runner.spawn_output = "DIVI server starting\nmore log output\n"
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)

        controller.start()

        assert not runner.processes[0].terminated

    def test_silent_daemon_times_out(self, runner, tmp_path, sleeps, quiet_console, silent_stream):
        runner.spawn_stream = silent_stream
        controller = make_controller(runner, tmp_path, sleeps, quiet_console, banner_timeout=0.05)

        with pytest.raises(StartupBannerMismatchError) as exc:
            controller.start()

        assert exc.value.lines == []
        assert controller.state == DaemonState.NOT_RUNNING
        assert runner.processes[0].terminated
        assert silent_stream.closed.is_set()

    def test_silent_daemon_releases_coin_lock(
        self, runner, tmp_path, sleeps, quiet_console, silent_stream
    ):
        runner.spawn_stream = silent_stream
        controller = make_controller(runner, tmp_path, sleeps, quiet_console, banner_timeout=0.05)
        errors = []

        def attempt():
            try:
                controller.start()
            except StartupBannerMismatchError as e:
                errors.append(e)

        worker = threading.Thread(target=attempt)
        worker.start()
        worker.join(timeout=5)

        assert not worker.is_alive()
        assert len(errors) == 1
        assert controller._lock.acquire(timeout=1)
        controller._lock.release()

    def test_output_ends_before_banner(self, runner, tmp_path, sleeps, quiet_console):
        runner.spawn_output = "Error: Cannot obtain a lock on data directory\n"
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)

        with pytest.raises(StartupBannerMismatchError) as exc:
            controller.start()

        assert exc.value.lines == ["Error: Cannot obtain a lock on data directory"]

    @pytest.mark.parametrize("identity", list(CoinIdentity))
    def test_running_after_start_for_every_coin(self, identity, runner, tmp_path, sleeps, quiet_console):
        from walletkit.coins.registry import daemon_binary_name, get_coin

        name = daemon_binary_name(identity, Platform.LINUX)
        runner.spawn_output = f"{get_coin(identity).startup_banner}\n"
        runner.handle_after_spawn = ProcessHandle(pid=99, name=name)
        controller = DaemonController(
            identity, platform=Platform.LINUX, runner=runner, bin_folder=tmp_path,
            console=quiet_console, sleep=sleeps.append,
        )

        controller.start()

        assert controller.is_running() == (True, 99)
        assert set(runner.find_calls) == {name}

    def test_already_running_is_noop(self, runner, tmp_path, sleeps, quiet_console, divi_handle):
        runner.default_handle = divi_handle
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)

        controller.start()
        controller.start()

        assert runner.spawned == []
        assert controller.state == DaemonState.READY

    def test_windows_fire_and_forget(self, runner, tmp_path, sleeps, quiet_console):
        controller = make_controller(
            runner, tmp_path, sleeps, quiet_console, platform=Platform.WINDOWS
        )

        controller.start()

        assert runner.background == [tmp_path / "divid.exe"]
        assert runner.spawned == []
        assert controller.state == DaemonState.READY

    def test_exec_failure_resets_state(self, runner, tmp_path, sleeps, quiet_console):
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)

        with patch.object(runner, "spawn", side_effect=CommandExecutionError("missing")):
            with pytest.raises(CommandExecutionError):
                controller.start()

        assert controller.state == DaemonState.NOT_RUNNING

    def test_concurrent_starts_launch_once(self, runner, tmp_path, sleeps, quiet_console, divi_handle):
        runner.spawn_output = "DIVI server starting\n"
        runner.handle_after_spawn = divi_handle
        controllers = [
            make_controller(runner, tmp_path, sleeps, quiet_console) for _ in range(4)
        ]

        threads = [threading.Thread(target=c.start) for c in controllers]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(runner.spawned) == 1


class TestStop:
    def test_not_running_scans_once(self, runner, tmp_path, sleeps, quiet_console):
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)

        controller.stop()

        assert len(runner.find_calls) == 1
        assert runner.run_calls == []
        assert sleeps == []

    def test_stops_after_two_polls(self, runner, tmp_path, sleeps, quiet_console, divi_handle):
        runner.find_results = [divi_handle, divi_handle, divi_handle, None]
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)

        controller.stop()

        assert runner.run_calls == [[str(tmp_path / "divi-cli"), "stop"]]
        assert runner.run_timeouts == [60.0]
        assert sleeps == [3.0, 3.0]
        assert controller.state == DaemonState.STOPPED_CONFIRMED
        assert "stop =>" in quiet_console.file.getvalue()

    def test_scan_failure_while_polling_resets_state(
        self, runner, tmp_path, sleeps, quiet_console, divi_handle
    ):
        runner.find_results = [divi_handle, ProcessEnumerationError("access denied")]
        runner.spawn_output = "DIVI server starting\n"
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)

        with pytest.raises(ProcessEnumerationError):
            controller.stop()

        assert controller.state == DaemonState.READY
        controller.start()
        assert controller.state == DaemonState.READY
        assert len(runner.spawned) == 1

    def test_timeout_raises(self, runner, tmp_path, sleeps, quiet_console, divi_handle):
        runner.default_handle = divi_handle
        controller = make_controller(runner, tmp_path, sleeps, quiet_console, stop_attempts=5)

        with pytest.raises(StopTimedOutError) as exc:
            controller.stop()

        assert exc.value.pid == 4242
        assert exc.value.attempts == 5
        assert sleeps == [3.0] * 5
        assert controller.state == DaemonState.READY

    def test_default_budget_is_fifty_polls(self, runner, tmp_path, sleeps, quiet_console, divi_handle):
        runner.default_handle = divi_handle
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)

        with pytest.raises(StopTimedOutError):
            controller.stop()

        assert len(sleeps) == 50

    def test_timeout_compat_reports_success(self, runner, tmp_path, sleeps, quiet_console, divi_handle):
        runner.default_handle = divi_handle
        controller = make_controller(
            runner, tmp_path, sleeps, quiet_console, stop_attempts=3, raise_on_stop_timeout=False
        )

        controller.stop()

        assert len(sleeps) == 3

    def test_stop_command_failure(self, runner, tmp_path, sleeps, quiet_console, divi_handle):
        runner.default_handle = divi_handle
        runner.run_results = [("error: couldn't connect to server", 1)]
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)

        with pytest.raises(DaemonError, match="Unable to stop divid"):
            controller.stop()

        assert controller.state == DaemonState.READY
        assert sleeps == []

    def test_start_after_stop(self, runner, tmp_path, sleeps, quiet_console, divi_handle):
        runner.find_results = [divi_handle, None, None]
        runner.spawn_output = "DIVI server starting\n"
        controller = make_controller(runner, tmp_path, sleeps, quiet_console)

        controller.stop()
        controller.start()

        assert controller.state == DaemonState.READY
        assert len(runner.spawned) == 1


class TestStatus:
    def test_status_running(self, runner, tmp_path, sleeps, quiet_console, divi_handle):
        runner.default_handle = divi_handle
        info = make_controller(runner, tmp_path, sleeps, quiet_console).status()

        assert info.state == DaemonState.READY
        assert info.coin_name == "Divi"
        assert info.binary_name == "divid"
        assert info.pid == 4242

    def test_status_stopped(self, runner, tmp_path, sleeps, quiet_console):
        info = make_controller(runner, tmp_path, sleeps, quiet_console).status()

        assert info.state == DaemonState.NOT_RUNNING
        assert info.pid is None


class TestAppServer:
    def test_cli_lookup_uses_tool_binary(self, runner):
        runner.default_handle = ProcessHandle(pid=8, name="boxphore.exe")
        handle = is_app_cli_running(CoinIdentity.PHORE, Platform.WINDOWS, runner)
        assert handle.pid == 8
        assert runner.find_calls == ["boxphore.exe"]

    def test_server_lookup_uses_tool_binary(self, runner):
        runner.default_handle = ProcessHandle(pid=7, name="godivis")
        handle = is_app_server_running(CoinIdentity.DIVI, Platform.LINUX, runner)
        assert handle.pid == 7
        assert runner.find_calls == ["godivis"]

    def test_start_app_server_when_missing(self, runner, tmp_path):
        start_app_server(CoinIdentity.DIVI, Platform.LINUX, runner, bin_folder=tmp_path)
        assert runner.spawned == [[str(tmp_path / "godivis")]]

    def test_start_app_server_already_running(self, runner, tmp_path):
        runner.default_handle = ProcessHandle(pid=7, name="godivis")
        start_app_server(CoinIdentity.DIVI, Platform.LINUX, runner, bin_folder=tmp_path)
        assert runner.spawned == []


class TestGetController:
    def test_uses_config_coin(self):
        from walletkit.config.schema import new_config
        from walletkit.daemon import get_controller

        with patch("walletkit.daemon.detect_platform", return_value=Platform.LINUX):
            controller = get_controller(new_config(CoinIdentity.PHORE))

        assert controller.binary_name == "phored"
        assert controller.platform == Platform.LINUX
