import signal

import pytest

from caffeine8.daemon import (
    ControlFlags,
    DaemonState,
    build_state,
    install_signal_handlers,
    process_requests,
    run_loop,
)
from caffeine8.inhibitors import EXIT_MESSAGE, RELEASED_MESSAGE
from caffeine8.login1 import Login1Client
from caffeine8.screensaver import ScreenSaverClient
from caffeine8.status import read_status


class ScriptedSleep:
    """Replaces time.sleep; runs one action per poll, then terminates."""

    def __init__(self, state, *actions):
        self.state = state
        self.actions = list(actions)
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)
        if self.actions:
            self.actions.pop(0)(self.state.flags)
        else:
            self.state.flags.terminate = True


@pytest.fixture
def restore_signals():
    signums = (signal.SIGTERM, signal.SIGINT, signal.SIGUSR1, signal.SIGUSR2)
    saved = {signum: signal.getsignal(signum) for signum in signums}
    yield
    for signum, handler in saved.items():
        signal.signal(signum, handler)


@pytest.mark.parametrize(
    "signum, flag",
    [
        (signal.SIGTERM, "terminate"),
        (signal.SIGINT, "terminate"),
        (signal.SIGUSR1, "acquire"),
        (signal.SIGUSR2, "release"),
    ],
)
def test_signal_sets_only_its_flag(signum, flag):
    flags = ControlFlags()

    flags.handle_signal(signum)

    assert getattr(flags, flag) is True
    others = {"terminate", "acquire", "release"} - {flag}
    assert not any(getattr(flags, name) for name in others)


def test_installed_handlers_flag_intent(restore_signals):
    flags = ControlFlags()
    install_signal_handlers(flags)

    signal.raise_signal(signal.SIGUSR1)
    signal.raise_signal(signal.SIGUSR2)

    assert flags.acquire and flags.release
    assert not flags.terminate


def test_repeated_acquire_requests_coalesce(make_inhibitors):
    inhibitors, screensaver, power = make_inhibitors()
    state = DaemonState(inhibitors=inhibitors)

    for _ in range(3):
        state.flags.handle_signal(signal.SIGUSR1)
    process_requests(state)
    process_requests(state)

    assert screensaver.acquire_calls == 1
    assert power.acquire_calls == ["idle", "sleep"]
    assert state.flags.acquire is False
    assert inhibitors.active


def test_acquire_request_while_active_only_republishes(make_inhibitors, status_file):
    inhibitors, screensaver, _ = make_inhibitors()
    inhibitors.acquire_all()
    status_file.unlink()
    state = DaemonState(inhibitors=inhibitors)
    state.flags.acquire = True

    process_requests(state)

    assert screensaver.acquire_calls == 1
    assert read_status(status_file).active is True


def test_release_request_while_inactive(make_inhibitors, status_file):
    inhibitors, screensaver, power = make_inhibitors()
    state = DaemonState(inhibitors=inhibitors)
    state.flags.release = True

    process_requests(state)

    assert state.flags.release is False
    assert screensaver.release_calls == 0
    assert power.release_calls == []
    assert "already inactive" in read_status(status_file).message


def test_loop_acquires_then_releases_on_exit(make_inhibitors, status_file):
    inhibitors, screensaver, power = make_inhibitors()
    state = DaemonState(inhibitors=inhibitors, poll_interval=0.5)
    sleep = ScriptedSleep(state)

    run_loop(state, sleep=sleep)

    assert sleep.calls == [0.5]
    assert screensaver.cookie == 0
    assert power.held == {}
    record = read_status(status_file)
    assert record.active is False
    assert record.message == EXIT_MESSAGE


def test_failed_initial_acquire_keeps_daemon_running(make_inhibitors, status_file):
    inhibitors, screensaver, power = make_inhibitors(power_errors={"sleep": "denied"})
    state = DaemonState(inhibitors=inhibitors)

    def retry(flags):
        power.errors.clear()
        flags.acquire = True

    sleep = ScriptedSleep(state, lambda flags: None, retry, lambda flags: None)

    run_loop(state, sleep=sleep)

    assert len(sleep.calls) == 4
    assert screensaver.acquire_calls == 2
    assert read_status(status_file).message == EXIT_MESSAGE


def test_release_then_terminate(make_inhibitors, status_file):
    inhibitors, _, _ = make_inhibitors()
    state = DaemonState(inhibitors=inhibitors)

    def release(flags):
        flags.release = True

    run_loop(state, sleep=ScriptedSleep(state, release))

    record = read_status(status_file)
    assert record.active is False
    assert record.message == RELEASED_MESSAGE


def test_terminate_is_checked_before_requests(make_inhibitors):
    inhibitors, screensaver, _ = make_inhibitors()
    state = DaemonState(inhibitors=inhibitors)

    def terminate_and_acquire(flags):
        flags.release = True
        flags.acquire = True
        flags.terminate = True

    run_loop(state, sleep=ScriptedSleep(state, terminate_and_acquire))

    assert screensaver.acquire_calls == 1
    assert not inhibitors.active


def test_build_state_wires_real_clients(status_file):
    state = build_state(status_file, debug=True, poll_interval=2.0)

    assert isinstance(state.inhibitors.screensaver, ScreenSaverClient)
    assert isinstance(state.inhibitors.power, Login1Client)
    assert state.inhibitors.publisher.debug is True
    assert state.poll_interval == 2.0
    assert not state.inhibitors.active


def test_loop_releases_grants_when_interrupted_by_an_error(make_inhibitors, status_file):
    inhibitors, screensaver, power = make_inhibitors()
    state = DaemonState(inhibitors=inhibitors)

    def broken_sleep(seconds):
        raise RuntimeError("clock went away")

    with pytest.raises(RuntimeError):
        run_loop(state, sleep=broken_sleep)

    assert screensaver.cookie == 0
    assert power.held == {}
    record = read_status(status_file)
    assert record.active is False
    assert record.message == EXIT_MESSAGE
