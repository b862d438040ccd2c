"""Signal-driven control loop of the inhibitor daemon.

Signal handlers only raise flags on :class:`ControlFlags`. Everything else
(bus calls, status writes) happens on the loop, which polls the flags once
per interval.
"""
import logging
import signal
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .inhibitors import InhibitorSet
from .login1 import Login1Client
from .screensaver import ScreenSaverClient
from .status import StatusPublisher
from .utils import DEFAULT_POLL_INTERVAL

logger = logging.getLogger(__name__)

APP_NAME = "caffeine8"
SCREEN_SAVER_REASON = "caffeine8 prevents automatic locking"
SLEEP_REASON = "caffeine8 is preventing automatic sleep"


@dataclass
class ControlFlags:
    terminate: bool = False
    acquire: bool = False
    release: bool = False

    def handle_signal(self, signum, frame=None) -> None:
        if signum in (signal.SIGTERM, signal.SIGINT):
            self.terminate = True
        elif signum == signal.SIGUSR1:
            self.acquire = True
        elif signum == signal.SIGUSR2:
            self.release = True


@dataclass
class DaemonState:
    inhibitors: InhibitorSet
    flags: ControlFlags = field(default_factory=ControlFlags)
    poll_interval: float = DEFAULT_POLL_INTERVAL


def build_state(status_file: Path, debug: bool = False, poll_interval: float = DEFAULT_POLL_INTERVAL) -> DaemonState:
    inhibitors = InhibitorSet(
        screensaver=ScreenSaverClient(APP_NAME, SCREEN_SAVER_REASON),
        power=Login1Client(APP_NAME, SLEEP_REASON),
        publisher=StatusPublisher(status_file, debug=debug),
    )
    return DaemonState(inhibitors=inhibitors, poll_interval=poll_interval)


def install_signal_handlers(flags: ControlFlags) -> None:
    for signum in (signal.SIGTERM, signal.SIGINT, signal.SIGUSR1, signal.SIGUSR2):
        signal.signal(signum, flags.handle_signal)


def process_requests(state: DaemonState) -> None:
    flags = state.flags
    inhibitors = state.inhibitors

    if flags.acquire:
        flags.acquire = False
        if not inhibitors.acquire_all():
            logger.debug("Acquire request failed; inhibitors remain inactive.")

    if flags.release:
        flags.release = False
        inhibitors.request_release()


def run_loop(state: DaemonState, sleep: Callable[[float], None] = time.sleep) -> None:
    inhibitors = state.inhibitors
    try:
        if not inhibitors.acquire_all():
            logger.debug("Initial inhibitor acquisition failed.")

        while not state.flags.terminate:
            process_requests(state)
            sleep(state.poll_interval)

        logger.debug("Termination requested, cleaning up inhibitors.")
    finally:
        inhibitors.shutdown()
