"""Aggregate state of the screen saver, idle and sleep inhibitors.

The three grants are acquired as a unit: the set is active only when all of
them are held. A failed attempt releases whatever it did obtain before
returning, so the set never stays partially inhibited.
"""
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

POWER_KINDS = ("idle", "sleep")

ACTIVE_MESSAGE = "Inhibitors active (screen saver, idle, sleep)."
RELEASED_MESSAGE = "Inhibitors released by user request."
ALREADY_INACTIVE_MESSAGE = "Inhibitors already inactive."
EXIT_MESSAGE = "Inhibitors released (process exiting)."


@dataclass(frozen=True)
class AcquireResult:
    grant: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.grant is not None


class InhibitorSet:
    def __init__(self, screensaver, power, publisher) -> None:
        self.screensaver = screensaver
        self.power = power
        self.publisher = publisher
        self.active = False
        self.message = "NONE"

    def publish(self) -> None:
        self.publisher.publish(self.active, self.message)

    def set_message(self, message: str) -> None:
        self.message = message
        logger.debug(message)
        self.publish()

    def _attempts(self):
        yield "screen saver", self.screensaver.acquire
        for what in POWER_KINDS:
            yield what, lambda what=what: self.power.acquire(what)

    def acquire_all(self) -> bool:
        if self.active:
            logger.debug("Acquire request ignored; inhibitors already active.")
            self.publish()
            return True

        # every acquisition is attempted, one failure does not skip the rest
        results = [(name, attempt()) for name, attempt in self._attempts()]
        failed = [(name, result.error) for name, result in results if not result.ok]

        if not failed:
            self.active = True
            self.set_message(ACTIVE_MESSAGE)
            return True

        for name, result in results:
            if result.ok:
                logger.debug("Rolling back %s inhibitor.", name)
        self._release_grants()
        self._close_connections()
        self.active = False

        names = ", ".join(name for name, _ in failed)
        details = "; ".join(error for _, error in failed)
        self.set_message(f"Failed to acquire inhibitors ({names}): {details}")
        return False

    def _release_grants(self) -> None:
        self.screensaver.release()
        for what in POWER_KINDS:
            self.power.release(what)

    def _close_connections(self) -> None:
        self.screensaver.close()
        self.power.close()

    def release_all(self, message: str | None = None) -> None:
        """Release every held grant and close both bus connections.

        Safe to call when nothing is held: each release is then a no-op.
        The status is written once, carrying ``message`` when one is given.
        """
        self._release_grants()
        self._close_connections()
        self.active = False
        if message is not None:
            self.message = message
            logger.debug(message)
        self.publish()

    def request_release(self) -> bool:
        if not self.active:
            self.set_message(ALREADY_INACTIVE_MESSAGE)
            return False
        self.release_all(RELEASED_MESSAGE)
        return True

    def shutdown(self) -> None:
        self.release_all(EXIT_MESSAGE if self.active else None)
