import logging
import os

from .bus import BusClient, DBusException
from .inhibitors import AcquireResult

logger = logging.getLogger(__name__)

LOGIN1_BUS = "org.freedesktop.login1"
LOGIN1_OBJECT = "/org/freedesktop/login1"
LOGIN1_INTERFACE = "org.freedesktop.login1.Manager"

INHIBIT_MODE = "block"


class Login1Client(BusClient):
    """systemd-logind inhibitor locks, each held as an open file descriptor.

    logind keeps a lock for as long as its descriptor stays open, so
    releasing one is just closing the fd. Locks of different kinds ("idle",
    "sleep", ...) are independent and share one system bus connection.
    """

    bus_label = "system"

    def __init__(self, app_name: str, reason: str, bus_factory=None) -> None:
        super().__init__(bus_factory)
        self.app_name = app_name
        self.reason = reason
        self.fds: dict[str, int] = {}

    def fd(self, what: str) -> int:
        return self.fds.get(what, -1)

    def held(self, what: str) -> bool:
        return self.fd(what) >= 0

    def acquire(self, what: str) -> AcquireResult:
        if self.held(what):
            return AcquireResult(grant=self.fd(what))

        error = self.connect()
        if error:
            return AcquireResult(error=error)

        label = f"login1.Inhibit({what})"
        try:
            manager = self.bus.get_object(LOGIN1_BUS, LOGIN1_OBJECT)
            reply = manager.Inhibit(
                what,
                self.app_name,
                self.reason,
                INHIBIT_MODE,
                dbus_interface=LOGIN1_INTERFACE,
            )
        except DBusException as e:
            return AcquireResult(error=f"{label} failed: {e}")

        if reply is None:
            return AcquireResult(error=f"{label} returned null reply.")
        take = getattr(reply, "take", None)
        if take is None:
            return AcquireResult(error=f"{label} reply is not a UNIX FD.")

        fd = take()
        self.fds[what] = fd
        logger.debug("systemd inhibitor for %s acquired. FD=%d", what, fd)
        return AcquireResult(grant=fd)

    def release(self, what: str) -> None:
        fd = self.fds.pop(what, -1)
        if fd < 0:
            return
        try:
            os.close(fd)
        except OSError as e:
            logger.debug("Closing %s inhibitor fd %d failed: %s", what, fd, e)
        logger.debug("systemd inhibitor for %s released.", what)
