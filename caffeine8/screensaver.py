import logging

from .bus import BusClient, DBusException, dbus
from .inhibitors import AcquireResult

logger = logging.getLogger(__name__)

SCREEN_SAVER_SERVICES = [
    ("org.freedesktop.ScreenSaver", "/ScreenSaver"),
    ("org.mate.ScreenSaver", "/ScreenSaver"),
]


class ScreenSaverClient(BusClient):
    bus_label = "session"

    def __init__(self, app_name: str, reason: str, bus_factory=None) -> None:
        super().__init__(bus_factory)
        self.app_name = app_name
        self.reason = reason
        self.cookie = 0
        self._service = None

    def _find_screen_saver(self):
        errors = []
        for name, path in SCREEN_SAVER_SERVICES:
            try:
                return name, self.bus.get_object(name, path)
            except DBusException as e:
                errors.append(f"{name}: {e}")
        raise LookupError("No screen saver interface found (" + "; ".join(errors) + ")")

    def acquire(self) -> AcquireResult:
        if self.cookie:
            return AcquireResult(grant=self.cookie)

        error = self.connect()
        if error:
            return AcquireResult(error=error)

        try:
            if self._service is None:
                self._service = self._find_screen_saver()
            interface, saver = self._service
            reply = saver.Inhibit(self.app_name, self.reason, dbus_interface=interface)
        except LookupError as e:
            return AcquireResult(error=str(e))
        except DBusException as e:
            return AcquireResult(error=f"ScreenSaver.Inhibit failed: {e}")

        if reply is None:
            return AcquireResult(error="ScreenSaver.Inhibit returned null reply.")
        try:
            cookie = int(reply)
        except (TypeError, ValueError):
            return AcquireResult(error=f"Unable to parse ScreenSaver.Inhibit reply: {reply!r}")
        if cookie <= 0:
            return AcquireResult(error="ScreenSaver.Inhibit returned no cookie.")

        self.cookie = cookie
        logger.debug("Screen saver inhibitor acquired. Cookie=%d", cookie)
        return AcquireResult(grant=cookie)

    def release(self) -> None:
        if not self.cookie or self._service is None or not self.connected:
            self.cookie = 0
            return

        interface, saver = self._service
        try:
            saver.UnInhibit(dbus.UInt32(self.cookie), dbus_interface=interface)
        except DBusException as e:
            logger.debug("ScreenSaver.UnInhibit failed: %s", e)

        self.cookie = 0
        logger.debug("Screen saver inhibitor released.")

    def close(self) -> None:
        self._service = None
        super().close()
