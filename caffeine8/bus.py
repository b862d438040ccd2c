import logging
from collections.abc import Callable
from functools import cached_property

try:
    import dbus
    from dbus.exceptions import DBusException
except ImportError:
    dbus = None
    DBusException = None
    print("DBus is not available. Inhibitors will not work.")

logger = logging.getLogger(__name__)

DBUS_UNAVAILABLE = "DBus is not available."


class BusClient:
    """Holds one private bus connection, opened on first use and reused."""

    bus_label = "session"

    def __init__(self, bus_factory: Callable | None = None) -> None:
        self._bus_factory = bus_factory

    def _open_bus(self) -> "dbus.bus.BusConnection":
        if self.bus_label == "system":
            return dbus.SystemBus(private=True)
        return dbus.SessionBus(private=True)

    @cached_property
    def bus(self) -> "dbus.bus.BusConnection":
        # a failed connect is not cached, the next acquire retries
        if self._bus_factory is not None:
            return self._bus_factory()
        return self._open_bus()

    @property
    def connected(self) -> bool:
        return "bus" in self.__dict__

    def connect(self) -> str | None:
        """Open the connection if needed, returning an error message on failure."""
        if dbus is None:
            return DBUS_UNAVAILABLE
        try:
            bus = self.bus
        except DBusException as e:
            return f"Failed to connect to {self.bus_label} bus: {e}"
        if bus is None:
            self.__dict__.pop("bus", None)
            return f"Failed to obtain {self.bus_label} DBus connection."
        return None

    def close(self) -> None:
        bus = self.__dict__.pop("bus", None)
        if bus is None:
            return
        try:
            bus.close()
        except DBusException as e:
            logger.debug("Closing %s bus failed: %s", self.bus_label, e)
