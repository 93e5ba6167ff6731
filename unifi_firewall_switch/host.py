"""
Interface between the platform and the home-automation host.

The host owns accessory persistence: it hands cached :class:`PlatformAccessory`
records back at startup and stores whatever the platform registers. The platform
only reads and updates the ``context`` dictionary and the characteristic handlers
of a record.
"""

from typing import Any, Callable, Dict, List, Protocol

CATEGORY_SWITCH = 8
CHARACTERISTIC_ON = "On"
CHARACTERISTIC_NAME = "Name"


class PlatformAccessory:
    """
    Host-side record of one exposed switch.

    Attributes:
        display_name: Name shown by the host.
        uuid: Stable identifier, derived from the configured entry.
        category: Host accessory category.
        context: Free-form, persisted payload owned by the platform.
        information: Manufacturer, model and serial number.
    """

    def __init__(self, display_name: str, uuid: str, category: int = CATEGORY_SWITCH):
        self.display_name = display_name
        self.uuid = uuid
        self.category = category
        self.context: Dict[str, Any] = {}
        self.information: Dict[str, str] = {}
        self.values: Dict[str, Any] = {}
        self._get_handlers: Dict[str, Callable[[], Any]] = {}
        self._set_handlers: Dict[str, Callable[[Any], None]] = {}

    def __repr__(self):
        return f"PlatformAccessory({self.display_name!r}, {self.uuid!r})"

    def set_information(self, manufacturer: str, model: str, serial_number: str) -> None:
        self.information = {
            "Manufacturer": manufacturer,
            "Model": model,
            "SerialNumber": serial_number,
        }

    def on_get(self, characteristic: str, handler: Callable[[], Any]) -> None:
        self._get_handlers[characteristic] = handler

    def on_set(self, characteristic: str, handler: Callable[[Any], None]) -> None:
        self._set_handlers[characteristic] = handler

    def get(self, characteristic: str) -> Any:
        """Called by the host to read a characteristic."""
        handler = self._get_handlers.get(characteristic)
        if handler is None:
            return self.values.get(characteristic)
        return handler()

    def set(self, characteristic: str, value: Any) -> None:
        """Called by the host to write a characteristic; the handler may raise."""
        handler = self._set_handlers.get(characteristic)
        if handler is not None:
            handler(value)
        self.values[characteristic] = value

    def update_characteristic(self, characteristic: str, value: Any) -> None:
        """Push a value to the host without being asked."""
        self.values[characteristic] = value


class HostAPI(Protocol):
    """What the platform needs from the host process."""

    def register_platform_accessories(
        self, plugin_name: str, platform_name: str, accessories: List[PlatformAccessory]
    ) -> None:
        ...

