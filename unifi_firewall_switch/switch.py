import threading
from concurrent.futures import Executor, Future
from typing import Any, Optional

from .capabilities import FirewallCapability
from .config import EntryConfig
from .exceptions import UnifiControllerError
from .host import PlatformAccessory, CHARACTERISTIC_NAME, CHARACTERISTIC_ON
from .logging import get_logger
from .toggle import to_remote_value, to_switch_value

logger = get_logger(__name__)

MANUFACTURER = "Ubiquiti"


class FirewallSwitch:
    """
    Live handler for one switch accessory.

    GET answers from the last known value and schedules a refresh on the
    executor; the refreshed value is pushed to the host once it arrives. SET
    blocks until the controller confirmed the write, and the last known value
    only changes when it did. A refresh that overlaps a confirmed write is
    discarded.
    """

    def __init__(
        self,
        accessory: PlatformAccessory,
        capability: FirewallCapability,
        remote: Any,
        entry: EntryConfig,
        executor: Executor,
    ):
        self.accessory = accessory
        self.capability = capability
        self.remote = remote
        self.entry = entry
        self.inverted = entry.inverted
        self._executor = executor
        self._value = to_switch_value(remote.enabled, self.inverted)
        self._lock = threading.Lock()
        self._writes = 0

        accessory.set_information(
            MANUFACTURER, capability.model, entry.id or remote.id)
        accessory.update_characteristic(CHARACTERISTIC_NAME, accessory.display_name)
        accessory.on_get(CHARACTERISTIC_ON, self.get_on)
        accessory.on_set(CHARACTERISTIC_ON, self.set_on)
        accessory.update_characteristic(CHARACTERISTIC_ON, self._value)

    @property
    def value(self) -> bool:
        return self._value

    def get_on(self) -> bool:
        """Return the last known switch state and refresh it in the background."""
        self.schedule_refresh()
        logger.debug(
            f"Get {self.capability.describe(self.remote)} -> {self._value} (Inverted? {self.inverted})")
        return self._value

    def schedule_refresh(self) -> Optional[Future]:
        try:
            return self._executor.submit(self.refresh)
        except RuntimeError as e:
            # Executor already shut down
            logger.debug(f"Skipping refresh of {self.accessory.display_name}: {e}")
            return None

    def refresh(self) -> Optional[bool]:
        """
        Re-read the remote state and push it to the host.

        Returns:
            The refreshed switch value, or None if the controller could not be read.
        """
        writes = self._writes
        try:
            remote, enabled = self.capability.read_enabled(self.remote)
        except UnifiControllerError as e:
            logger.warning(
                f"Could not refresh {self.accessory.display_name}: {e}")
            return None

        with self._lock:
            if self._writes != writes:
                logger.debug(
                    f"Discarding refresh of {self.accessory.display_name}, it was written meanwhile")
                return self._value
            self.remote = remote
            self._value = to_switch_value(enabled, self.inverted)
        self.accessory.update_characteristic(CHARACTERISTIC_ON, self._value)
        return self._value

    def set_on(self, value: Any) -> None:
        """
        Apply a switch change on the controller.

        Raises:
            UnifiControllerError: If the write failed; the switch keeps its old value.
        """
        switch_value = bool(value)
        target = to_remote_value(switch_value, self.inverted)
        try:
            remote = self.capability.write_enabled(self.remote, target)
        except UnifiControllerError as e:
            logger.error(
                f"Failed to update {self.capability.describe(self.remote)}: {e}")
            raise

        with self._lock:
            self.remote = remote
            self._value = switch_value
            self._writes += 1
        logger.debug(
            f"Set {self.capability.describe(self.remote)}: {switch_value} (Inverted? {self.inverted})")
