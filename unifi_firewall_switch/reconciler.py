"""
Reconciliation of configured entries with host accessory records.

Every configured rule or policy ends up bound to exactly one host record. The
record's UUID is derived from the entry's identity, so a record cached by the
host in an earlier run is found again and reused instead of registered anew.
"""

from typing import Any, Callable, List, Optional, Sequence

from .capabilities import FirewallCapability
from .config import EntryConfig
from .exceptions import PolicyNotMatchedError, RuleNotFoundError
from .host import HostAPI, PlatformAccessory
from .logging import get_logger
from .switch import FirewallSwitch
from .utils import generate_uuid

logger = get_logger(__name__)

PLUGIN_NAME = "homebridge-unifi-firewall"
PLATFORM_NAME = "UnifiFirewall"

SwitchFactory = Callable[[PlatformAccessory, FirewallCapability, Any, EntryConfig], FirewallSwitch]


class AccessoryReconciler:
    """
    Bind configured entries to host records without ever registering a UUID twice.

    Args:
        host: Host API used to register new records.
        cached_accessories: Records restored by the host. The list is shared with
                            the caller and grows as new records are registered.
        make_switch: Builds the live handler for a record.
    """

    def __init__(
        self,
        host: HostAPI,
        cached_accessories: List[PlatformAccessory],
        make_switch: SwitchFactory,
    ):
        self.host = host
        self.accessories = cached_accessories
        self.make_switch = make_switch

    def find_cached(self, uuid: str) -> Optional[PlatformAccessory]:
        for accessory in self.accessories:
            if accessory.uuid == uuid:
                return accessory
        return None

    def reconcile(
        self, capability: FirewallCapability, entries: Sequence[EntryConfig]
    ) -> List[FirewallSwitch]:
        """
        Resolve every entry and bind it to a cached or newly registered record.

        Entries whose remote object cannot be found are skipped; the others are
        still processed.

        Returns:
            The live switches, in configuration order.
        """
        if not entries:
            return []

        capability.prepare()

        switches = []
        for entry in entries:
            switch = self.reconcile_entry(capability, entry)
            if switch is not None:
                switches.append(switch)
        return switches

    def reconcile_entry(
        self, capability: FirewallCapability, entry: EntryConfig
    ) -> Optional[FirewallSwitch]:
        try:
            remote = capability.resolve(entry)
        except PolicyNotMatchedError as e:
            logger.warning(f"{e}; skipping {entry.label}")
            return None
        except RuleNotFoundError as e:
            logger.error(f"{e}; check the id of {entry.label} in the configuration")
            return None

        uuid = generate_uuid(capability.identity_key(entry, remote))
        accessory = self.find_cached(uuid)

        if accessory is not None:
            logger.info(f"Restoring existing accessory from cache: {accessory.display_name}")
            accessory.context[capability.kind] = entry.to_context()
            return self.make_switch(accessory, capability, remote, entry)

        display_name = entry.name or remote.name or entry.id
        logger.info(f"Adding new accessory: {display_name}")
        accessory = PlatformAccessory(display_name, uuid)
        accessory.context[capability.kind] = entry.to_context()
        self.host.register_platform_accessories(PLUGIN_NAME, PLATFORM_NAME, [accessory])
        self.accessories.append(accessory)
        return self.make_switch(accessory, capability, remote, entry)

