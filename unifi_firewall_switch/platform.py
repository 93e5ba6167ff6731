import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from .api_client import UnifiController
from .capabilities import FirewallCapability, PolicyCapability, RuleCapability
from .config import EntryConfig, PlatformConfig
from .discovery import DiscoveryResult, discover_rules_and_policies
from .exceptions import UnifiControllerError
from .host import HostAPI, PlatformAccessory
from .logging import get_logger
from .models.site import UnifiSite
from .reconciler import AccessoryReconciler
from .resolver import resolve_site
from .switch import FirewallSwitch

logger = get_logger(__name__)

TROUBLESHOOTING_STEPS = [
    "1. Verify the controller URL is correct",
    "2. Check username and password",
    "3. Ensure the user has admin privileges",
    "4. Try disabling strictSSL in config",
    "5. Run discover_rules_and_policies() to test the connection and list ids",
]


class UnifiFirewallPlatform:
    """
    Host platform exposing UniFi firewall rules and policies as switches.

    The host calls :meth:`configure_accessory` once per cached record, then
    :meth:`discover_devices` once it has finished launching.
    """

    def __init__(
        self,
        config: PlatformConfig,
        host: HostAPI,
        controller: Optional[UnifiController] = None,
        executor: Optional[Executor] = None,
    ):
        self.config = config
        self.host = host
        self.accessories: List[PlatformAccessory] = []
        self.switches: List[FirewallSwitch] = []
        self.site: Optional[UnifiSite] = None

        if controller is None:
            controller = UnifiController(
                config.unifi.url,
                config.unifi.username,
                config.unifi.password,
                is_udm_pro=config.unifi.is_udm_pro,
                verify_ssl=config.unifi.verify_ssl,
                timeout=config.unifi.timeout,
            )
        self.controller = controller

        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="unifi-refresh")
        self._discover_lock = threading.Lock()
        logger.debug(f"Finished initializing platform: {config.name}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any], host: HostAPI, **kwargs) -> "UnifiFirewallPlatform":
        return cls(PlatformConfig.from_dict(data), host, **kwargs)

    def configure_accessory(self, accessory: PlatformAccessory) -> None:
        """Remember a record restored from the host cache."""
        logger.info(f"Loading accessory from cache: {accessory.display_name}")
        self.accessories.append(accessory)

    def discover_devices(self) -> List[FirewallSwitch]:
        """
        Connect to the controller and bind every configured entry to a switch.

        Raises:
            UnifiControllerError: If the controller cannot be reached, the login is
                                  refused or the site does not exist.
        """
        with self._discover_lock:
            try:
                logger.info("Connecting to UniFi Controller...")
                logger.debug(f"Controller URL: {self.config.unifi.url}")
                logger.debug(f"Site: {self.config.unifi.site}")

                self.controller.login()
                self.site = resolve_site(self.controller, self.config.unifi.site)
                logger.info(f"Using site: {self.site.display_name}")

                reconciler = AccessoryReconciler(
                    self.host, self.accessories, self._make_switch)

                switches = []
                if self.config.rules:
                    switches.extend(reconciler.reconcile(
                        RuleCapability(self.controller, self.site), self.config.rules))
                else:
                    logger.info("No legacy firewall rules configured.")

                if self.config.policies:
                    switches.extend(reconciler.reconcile(
                        PolicyCapability(
                            self.controller, self.site,
                            write_hold=self.config.policy_write_hold),
                        self.config.policies))
                else:
                    logger.info(
                        "No UniFi 9 policies configured. Add policies to your configuration to create accessories.")
            except UnifiControllerError as e:
                self._log_troubleshooting(e)
                raise

            self.switches = switches
            logger.info(f"Exposing {len(switches)} firewall switches")
            return switches

    def discover_rules_and_policies(self) -> DiscoveryResult:
        """List the rules and policies of the configured controller for a config UI."""
        return discover_rules_and_policies(self.config.unifi)

    def shutdown(self) -> None:
        """Drop pending refreshes; in-flight requests are not waited for."""
        if self._owns_executor:
            self.executor.shutdown(wait=False)

    def _make_switch(
        self,
        accessory: PlatformAccessory,
        capability: FirewallCapability,
        remote: Any,
        entry: EntryConfig,
    ) -> FirewallSwitch:
        return FirewallSwitch(accessory, capability, remote, entry, self.executor)

    def _log_troubleshooting(self, error: Exception) -> None:
        logger.error("Failed to connect to UniFi Controller:")
        logger.error(f"Error: {error}")
        logger.error("")
        logger.error("Troubleshooting steps:")
        for step in TROUBLESHOOTING_STEPS:
            logger.error(step)
