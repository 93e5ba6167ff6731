"""
UniFi firewall rules and policies as home-automation switches.

This package exposes legacy UniFi firewall rules and zone-based firewall
policies (UniFi Network 9+) as independently toggleable switches, keeping each
switch in step with the controller's state across restarts.
"""

from .api_client import UnifiController
from .config import ControllerConfig, EntryConfig, PlatformConfig
from .discovery import DiscoveryResult, discover_rules_and_policies
from .host import PlatformAccessory, HostAPI
from .models import UnifiSite, UnifiFirewallRule, UnifiFirewallPolicy
from .platform import UnifiFirewallPlatform
from .probe import (
    EndpointCandidate,
    POLICY_LIST_CANDIDATES,
    POLICY_WRITE_CANDIDATES,
)
from .switch import FirewallSwitch
from .exceptions import (
    UnifiControllerError,
    UnifiAuthenticationError,
    UnifiAPIError,
    UnifiDataError,
    SiteNotFoundError,
    RuleNotFoundError,
    PolicyNotMatchedError,
    ProbeExhaustedError,
    RemoteWriteFailedError,
)

__version__ = "0.3.0"

__all__ = [
    "UnifiController",
    "ControllerConfig",
    "EntryConfig",
    "PlatformConfig",
    "DiscoveryResult",
    "discover_rules_and_policies",
    "PlatformAccessory",
    "HostAPI",
    "UnifiSite",
    "UnifiFirewallRule",
    "UnifiFirewallPolicy",
    "UnifiFirewallPlatform",
    "EndpointCandidate",
    "POLICY_LIST_CANDIDATES",
    "POLICY_WRITE_CANDIDATES",
    "FirewallSwitch",
    "UnifiControllerError",
    "UnifiAuthenticationError",
    "UnifiAPIError",
    "UnifiDataError",
    "SiteNotFoundError",
    "RuleNotFoundError",
    "PolicyNotMatchedError",
    "ProbeExhaustedError",
    "RemoteWriteFailedError",
]
