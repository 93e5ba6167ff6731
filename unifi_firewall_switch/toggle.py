"""
Enable/disable writes for firewall rules and policies.
"""

from typing import Sequence

from .exceptions import ProbeExhaustedError, RemoteWriteFailedError
from .logging import get_logger
from .models.firewall_policy import UnifiFirewallPolicy
from .models.firewall_rule import UnifiFirewallRule
from .models.site import UnifiSite
from .probe import EndpointCandidate, POLICY_WRITE_CANDIDATES, probe_write

logger = get_logger(__name__)


def to_switch_value(remote_enabled: bool, inverted: bool) -> bool:
    """Switch state shown to the host for a remote ``enabled`` flag."""
    return bool(remote_enabled) != bool(inverted)


def to_remote_value(switch_value: bool, inverted: bool) -> bool:
    """Remote ``enabled`` flag to write for a requested switch state."""
    return bool(switch_value) != bool(inverted)


def set_rule_enabled(rule: UnifiFirewallRule, enabled: bool) -> None:
    """
    Enable or disable a legacy firewall rule through its own save operation.

    Errors from the controller propagate unchanged.
    """
    rule.enabled = enabled
    rule.save()


def set_policy_enabled(
    controller,
    site: UnifiSite,
    policy: UnifiFirewallPolicy,
    enabled: bool,
    candidates: Sequence[EndpointCandidate] = POLICY_WRITE_CANDIDATES,
) -> None:
    """
    Enable or disable a firewall policy, trying each known write endpoint in turn.

    The in-memory ``policy.enabled`` only changes once the controller accepted the
    write.

    Raises:
        RemoteWriteFailedError: If no write endpoint accepted the change.
    """
    try:
        candidate = probe_write(
            controller, site.name, candidates, policy.id, {"enabled": enabled})
    except ProbeExhaustedError as e:
        logger.error(f"Error updating UniFi 9 policy {policy.id}: {e}")
        raise RemoteWriteFailedError(
            f"Could not set policy {policy.name or policy.id} to enabled={enabled}") from e

    policy.mark_written(enabled)
    logger.info(
        f"Set policy {policy.name or policy.id} to enabled={enabled} via {candidate.path}")
