"""
One-shot discovery of the rules and policies available on a controller.

Used by configuration front-ends to show which ids can be put in the
``rules`` and ``unifi9Policies`` lists. Discovery never raises for controller
problems; the outcome is reported in the returned :class:`DiscoveryResult`.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .api_client import UnifiController
from .config import ControllerConfig
from .exceptions import SiteNotFoundError, UnifiAPIError, UnifiControllerError
from .logging import get_logger
from .models.firewall_policy import UnifiFirewallPolicy
from .models.firewall_rule import UnifiFirewallRule
from .models.site import UnifiSite
from .probe import ZONE_FEATURE_CANDIDATES, probe
from .resolver import resolve_policies, resolve_site

logger = get_logger(__name__)

ZONE_BASED_FIREWALL_FEATURE = "ZONE_BASED_FIREWALL"


@dataclass
class DiscoveryResult:
    success: bool
    message: Optional[str] = None
    site: Optional[str] = None
    rules: List[Dict[str, Any]] = field(default_factory=list)
    policies: List[Dict[str, Any]] = field(default_factory=list)
    zone_based_firewall: Optional[bool] = None


def summarize_rule(rule: UnifiFirewallRule) -> Dict[str, Any]:
    rule_id = str(rule.rule_index) if rule.rule_index is not None else rule.id
    return {
        "id": rule_id,
        "name": rule.name or f"Rule {rule_id}",
        "enabled": rule.enabled,
        "action": rule.action,
        "src_address": rule.src_address,
        "dst_address": rule.dst_address,
        "dst_port": rule.dst_port,
    }


def summarize_policy(policy: UnifiFirewallPolicy) -> Dict[str, Any]:
    return {
        "id": policy.id,
        "name": policy.name,
        "enabled": policy.enabled,
        "action": policy.action,
        "blocking": policy.is_blocking,
        "description": policy.description,
    }


def detect_zone_based_firewall(controller: UnifiController, site: UnifiSite) -> Optional[bool]:
    """
    Check whether the site has been migrated to the zone-based firewall.

    Returns:
        True or False when the controller reports its feature migrations, None
        when it has no such endpoint.
    """
    result = probe(controller, site.name, ZONE_FEATURE_CANDIDATES)
    if result is None:
        return None
    _, migrations = result
    return any(
        isinstance(migration, dict)
        and migration.get("feature") == ZONE_BASED_FIREWALL_FEATURE
        for migration in migrations
    )


def discover_rules_and_policies(
    config: ControllerConfig, controller: Optional[UnifiController] = None
) -> DiscoveryResult:
    """
    Log in, list the site's legacy rules and firewall policies, and log out.

    Args:
        config: Controller settings.
        controller: Optional existing session; a new one is created otherwise.

    Returns:
        The discovery outcome. ``success`` is False if the controller could not be
        reached, the login failed or the site does not exist.
    """
    if controller is None:
        controller = UnifiController(
            config.url,
            config.username,
            config.password,
            is_udm_pro=config.is_udm_pro,
            verify_ssl=config.verify_ssl,
            timeout=config.timeout,
        )

    try:
        logger.info("Connecting to UniFi Controller for discovery...")
        controller.login()
        site = resolve_site(controller, config.site)
        logger.info(f"Connected to site: {site.display_name}")

        rules = [summarize_rule(rule) for rule in controller.get_firewall_rules(site.name)]
        logger.info("Checking for UniFi 9 policies...")
        policies = [summarize_policy(policy) for policy in resolve_policies(controller, site)]
        zone_based = detect_zone_based_firewall(controller, site)
    except SiteNotFoundError as e:
        return DiscoveryResult(
            success=False,
            message=f'Site "{e.site_name}" not found. Available sites: {", ".join(e.available)}',
        )
    except UnifiControllerError as e:
        logger.error(f"Discovery failed: {e}")
        return DiscoveryResult(success=False, message=str(e))
    finally:
        try:
            controller.logout()
        except UnifiAPIError as e:
            logger.warning(f"Logout after discovery failed: {e}")

    return DiscoveryResult(
        success=True,
        message=f"Found {len(rules)} traditional rules and {len(policies)} UniFi 9 policies",
        site=site.name,
        rules=rules,
        policies=policies,
        zone_based_firewall=zone_based,
    )
