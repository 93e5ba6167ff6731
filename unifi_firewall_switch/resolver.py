"""
Lookup of sites, legacy firewall rules and firewall policies on a controller.
"""

from typing import List, Optional, Sequence

from .config import EntryConfig
from .exceptions import SiteNotFoundError, RuleNotFoundError, PolicyNotMatchedError
from .logging import get_logger
from .models.firewall_policy import UnifiFirewallPolicy
from .models.firewall_rule import UnifiFirewallRule
from .models.site import UnifiSite
from .probe import EndpointCandidate, POLICY_LIST_CANDIDATES, probe
from .utils import map_api_data_to_models

logger = get_logger(__name__)


def find_site(sites: Sequence[UnifiSite], site_name: str) -> Optional[UnifiSite]:
    """
    Pick the configured site out of the controller's site list.

    Lookup order:
        1. exact match on the short ``name`` (e.g. ``default``, ``a1b2c3d4``)
        2. exact match on the description shown in the UI (e.g. ``Home``)
    """
    for site in sites:
        if site.name == site_name:
            return site
    for site in sites:
        if site.desc is not None and site.desc == site_name:
            return site
    return None


def resolve_site(controller, site_name: str) -> UnifiSite:
    """
    Fetch the controller's sites and return the configured one.

    Raises:
        SiteNotFoundError: If neither a name nor a description matches.
    """
    sites = controller.get_unifi_site()
    logger.debug(f"Found {len(sites)} sites")

    site = find_site(sites, site_name)
    if site is None:
        available = [s.name for s in sites]
        logger.error(f"Available sites: {', '.join(available)}")
        raise SiteNotFoundError(site_name, available)
    return site


def resolve_policies(
    controller,
    site: UnifiSite,
    candidates: Sequence[EndpointCandidate] = POLICY_LIST_CANDIDATES,
) -> List[UnifiFirewallPolicy]:
    """
    List the zone-based firewall policies of a site.

    An empty list is a valid answer: controllers older than UniFi Network 9 have
    no policy endpoint at all, and every candidate will miss.
    """
    result = probe(controller, site.name, candidates)
    if result is None:
        logger.info(
            f"No firewall policy endpoint answered for site {site.name}; "
            "the controller may predate zone-based firewall.")
        return []

    candidate, objects = result
    policies = map_api_data_to_models(objects, UnifiFirewallPolicy)
    logger.debug(f"Loaded {len(policies)} firewall policies via {candidate.path}")
    return policies


def match_policy(entry: EntryConfig, policies: Sequence[UnifiFirewallPolicy]) -> UnifiFirewallPolicy:
    """
    Find the policy a configured entry refers to.

    A match on ``_id`` always beats a match on ``name``; among equals the first
    one listed wins.

    Raises:
        PolicyNotMatchedError: If neither the id nor the name matches.
    """
    if entry.id:
        for policy in policies:
            if policy.id == entry.id:
                return policy
    if entry.name:
        for policy in policies:
            if policy.name == entry.name:
                return policy
    raise PolicyNotMatchedError(f"UniFi 9 Policy {entry.id or entry.name} not found")


def match_rule(entry: EntryConfig, rules: Sequence[UnifiFirewallRule]) -> UnifiFirewallRule:
    """
    Find the legacy rule a configured entry refers to.

    The configured id may be either the rule's ``_id`` or its ``rule_index`` (the
    number shown in the controller UI); the name is only used when no id matched.

    Raises:
        RuleNotFoundError: If no rule matches.
    """
    if entry.id:
        for rule in rules:
            if rule.id == entry.id:
                return rule
        for rule in rules:
            if rule.rule_index is not None and str(rule.rule_index) == entry.id:
                return rule
    if entry.name:
        for rule in rules:
            if rule.name == entry.name:
                return rule
    raise RuleNotFoundError(f"Firewall rule {entry.id or entry.name} not found")


def resolve_rule(controller, site: UnifiSite, entry: EntryConfig) -> UnifiFirewallRule:
    """
    Fetch the site's rules and return the one matching ``entry``.

    Raises:
        RuleNotFoundError: If the rule does not exist on the site.
    """
    rules = controller.get_firewall_rules(site.name)
    return match_rule(entry, rules)
