import pytest

from unifi_firewall_switch.config import EntryConfig
from unifi_firewall_switch.exceptions import (
    PolicyNotMatchedError,
    RuleNotFoundError,
    SiteNotFoundError,
)
from unifi_firewall_switch.models import UnifiFirewallPolicy, UnifiSite
from unifi_firewall_switch.probe import EndpointCandidate
from unifi_firewall_switch.resolver import (
    find_site,
    match_policy,
    match_rule,
    resolve_policies,
    resolve_rule,
    resolve_site,
)

from conftest import FakeController

SITES = [
    UnifiSite(name="default", desc="Default"),
    UnifiSite(name="x7k2p9", desc="Office"),
    UnifiSite(name="Office", desc="Warehouse"),
]


def test_find_site_prefers_name_over_description():
    assert find_site(SITES, "Office").name == "Office"


def test_find_site_falls_back_to_description():
    assert find_site(SITES, "Warehouse").name == "Office"
    assert find_site(SITES, "Default").name == "default"


def test_find_site_missing():
    assert find_site(SITES, "Lab") is None


def test_resolve_site_not_found_lists_available():
    controller = FakeController(sites=SITES)

    with pytest.raises(SiteNotFoundError) as excinfo:
        resolve_site(controller, "Lab")

    assert excinfo.value.available == ["default", "x7k2p9", "Office"]


def test_match_policy_id_takes_priority():
    policies = [
        UnifiFirewallPolicy(_id="p1", name="Block IoT"),
        UnifiFirewallPolicy(_id="p2", name="Other"),
    ]

    assert match_policy(EntryConfig(id="p2", name="Block IoT"), policies).id == "p2"


def test_match_policy_by_name_first_wins():
    policies = [
        UnifiFirewallPolicy(_id="p1", name="Block IoT"),
        UnifiFirewallPolicy(_id="p2", name="Block IoT"),
    ]

    assert match_policy(EntryConfig(name="Block IoT"), policies).id == "p1"


def test_match_policy_unknown_id_uses_name():
    policies = [UnifiFirewallPolicy(_id="p1", name="Block IoT")]

    assert match_policy(EntryConfig(id="gone", name="Block IoT"), policies).id == "p1"


def test_match_policy_no_match():
    with pytest.raises(PolicyNotMatchedError):
        match_policy(EntryConfig(name="Nope"), [UnifiFirewallPolicy(_id="p1", name="Block IoT")])


def test_match_rule_by_id_index_or_name(controller, site):
    rules = controller.get_firewall_rules(site.name)

    assert match_rule(EntryConfig(id="43"), rules).name == "IoT"
    assert match_rule(EntryConfig(id="2000"), rules).id == "42"
    assert match_rule(EntryConfig(name="IoT"), rules).id == "43"


def test_resolve_rule_missing(controller, site):
    with pytest.raises(RuleNotFoundError):
        resolve_rule(controller, site, EntryConfig(id="99"))


def test_resolve_policies_empty_when_no_endpoint_answers(controller, site):
    assert resolve_policies(controller, site) == []


def test_policy_by_name_through_second_candidate(controller, site):
    first = EndpointCandidate("/v2/api/site/{site}/firewall-policies")
    second = EndpointCandidate("/api/s/{site}/rest/firewallpolicy")
    controller.route("GET", "/api/s/default/rest/firewallpolicy",
                     [{"_id": "p1", "name": "Block IoT", "enabled": False, "action": "BLOCK"}])

    policies = resolve_policies(controller, site, [first, second])
    policy = match_policy(EntryConfig(name="Block IoT"), policies)

    assert len(controller.calls) == 2
    assert policy.id == "p1"
    assert policy.enabled is False
    assert policy.is_blocking


def test_resolve_policies_keeps_unknown_fields(controller, site):
    controller.route("GET", "/proxy/network/v2/api/site/default/firewall-policies",
                     [{"_id": "p1", "name": "A", "enabled": True, "schedule": {"mode": "ALWAYS"}}],
                     base="root")

    policies = resolve_policies(controller, site)

    assert policies[0]._extra_fields == {"schedule": {"mode": "ALWAYS"}}
