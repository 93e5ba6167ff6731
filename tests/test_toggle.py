import pytest

from unifi_firewall_switch.exceptions import (
    ProbeExhaustedError,
    RemoteWriteFailedError,
    UnifiAPIError,
)
from unifi_firewall_switch.models import UnifiFirewallPolicy
from unifi_firewall_switch.probe import EndpointCandidate, PAYLOAD_BATCH
from unifi_firewall_switch.toggle import (
    set_policy_enabled,
    set_rule_enabled,
    to_remote_value,
    to_switch_value,
)

BATCH_ONLY = [EndpointCandidate(
    "/v2/api/site/{site}/firewall-policies/batch", method="PUT", payload=PAYLOAD_BATCH)]


@pytest.mark.parametrize("remote", [True, False])
def test_not_inverted_shows_remote_value(remote):
    assert to_switch_value(remote, inverted=False) is remote


@pytest.mark.parametrize("remote", [True, False])
def test_inverted_shows_negated_value(remote):
    assert to_switch_value(remote, inverted=True) is (not remote)


@pytest.mark.parametrize("value", [True, False])
@pytest.mark.parametrize("inverted", [True, False])
def test_write_then_read_round_trips(value, inverted):
    assert to_switch_value(to_remote_value(value, inverted), inverted) is value


def test_set_rule_enabled_saves(controller, site):
    rule = controller.get_firewall_rules(site.name)[0]

    set_rule_enabled(rule, False)

    assert controller.saved[-1]["enabled"] is False
    assert controller.rules_data[0]["enabled"] is False


def test_set_rule_enabled_propagates_errors(controller, site):
    controller.save_error = UnifiAPIError("500 Server Error")
    rule = controller.get_firewall_rules(site.name)[0]

    with pytest.raises(UnifiAPIError):
        set_rule_enabled(rule, False)


def test_set_policy_enabled_updates_local_state(controller, site):
    controller.route("PUT", "/v2/api/site/default/firewall-policies/batch", [])
    policy = UnifiFirewallPolicy(_id="p1", name="Block IoT", enabled=False)

    set_policy_enabled(controller, site, policy, True)

    assert policy.enabled is True
    assert policy.written_within(60)
    assert controller.calls[0][2] == [{"_id": "p1", "enabled": True}]


def test_failed_policy_write_keeps_local_state(controller, site):
    policy = UnifiFirewallPolicy(_id="p1", name="Block IoT", enabled=False)

    with pytest.raises(RemoteWriteFailedError) as excinfo:
        set_policy_enabled(controller, site, policy, True, BATCH_ONLY)

    assert isinstance(excinfo.value.__cause__, ProbeExhaustedError)
    assert policy.enabled is False
    assert not policy.written_within(60)
    assert len(controller.calls) == 1
