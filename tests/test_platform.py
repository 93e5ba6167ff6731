import logging
import threading
import time

import pytest

from unifi_firewall_switch.config import ControllerConfig, EntryConfig, PlatformConfig
from unifi_firewall_switch.exceptions import (
    SiteNotFoundError,
    UnifiAuthenticationError,
)
from unifi_firewall_switch.host import PlatformAccessory, CHARACTERISTIC_ON
from unifi_firewall_switch.platform import UnifiFirewallPlatform
from unifi_firewall_switch.utils import generate_uuid

from conftest import FakeController, ImmediateExecutor, POLICIES_PATH


def make_config(site="default", rules=None, policies=None, **kwargs):
    return PlatformConfig(
        unifi=ControllerConfig(
            url="https://unifi.local", username="admin", password="secret", site=site),
        rules=rules or [],
        policies=policies or [],
        **kwargs,
    )


def make_platform(config, controller, host):
    return UnifiFirewallPlatform(
        config, host, controller=controller, executor=ImmediateExecutor())


def test_discover_devices_binds_rules_and_policies(controller, host):
    controller.route("GET", POLICIES_PATH, [
        {"_id": "p1", "name": "Block IoT", "enabled": True, "action": "BLOCK"},
    ], base="root")
    config = make_config(
        rules=[EntryConfig(id="42", name="Guest")],
        policies=[EntryConfig(name="Block IoT", inverted=True)],
    )
    platform = make_platform(config, controller, host)

    switches = platform.discover_devices()

    assert controller.login_calls == 1
    assert platform.site.name == "default"
    assert [a.uuid for a in host.registered] == [
        generate_uuid("unifi-rule-42"), generate_uuid("unifi9-policy-p1")]
    assert [s.value for s in switches] == [True, False]
    assert platform.switches == switches


def test_discover_devices_reuses_configured_accessories(controller, host):
    config = make_config(rules=[EntryConfig(id="42", name="Guest")])
    platform = make_platform(config, controller, host)
    cached = PlatformAccessory("Guest", generate_uuid("unifi-rule-42"))
    platform.configure_accessory(cached)

    switches = platform.discover_devices()

    assert host.registered == []
    assert switches[0].accessory is cached
    assert cached.get(CHARACTERISTIC_ON) is True


def test_site_can_be_given_by_description(host):
    controller = FakeController(rules=[{"_id": "42", "name": "Guest", "enabled": True}])
    config = make_config(site="Default", rules=[EntryConfig(id="42")])

    make_platform(config, controller, host).discover_devices()

    assert len(host.registered) == 1


def test_missing_site_is_fatal(controller, host, caplog):
    config = make_config(site="Lab", rules=[EntryConfig(id="42")])
    platform = make_platform(config, controller, host)

    with caplog.at_level(logging.ERROR, logger="unifi_firewall_switch"):
        with pytest.raises(SiteNotFoundError):
            platform.discover_devices()

    assert host.registered == []
    assert "Troubleshooting steps:" in caplog.text


def test_login_failure_is_fatal(controller, host):
    controller.login_error = UnifiAuthenticationError("Login failed: invalid credentials")
    platform = make_platform(make_config(rules=[EntryConfig(id="42")]), controller, host)

    with pytest.raises(UnifiAuthenticationError):
        platform.discover_devices()

    assert host.registered == []


def test_no_entries_configured(controller, host, caplog):
    platform = make_platform(make_config(), controller, host)

    with caplog.at_level(logging.INFO, logger="unifi_firewall_switch"):
        assert platform.discover_devices() == []

    assert "No legacy firewall rules configured." in caplog.text
    assert "No UniFi 9 policies configured" in caplog.text


def test_policy_write_hold_is_passed_through(controller, host):
    controller.route("GET", POLICIES_PATH, [
        {"_id": "p1", "name": "Block IoT", "enabled": False},
    ], base="root")
    config = make_config(policies=[EntryConfig(id="p1")], policy_write_hold=0)

    switches = make_platform(config, controller, host).discover_devices()

    assert switches[0].capability.write_hold == 0


def test_from_dict_builds_controller_session(host):
    platform = UnifiFirewallPlatform.from_dict({
        "name": "Firewall",
        "unifi": {
            "url": "https://192.168.1.1/",
            "username": "admin",
            "password": "secret",
            "strictSSL": True,
        },
        "rules": [{"id": "42"}],
    }, host)

    try:
        assert platform.config.name == "Firewall"
        assert platform.controller.base_url == "https://192.168.1.1"
        assert platform.controller.verify_ssl is True
        assert platform.controller.logged_in is False
    finally:
        platform.shutdown()


def test_shutdown_leaves_borrowed_executor_alone(controller, host):
    executor = ImmediateExecutor()
    platform = UnifiFirewallPlatform(make_config(), host, controller=controller, executor=executor)

    platform.shutdown()

    assert executor.submit(lambda: 1).result() == 1


def test_overlapping_discoveries_register_each_uuid_once(controller, host):
    fetch = controller.get_firewall_rules

    def slow_fetch(site_name):
        time.sleep(0.05)
        return fetch(site_name)

    controller.get_firewall_rules = slow_fetch
    config = make_config(rules=[EntryConfig(id="42"), EntryConfig(id="43")])
    platform = make_platform(config, controller, host)
    errors = []

    def discover():
        try:
            platform.discover_devices()
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=discover) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=5)

    assert errors == []
    assert sorted(a.uuid for a in host.registered) == sorted(
        [generate_uuid("unifi-rule-42"), generate_uuid("unifi-rule-43")])
    assert len(platform.accessories) == 2
    assert len(platform.switches) == 2
