import copy
import json
from concurrent.futures import Executor, Future
from unittest.mock import MagicMock

import pytest
import requests

from unifi_firewall_switch.exceptions import UnifiAPIError
from unifi_firewall_switch.models import UnifiFirewallRule, UnifiSite
from unifi_firewall_switch.utils import map_api_data_to_models


def make_response(status_code=200, body=None, headers=None):
    """Build a stand-in for requests.Response."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.headers = headers or {}
    if body is None:
        response.content = b""
        response.text = ""
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.text = json.dumps(body)
        response.content = response.text.encode()
        response.json.return_value = body

    def raise_for_status():
        if status_code >= 400:
            raise requests.exceptions.HTTPError(f"{status_code} Client Error for url")

    response.raise_for_status.side_effect = raise_for_status
    return response


class ImmediateExecutor(Executor):
    """Runs submitted work inline so refreshes are observable in tests."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class DeferredExecutor(Executor):
    """Queues submitted work until run_all() is called."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_all(self):
        pending, self.pending = self.pending, []
        for future, fn, args, kwargs in pending:
            future.set_result(fn(*args, **kwargs))


class FakeController:
    """
    In-memory controller session.

    Policy endpoints are served from ``routes`` keyed by ``(method, url)``; any
    other URL fails like a 404 would. Legacy rules live in ``rules_data`` and
    are updated by save_firewall_rule().
    """

    base_url = "https://unifi.local"
    controller_url = "https://unifi.local/proxy/network"

    def __init__(self, sites=None, rules=None):
        self.sites = sites if sites is not None else [UnifiSite(name="default", desc="Default")]
        self.rules_data = rules or []
        self.routes = {}
        self.calls = []
        self.saved = []
        self.save_error = None
        self.login_error = None
        self.login_calls = 0
        self.logout_calls = 0

    def url_for(self, base, path):
        if base == "network":
            return f"{self.controller_url}{path}"
        return f"{self.base_url}{path}"

    def route(self, method, path, result, base="network"):
        self.routes[(method, self.url_for(base, path))] = result

    def request_json(self, method, url, json_payload=None):
        self.calls.append((method, url, copy.deepcopy(json_payload)))
        if (method, url) not in self.routes:
            raise UnifiAPIError(f"API {method} request to {url} failed: 404 Client Error")
        result = self.routes[(method, url)]
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return result(json_payload)
        return copy.deepcopy(result)

    def login(self):
        self.login_calls += 1
        if self.login_error is not None:
            raise self.login_error

    def logout(self):
        self.logout_calls += 1

    def get_unifi_site(self):
        return list(self.sites)

    def get_firewall_rules(self, site_name):
        rules = map_api_data_to_models(copy.deepcopy(self.rules_data), UnifiFirewallRule)
        return [rule.bind(self, site_name) for rule in rules]

    def save_firewall_rule(self, site_name, rule):
        if self.save_error is not None:
            raise self.save_error
        self.saved.append(rule.to_dict())
        for data in self.rules_data:
            if data["_id"] == rule.id:
                data["enabled"] = rule.enabled
        return [rule.to_dict()]


class FakeHost:
    """Host that refuses duplicate UUIDs, as real hosts do."""

    def __init__(self):
        self.registered = []

    def register_platform_accessories(self, plugin_name, platform_name, accessories):
        for accessory in accessories:
            if accessory.uuid in {a.uuid for a in self.registered}:
                raise ValueError(f"Duplicate UUID {accessory.uuid}")
            self.registered.append(accessory)


POLICIES_PATH = "/proxy/network/v2/api/site/default/firewall-policies"


@pytest.fixture
def site():
    return UnifiSite(name="default", desc="Default", _id="site1")


@pytest.fixture
def controller():
    return FakeController(rules=[
        {"_id": "42", "name": "Guest", "enabled": True, "rule_index": 2000,
         "ruleset": "LAN_IN", "action": "drop"},
        {"_id": "43", "name": "IoT", "enabled": False, "rule_index": 2001,
         "ruleset": "LAN_IN", "action": "drop"},
    ])


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def executor():
    return ImmediateExecutor()
