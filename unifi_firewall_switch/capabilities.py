"""
What the reconciler needs to know about each kind of firewall switch.

Legacy rules and zone-based policies are reconciled and toggled the same way,
but they are found, read and written differently. A capability bundles those
differences so the reconciler and the switch handler stay kind-agnostic.
"""

import abc
from typing import Any, List, Optional, Sequence

from .config import EntryConfig, DEFAULT_POLICY_WRITE_HOLD
from .exceptions import PolicyNotMatchedError
from .logging import get_logger
from .models.firewall_policy import UnifiFirewallPolicy
from .models.firewall_rule import UnifiFirewallRule
from .models.site import UnifiSite
from .probe import EndpointCandidate, POLICY_LIST_CANDIDATES, POLICY_WRITE_CANDIDATES
from .resolver import match_policy, match_rule, resolve_policies, resolve_rule
from .toggle import set_policy_enabled, set_rule_enabled

logger = get_logger(__name__)


class FirewallCapability(abc.ABC):
    """Resolve, read and write one kind of remote firewall object."""

    #: Key of the entry stamp in the accessory context.
    kind: str = ""
    #: Model shown in the accessory information service.
    model: str = ""
    #: Prefix of the identity key the accessory UUID is derived from.
    uuid_prefix: str = ""

    def __init__(self, controller, site: UnifiSite):
        self.controller = controller
        self.site = site

    def prepare(self) -> None:
        """Load whatever the remote collection needs once per discovery pass."""

    @abc.abstractmethod
    def resolve(self, entry: EntryConfig) -> Any:
        """Return the remote object for ``entry`` or raise a not-found error."""

    def identity_key(self, entry: EntryConfig, remote: Any) -> str:
        return f"{self.uuid_prefix}{entry.id or remote.id}"

    def describe(self, remote: Any) -> str:
        return f"{self.model} {remote.name or remote.id}"

    @abc.abstractmethod
    def read_enabled(self, remote: Any):
        """
        Read the current remote ``enabled`` flag.

        Returns:
            ``(remote, enabled)``; ``remote`` is the object later calls should use.
        """

    @abc.abstractmethod
    def write_enabled(self, remote: Any, enabled: bool) -> Any:
        """
        Write the remote ``enabled`` flag.

        Returns:
            The object later calls should use.
        """


class RuleCapability(FirewallCapability):
    """Legacy firewall rules, re-fetched on every read and write."""

    kind = "rule"
    model = "Firewall-Rule"
    uuid_prefix = "unifi-rule-"

    def __init__(self, controller, site: UnifiSite):
        super().__init__(controller, site)
        self._rules: Optional[List[UnifiFirewallRule]] = None

    def prepare(self) -> None:
        self._rules = self.controller.get_firewall_rules(self.site.name)
        logger.info(f"Found {len(self._rules)} firewall rules")

    def resolve(self, entry: EntryConfig) -> UnifiFirewallRule:
        if self._rules is None:
            return resolve_rule(self.controller, self.site, entry)
        return match_rule(entry, self._rules)

    def _fetch(self, rule: UnifiFirewallRule) -> UnifiFirewallRule:
        return resolve_rule(self.controller, self.site, EntryConfig(id=rule.id))

    def read_enabled(self, remote: UnifiFirewallRule):
        fresh = self._fetch(remote)
        return fresh, fresh.enabled

    def write_enabled(self, remote: UnifiFirewallRule, enabled: bool) -> UnifiFirewallRule:
        fresh = self._fetch(remote)
        set_rule_enabled(fresh, enabled)
        return fresh


class PolicyCapability(FirewallCapability):
    """
    Zone-based firewall policies, listed and written through the endpoint prober.

    After a confirmed write the local ``enabled`` flag is trusted for
    ``write_hold`` seconds, since the controller may still serve the old value.
    """

    kind = "policy"
    model = "UniFi-9-Policy"
    uuid_prefix = "unifi9-policy-"

    def __init__(
        self,
        controller,
        site: UnifiSite,
        list_candidates: Sequence[EndpointCandidate] = POLICY_LIST_CANDIDATES,
        write_candidates: Sequence[EndpointCandidate] = POLICY_WRITE_CANDIDATES,
        write_hold: float = DEFAULT_POLICY_WRITE_HOLD,
    ):
        super().__init__(controller, site)
        self.list_candidates = list_candidates
        self.write_candidates = write_candidates
        self.write_hold = write_hold
        self._policies: Optional[List[UnifiFirewallPolicy]] = None

    def prepare(self) -> None:
        self._policies = resolve_policies(self.controller, self.site, self.list_candidates)
        logger.info(f"Found {len(self._policies)} UniFi 9 policies")

    def resolve(self, entry: EntryConfig) -> UnifiFirewallPolicy:
        if self._policies is None:
            self.prepare()
        return match_policy(entry, self._policies)

    def read_enabled(self, remote: UnifiFirewallPolicy):
        if remote.written_within(self.write_hold):
            logger.debug(
                f"Policy {remote.id} was written recently, keeping local state {remote.enabled}")
            return remote, remote.enabled

        written_at = remote.last_written
        policies = resolve_policies(self.controller, self.site, self.list_candidates)
        for policy in policies:
            if policy.id == remote.id:
                if remote.last_written != written_at or remote.written_within(self.write_hold):
                    # A write landed while the listing was in flight
                    logger.debug(
                        f"Policy {remote.id} was written during refresh, keeping local state {remote.enabled}")
                    return remote, remote.enabled
                remote.enabled = policy.enabled
                return remote, remote.enabled
        raise PolicyNotMatchedError(f"UniFi 9 Policy {remote.id} is no longer listed")

    def write_enabled(self, remote: UnifiFirewallPolicy, enabled: bool) -> UnifiFirewallPolicy:
        set_policy_enabled(
            self.controller, self.site, remote, enabled, self.write_candidates)
        return remote
