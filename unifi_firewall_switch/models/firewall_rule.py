from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from ..exceptions import UnifiDataError


@dataclass
class UnifiFirewallRule:
    """Represents a legacy (pre zone-based) firewall rule from UniFi."""

    _id: str
    name: Optional[str] = None
    enabled: bool = False
    site_id: Optional[str] = None

    # Common optional fields
    rule_index: Optional[Union[str, int]] = None  # Can be string or int
    ruleset: Optional[str] = None  # e.g., 'WAN_IN', 'LAN_IN', 'GUEST_IN'
    action: Optional[str] = None  # e.g., 'accept', 'drop', 'reject'
    protocol: Optional[str] = None
    logging: Optional[bool] = None
    src_address: Optional[str] = None
    dst_address: Optional[str] = None
    dst_port: Optional[str] = None
    src_firewallgroup_ids: Optional[list] = None
    dst_firewallgroup_ids: Optional[list] = None

    # Store any extra fields not explicitly defined
    _extra_fields: Dict[str, Any] = field(default_factory=dict, repr=False)

    # Controller/site the rule was fetched through, used by save()
    _controller: Any = field(default=None, repr=False, compare=False)
    _site_name: Optional[str] = field(default=None, repr=False, compare=False)

    @property
    def id(self) -> str:
        return self._id

    def bind(self, controller, site_name: str) -> "UnifiFirewallRule":
        """Attach the controller session and site this rule is persisted through."""
        self._controller = controller
        self._site_name = site_name
        return self

    def save(self) -> None:
        """
        Persist the current state of the rule on the controller.

        Raises:
            UnifiDataError: If the rule was not bound to a controller.
            UnifiAPIError: If the controller rejects the update.
        """
        if self._controller is None or self._site_name is None:
            raise UnifiDataError(
                f"Firewall rule {self._id} is not bound to a controller")
        self._controller.save_firewall_rule(self._site_name, self)

    def to_dict(self) -> Dict[str, Any]:
        """Converts the rule back to the full payload the REST endpoint expects."""
        data = dict(self._extra_fields)
        data.update({
            k: v for k, v in self.__dict__.items()
            if not k.startswith('_') and v is not None
        })
        data['_id'] = self._id
        return data
