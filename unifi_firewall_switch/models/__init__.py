"""
Data models for UniFi Controller API responses.

.. warning::
    The dataclasses defined in this module represent commonly observed fields in the
    UniFi Controller's **undocumented** private API responses. The actual data
    returned by the API varies with controller version and firmware, and zone-based
    firewall policies only exist on UniFi Network 9 and later.

    Fields defined in the models may be missing from the actual API response, in
    which case the attribute keeps its default value (often `None`). Unexpected or
    undocumented fields are captured in the `_extra_fields` dictionary attribute,
    and legacy firewall rules send them back unchanged when saved.
"""

from .site import UnifiSite
from .firewall_rule import UnifiFirewallRule
from .firewall_policy import UnifiFirewallPolicy

__all__ = [
    "UnifiSite",
    "UnifiFirewallRule",
    "UnifiFirewallPolicy",
]
