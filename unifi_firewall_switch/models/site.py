"""
Models for UniFi sites.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class UnifiSite:
    """
    Represents a UniFi site.

    A site is a named partition of the controller configuration. Firewall rules
    and policies are always addressed relative to one site, using its short
    ``name`` (e.g. ``default``) rather than the human readable ``desc``.
    """
    # Basic site identification
    name: str
    desc: Optional[str] = None

    # Additional site fields from API
    _id: Optional[str] = None
    anonymous_id: Optional[str] = None
    attr_hidden_id: Optional[str] = None
    attr_no_delete: Optional[bool] = None
    role: Optional[str] = None

    # Store any extra fields that aren't explicitly defined
    _extra_fields: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.desc or 'no description'})"

