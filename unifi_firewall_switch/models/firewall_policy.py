import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class UnifiFirewallPolicy:
    """
    Represents a zone-based firewall policy (UniFi Network 9+).

    Policies are only reachable through the v2 API, whose shape differs between
    controller generations, so they are listed and written through the endpoint
    prober rather than a single fixed URL.

    Unlike legacy rules, the ``enabled`` flag is kept on the in-memory object after
    a confirmed write, since the controller does not always reflect a write on the
    very next read.
    """

    _id: str
    name: Optional[str] = None
    enabled: bool = False
    action: Optional[str] = None  # 'ALLOW', 'BLOCK' or 'REJECT'
    site_id: Optional[str] = None

    # Common optional fields
    description: Optional[str] = None
    index: Optional[int] = None
    predefined: Optional[bool] = None
    protocol: Optional[str] = None
    ip_version: Optional[str] = None
    logging: Optional[bool] = None
    source: Optional[Dict[str, Any]] = None
    destination: Optional[Dict[str, Any]] = None

    # Store any extra fields not explicitly defined
    _extra_fields: Dict[str, Any] = field(default_factory=dict, repr=False)

    # Monotonic timestamp of the last confirmed local write
    _written_at: Optional[float] = field(default=None, repr=False, compare=False)

    @property
    def id(self) -> str:
        return self._id

    @property
    def is_blocking(self) -> bool:
        return (self.action or "").lower() in ("block", "reject")

    def mark_written(self, enabled: bool) -> None:
        self.enabled = enabled
        self._written_at = time.monotonic()

    @property
    def last_written(self) -> Optional[float]:
        return self._written_at

    def written_within(self, seconds: float) -> bool:
        """Whether a confirmed write happened less than ``seconds`` ago."""
        if self._written_at is None:
            return False
        return (time.monotonic() - self._written_at) < seconds
