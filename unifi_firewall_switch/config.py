"""
Configuration objects for the firewall switch platform.

The host hands the platform its configuration as a plain dictionary, using the
camelCase keys of the plugin's configuration schema. The dataclasses here validate
that dictionary once, up front, so the rest of the package can rely on typed
fields.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from urllib3.exceptions import LocationParseError
from urllib3.util import parse_url

DEFAULT_SITE = "default"
DEFAULT_POLICY_WRITE_HOLD = 5.0

_TRUE_STRINGS = ("1", "true", "yes", "on")


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _validate_url(url: str) -> str:
    if not url:
        raise ValueError("unifi.url is required")
    try:
        parsed = parse_url(url)
    except LocationParseError as e:
        raise ValueError(f"unifi.url is not a valid URL: {url}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ValueError(
            f"unifi.url must be an http(s) URL with a host, e.g. https://192.168.1.1 (got {url})")
    return url.rstrip("/")


@dataclass
class ControllerConfig:
    """Connection settings for one UniFi controller."""

    url: str
    username: str
    password: str
    site: str = DEFAULT_SITE
    verify_ssl: bool = False
    is_udm_pro: Optional[bool] = None
    timeout: float = 10

    def __post_init__(self):
        self.url = _validate_url(self.url)
        if not self.username or not self.password:
            raise ValueError("unifi.username and unifi.password are required")
        if not self.site:
            self.site = DEFAULT_SITE
        if self.timeout <= 0:
            raise ValueError("unifi.timeout must be positive")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ControllerConfig":
        """
        Build the controller settings from the ``unifi`` block of the config.

        ``strictSSL`` is the key used by the plugin schema; ``verify_ssl`` is
        accepted as well.
        """
        if not isinstance(data, dict):
            raise ValueError("unifi configuration block is missing")
        verify = data.get("strictSSL", data.get("verify_ssl"))
        is_udm_pro = data.get("isUnifiOs", data.get("is_udm_pro"))
        return cls(
            url=data.get("url", ""),
            username=data.get("username", ""),
            password=data.get("password", ""),
            site=data.get("site") or DEFAULT_SITE,
            verify_ssl=_as_bool(verify, default=False),
            is_udm_pro=None if is_udm_pro is None else _as_bool(is_udm_pro),
            timeout=float(data.get("timeout", 10)),
        )

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "ControllerConfig":
        """Build the controller settings from ``UNIFI_*`` environment variables."""
        environ = os.environ if environ is None else environ
        return cls.from_dict({
            "url": environ.get("UNIFI_URL", ""),
            "username": environ.get("UNIFI_USERNAME", ""),
            "password": environ.get("UNIFI_PASSWORD", ""),
            "site": environ.get("UNIFI_SITE", DEFAULT_SITE),
            "strictSSL": environ.get("UNIFI_STRICT_SSL"),
        })


@dataclass
class EntryConfig:
    """
    One configured switch: a remote rule or policy, matched by id or by name.

    ``inverted`` flips the switch relative to the remote ``enabled`` flag, so a
    "block" rule can be shown as an "allow" switch.
    """

    id: Optional[str] = None
    name: Optional[str] = None
    inverted: bool = False

    def __post_init__(self):
        if self.id is not None:
            self.id = str(self.id).strip() or None
        if self.name is not None:
            self.name = str(self.name).strip() or None
        if not self.id and not self.name:
            raise ValueError("Each rule or policy entry needs an id or a name")

    @property
    def label(self) -> str:
        return self.name or self.id

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EntryConfig":
        if not isinstance(data, dict):
            raise ValueError(f"Rule or policy entry must be an object, got {data!r}")
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            inverted=_as_bool(data.get("inverted"), default=False),
        )

    def to_context(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "inverted": self.inverted}


@dataclass
class PlatformConfig:
    """Full platform configuration."""

    unifi: ControllerConfig
    name: str = "UniFi Firewall"
    rules: List[EntryConfig] = field(default_factory=list)
    policies: List[EntryConfig] = field(default_factory=list)
    policy_write_hold: float = DEFAULT_POLICY_WRITE_HOLD

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlatformConfig":
        """
        Build the platform configuration from the host's config dictionary.

        Policies are read from ``unifi9Policies`` and, failing that, ``policies``.

        Raises:
            ValueError: If a required setting is missing or malformed.
        """
        policies = data.get("unifi9Policies")
        if policies is None:
            policies = data.get("policies")
        return cls(
            unifi=ControllerConfig.from_dict(data.get("unifi")),
            name=data.get("name") or "UniFi Firewall",
            rules=[EntryConfig.from_dict(entry) for entry in data.get("rules") or []],
            policies=[EntryConfig.from_dict(entry) for entry in policies or []],
            policy_write_hold=float(
                data.get("policyWriteHold", DEFAULT_POLICY_WRITE_HOLD)),
        )
