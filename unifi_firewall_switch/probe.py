"""
Endpoint probing for controller features whose API shape is not stable.

Firewall policies moved between several URLs across UniFi Network releases, and
the controller does not advertise which one it serves. Each capability is
therefore described by an ordered table of :class:`EndpointCandidate` rows,
newest and most specific first, and the first row that answers wins. Supporting
a new controller generation means adding a row.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .exceptions import UnifiControllerError, ProbeExhaustedError
from .logging import get_logger
from .utils import unwrap_data_envelope

logger = get_logger(__name__)

PAYLOAD_SINGLE = "single"
PAYLOAD_BATCH = "batch"


@dataclass(frozen=True)
class EndpointCandidate:
    """
    One known request shape for a controller capability.

    Attributes:
        path: Path template. ``{site}`` is replaced by the site name, other
              placeholders by the keyword arguments given to the probe.
        base: ``"network"`` to resolve against the Network application root
              (``/proxy/network`` on UniFi OS) or ``"root"`` for the bare URL.
        method: HTTP method.
        payload: ``"single"`` sends the write body as-is, ``"batch"`` wraps it in
                 a one-element list together with the object id.
        unwrap: Turns the decoded body into a list of objects, or None.
    """

    path: str
    base: str = "network"
    method: str = "GET"
    payload: str = PAYLOAD_SINGLE
    unwrap: Callable[[Any], Optional[List[Any]]] = field(
        default=unwrap_data_envelope, compare=False, repr=False)

    def render(self, site_name: str, **params) -> str:
        return self.path.format(site=site_name, **params)


POLICY_LIST_CANDIDATES: Tuple[EndpointCandidate, ...] = (
    # Zone-based firewall, as used by the UniFi OS web UI
    EndpointCandidate("/proxy/network/v2/api/site/{site}/firewall-policies", base="root"),
    EndpointCandidate("/proxy/network/v2/api/site/default/firewall-policies", base="root"),
    # v2 API relative to the Network application (self-hosted Network 9+)
    EndpointCandidate("/v2/api/site/{site}/firewall-policies"),
    # Traditional REST collections
    EndpointCandidate("/api/s/{site}/rest/firewallpolicy"),
    EndpointCandidate("/api/s/{site}/rest/policy"),
)

POLICY_WRITE_CANDIDATES: Tuple[EndpointCandidate, ...] = (
    EndpointCandidate("/v2/api/site/{site}/firewall-policies/batch",
                      method="PUT", payload=PAYLOAD_BATCH),
    EndpointCandidate("/v2/api/site/{site}/firewall-policies/{id}", method="PUT"),
    EndpointCandidate("/proxy/network/v2/api/site/{site}/firewall-policies/{id}",
                      base="root", method="PUT"),
    EndpointCandidate("/proxy/network/v2/api/site/default/firewall-policies/{id}",
                      base="root", method="PUT"),
    EndpointCandidate("/api/s/{site}/rest/firewallpolicy/{id}", method="PUT"),
    EndpointCandidate("/api/s/{site}/rest/policy/{id}", method="PUT"),
)

ZONE_FEATURE_CANDIDATES: Tuple[EndpointCandidate, ...] = (
    EndpointCandidate("/v2/api/site/{site}/site-feature-migration"),
)


def probe(
    controller,
    site_name: str,
    candidates: Sequence[EndpointCandidate],
    **params,
) -> Optional[Tuple[EndpointCandidate, List[Any]]]:
    """
    Try read candidates in order and return the first non-empty result.

    A candidate that raises (transport error, HTTP error, expired session,
    unparseable body) or yields no data is logged and skipped; later candidates
    are only tried when every earlier one missed.

    Args:
        controller: Logged in :class:`~unifi_firewall_switch.api_client.UnifiController`.
        site_name: Short name of the site.
        candidates: Ordered, non-empty table of request shapes.
        **params: Extra placeholder values for the path templates.

    Returns:
        ``(candidate, objects)`` for the winning candidate, or None if all missed.
    """
    if not candidates:
        raise ValueError("probe() needs at least one endpoint candidate")

    for candidate in candidates:
        url = controller.url_for(candidate.base, candidate.render(site_name, **params))
        try:
            body = controller.request_json(candidate.method, url)
        except UnifiControllerError as e:
            logger.debug(f"Endpoint {url} not found or accessible: {e}")
            continue

        objects = candidate.unwrap(body)
        if not objects:
            logger.debug(f"Endpoint {url} answered without data, trying next.")
            continue

        logger.debug(f"Found {len(objects)} objects at endpoint {url}")
        return candidate, objects

    return None


def probe_write(
    controller,
    site_name: str,
    candidates: Sequence[EndpointCandidate],
    object_id: str,
    body: Dict[str, Any],
    **params,
) -> EndpointCandidate:
    """
    Try write candidates in order until one is accepted.

    Args:
        controller: Logged in controller session.
        site_name: Short name of the site.
        candidates: Ordered, non-empty table of request shapes.
        object_id: ``_id`` of the object being written; fills ``{id}``.
        body: Fields to write, e.g. ``{"enabled": True}``.
        **params: Extra placeholder values for the path templates.

    Returns:
        The candidate that accepted the write.

    Raises:
        ProbeExhaustedError: If no candidate accepted the write.
    """
    if not candidates:
        raise ValueError("probe_write() needs at least one endpoint candidate")

    attempts = []
    for candidate in candidates:
        url = controller.url_for(
            candidate.base, candidate.render(site_name, id=object_id, **params))
        if candidate.payload == PAYLOAD_BATCH:
            payload = [dict(body, _id=object_id)]
        else:
            payload = dict(body)

        try:
            controller.request_json(candidate.method, url, json_payload=payload)
        except UnifiControllerError as e:
            logger.debug(f"Failed to update via {url}: {e}")
            attempts.append(f"{candidate.method} {url}: {e}")
            continue

        logger.debug(f"Successfully updated {object_id} via {url}")
        return candidate

    raise ProbeExhaustedError(
        f"Could not update {object_id} via any known endpoint", attempts)
