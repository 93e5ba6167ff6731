import json
import time
import base64
import binascii
import threading

import requests

from typing import List, Dict, Any, Union, Optional

from .models.site import UnifiSite
from .models.firewall_rule import UnifiFirewallRule
from .logging import get_logger, log_api_response
from .utils import map_api_data_to_models
from .exceptions import (
    UnifiAuthenticationError,
    UnifiAPIError,
    UnifiDataError,
)

logger = get_logger(__name__)

UNIFI_OS_LOGIN_PATH = "/api/auth/login"
UNIFI_OS_LOGOUT_PATH = "/api/auth/logout"
LEGACY_LOGIN_PATH = "/api/login"
LEGACY_LOGOUT_PATH = "/api/logout"
UNIFI_OS_NETWORK_PREFIX = "/proxy/network"

DEFAULT_TIMEOUT = 10


class UnifiController:
    """
    Authenticated session against one UniFi Controller.

    The session is created once per platform and shared by every rule and policy
    switch bound to that controller. Logging in is idempotent and serialized, so
    concurrent callers never issue more than one login request at a time.

    Note:
        This client interacts with the UniFi Controller's **undocumented** private API.
        Response structures and endpoint behavior may change without notice between
        controller versions. Firewall policy endpoints in particular are not stable and
        are reached through :mod:`unifi_firewall_switch.probe` instead of fixed methods.
    """

    def __init__(
        self,
        controller_url,
        username,
        password,
        is_udm_pro=None,
        verify_ssl=True,
        timeout=DEFAULT_TIMEOUT,
        auth_retry_enabled=True,
        auth_retry_count=3,
        auth_retry_delay=1,
    ):
        """
        Initialize the controller session. No request is made until :meth:`login`.

        Args:
            controller_url: Base URL of the UniFi Controller, e.g. ``https://192.168.1.1``.
            username: Username for authentication. Must be a local account, not a cloud account.
            password: Password for authentication.
            is_udm_pro: Whether the controller is a UniFi OS device (UDM, UDM Pro, UDR,
                        UCG, Cloud Key Gen2 2.0.24+, ...). ``None`` (default) detects it at
                        login by trying the UniFi OS endpoint first, then the legacy one.
            verify_ssl: Whether to verify SSL certificates. Can be:
                       - True: Verify SSL certificates (default, recommended)
                       - False: Disable verification for this session only
                       - str: Path to a CA bundle file or directory with certificates of trusted CAs
            timeout: Per-request timeout in seconds. Defaults to 10.
            auth_retry_enabled: Whether to automatically retry authentication when session expires.
                             Defaults to True.
            auth_retry_count: Maximum number of authentication retry attempts (1-10).
                           Defaults to 3.
            auth_retry_delay: Delay in seconds between retry attempts (0.1-30).
                           Defaults to 1.
        """
        if auth_retry_count < 1 or auth_retry_count > 10:
            raise ValueError("auth_retry_count must be between 1 and 10")
        if auth_retry_delay < 0.1 or auth_retry_delay > 30:
            raise ValueError("auth_retry_delay must be between 0.1 and 30")

        logger.debug(
            f"Initializing UnifiController with URL: {controller_url}, is_udm_pro: {is_udm_pro}"
        )
        self.base_url = controller_url.rstrip("/")
        self.is_udm_pro = is_udm_pro
        self.session = requests.Session()
        self.verify_ssl = verify_ssl
        self.timeout = timeout

        self.auth_retry_enabled = auth_retry_enabled
        self.auth_retry_count = auth_retry_count
        self.auth_retry_delay = auth_retry_delay

        self._username = username
        self._password = password
        self._login_lock = threading.Lock()
        self._logged_in = False
        self._auth_generation = 0
        self._csrf_header_token = None

        if not verify_ssl:
            logger.warning(
                "SSL certificate verification is disabled for this controller session. "
                "This is not recommended for production use."
            )

    @property
    def logged_in(self) -> bool:
        return self._logged_in

    @property
    def controller_url(self) -> str:
        """Root of the Network application API (``/proxy/network`` on UniFi OS)."""
        if self.is_udm_pro:
            return f"{self.base_url}{UNIFI_OS_NETWORK_PREFIX}"
        return self.base_url

    def url_for(self, base: str, path: str) -> str:
        """
        Build an absolute URL for a path relative to one of the controller roots.

        Args:
            base: ``"network"`` for the Network application root or ``"root"`` for
                  the bare controller URL.
            path: Path starting with ``/``.
        """
        if base == "network":
            return f"{self.controller_url}{path}"
        if base == "root":
            return f"{self.base_url}{path}"
        raise ValueError(f"Unknown URL base: {base}")

    def login(self):
        """
        Log in unless the session is already authenticated.

        Raises:
            UnifiAuthenticationError: If authentication fails.
        """
        with self._login_lock:
            if self._logged_in:
                logger.debug("Session already authenticated, skipping login.")
                return
            self._authenticate()

    def logout(self):
        """
        End the controller session and forget its cookies.

        Raises:
            UnifiAPIError: If the logout request fails.
        """
        with self._login_lock:
            if not self._logged_in:
                return
            path = UNIFI_OS_LOGOUT_PATH if self.is_udm_pro else LEGACY_LOGOUT_PATH
            uri = f"{self.base_url}{path}"
            try:
                response = self.session.post(
                    uri, headers=self._csrf_headers(), verify=self.verify_ssl, timeout=self.timeout)
                response.raise_for_status()
                logger.info("Logged out from Unifi controller.")
            except requests.exceptions.RequestException as e:
                error_msg = f"Logout from {uri} failed: {e}"
                logger.error(error_msg)
                raise UnifiAPIError(error_msg) from e
            finally:
                self._logged_in = False
                self._csrf_header_token = None
                self.session.cookies.clear()

    def _login_candidates(self) -> List[tuple]:
        if self.is_udm_pro is True:
            return [(True, UNIFI_OS_LOGIN_PATH)]
        if self.is_udm_pro is False:
            return [(False, LEGACY_LOGIN_PATH)]
        return [(True, UNIFI_OS_LOGIN_PATH), (False, LEGACY_LOGIN_PATH)]

    def _authenticate(self):
        """
        Authenticate with the Unifi Controller. Must be called with the login lock held.

        For UniFi OS devices (UDM, UDM Pro, UDR, etc.), uses /api/auth/login and routes
        Network API calls through /proxy/network. For legacy controllers, uses /api/login.

        Raises:
            UnifiAuthenticationError: If authentication fails.
        """
        candidates = self._login_candidates()
        last_error = None

        for is_unifi_os, path in candidates:
            login_uri = f"{self.base_url}{path}"
            logger.debug(f"Attempting authentication with username {self._username} via {login_uri}")
            try:
                response = self.session.post(
                    login_uri,
                    json={"username": self._username, "password": self._password},
                    verify=self.verify_ssl,
                    timeout=self.timeout,
                )
            except requests.exceptions.RequestException as e:
                error_msg = f"Authentication failed: {e}"
                logger.error(error_msg)
                raise UnifiAuthenticationError(error_msg) from e

            if response.status_code == 404 and len(candidates) > 1:
                logger.debug(f"Login endpoint {login_uri} not present, trying next.")
                last_error = f"Login endpoint {login_uri} returned 404"
                continue

            try:
                response.raise_for_status()
            except requests.exceptions.HTTPError as e:
                error_msg = f"Authentication failed: {e}"
                logger.error(error_msg)
                raise UnifiAuthenticationError(error_msg) from e

            try:
                body = response.json()
            except ValueError:
                body = {}
            meta = body.get("meta") if isinstance(body, dict) else None
            if meta is not None and meta.get("rc") != "ok":
                error_msg = "Failed to connect: Response code not ok."
                logger.warning(error_msg)
                logger.debug(f"Authentication response: {body}")
                raise UnifiAuthenticationError(error_msg)

            self.is_udm_pro = is_unifi_os
            self._csrf_header_token = response.headers.get("X-Csrf-Token")
            self._logged_in = True
            self._auth_generation += 1
            logger.info("Successfully connected to Unifi controller.")
            logger.debug(f"Controller detected as {'UniFi OS' if is_unifi_os else 'legacy'}.")
            return

        raise UnifiAuthenticationError(
            f"Authentication failed: no login endpoint accepted the request ({last_error})")

    def _reauthenticate(self, seen_generation: int):
        """Re-login after a 401 unless another caller already renewed the session."""
        with self._login_lock:
            if self._auth_generation != seen_generation and self._logged_in:
                logger.debug("Session was renewed concurrently, reusing it.")
                return
            self._logged_in = False
            self._authenticate()

    def _csrf_headers(self) -> Dict[str, str]:
        if not self.is_udm_pro:
            return {}
        csrf_token = self._extract_csrf_token() or self._csrf_header_token
        if csrf_token:
            return {"X-Csrf-Token": csrf_token}
        logger.warning(
            "UniFi OS detected, but CSRF token not found for non-GET request.")
        return {}

    def _invoke_api_call(
        self,
        method: str,
        url: str,
        json_payload: Optional[Union[Dict[str, Any], List[Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None
    ) -> requests.Response:
        """
        Make an API request with the specified method, handling potential re-authentication.

        Handles different HTTP methods, JSON payloads (objects or lists), and CSRF token
        injection for UniFi OS devices when necessary.

        Args:
            method: HTTP method (e.g., 'GET', 'POST', 'PUT').
            url: The full URL for the API endpoint.
            json_payload: Optional object or list to send as JSON body.
            headers: Optional dictionary of additional headers.
            timeout: Optional request timeout in seconds. Defaults to the session timeout.

        Returns:
            requests.Response: The response object from the requests library.

        Raises:
            UnifiAPIError: For general API request errors.
            UnifiAuthenticationError: If authentication or re-authentication fails.
            ValueError: If an invalid HTTP method is provided.
        """
        method = method.upper()
        if method not in ['GET', 'POST', 'PUT', 'DELETE', 'PATCH']:
            raise ValueError(f"Unsupported HTTP method: {method}")

        self.login()

        def send():
            current_headers = dict(headers or {})
            if method != 'GET':
                current_headers.update(self._csrf_headers())
            request_kwargs = {
                'verify': self.verify_ssl,
                'timeout': timeout if timeout is not None else self.timeout,
            }
            if current_headers:
                request_kwargs['headers'] = current_headers
            if json_payload is not None:
                request_kwargs['json'] = json_payload
            return self.session.request(method, url, **request_kwargs)

        try:
            generation = self._auth_generation
            response = send()

            if response.status_code == 401 and self.auth_retry_enabled:
                for retry in range(self.auth_retry_count):
                    if retry > 0 and self.auth_retry_delay > 0:
                        time.sleep(self.auth_retry_delay)

                    logger.warning(
                        f"Received 401 Unauthorized from {url}. "
                        f"Attempting re-authentication (try {retry+1}/{self.auth_retry_count})..."
                    )
                    try:
                        self._reauthenticate(generation)
                    except UnifiAuthenticationError as auth_err:
                        logger.error(
                            f"Re-authentication failed during retry {retry+1}: {auth_err}")
                        break

                    generation = self._auth_generation
                    response = send()
                    if response.status_code != 401:
                        break

                    logger.warning(
                        f"Request still failed with 401 after re-authentication (try {retry+1}).")

                if response.status_code == 401:
                    raise UnifiAuthenticationError(
                        f"Authentication failed after {self.auth_retry_count} attempts. "
                        "Session could not be renewed."
                    )

            response.raise_for_status()
            logger.debug(
                f"API {method} request to {url} successful (Status: {response.status_code})")
            return response

        except requests.exceptions.RequestException as e:
            error_msg = f"API {method} request to {url} failed: {str(e)}"
            logger.debug(error_msg)
            raise UnifiAPIError(error_msg) from e

    def _extract_csrf_token(self) -> Optional[str]:
        """Extracts the CSRF token from the session cookies if available."""
        unifi_cookie = self.session.cookies.get('TOKEN')
        if not unifi_cookie:
            logger.debug("UniFi OS 'TOKEN' cookie not found in session.")
            return None

        parts = unifi_cookie.split('.')
        if len(parts) != 3:
            logger.warning("Invalid JWT structure found in TOKEN cookie.")
            return None

        try:
            payload_b64 = parts[1]
            payload_b64 += '=' * (-len(payload_b64) % 4)
            payload_json = base64.urlsafe_b64decode(
                payload_b64).decode('utf-8')
            payload_data = json.loads(payload_json)

            csrf_token = payload_data.get('csrfToken')
            if csrf_token:
                logger.debug("Extracted CSRF token from cookie.")
                return csrf_token
            else:
                logger.warning("CSRF token not found within JWT payload.")
                return None
        except (IndexError, binascii.Error, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Error decoding JWT payload from TOKEN cookie: {e}")
            return None

    def request_json(
        self,
        method: str,
        url: str,
        json_payload: Optional[Union[Dict[str, Any], List[Any]]] = None,
    ) -> Any:
        """
        Issue a request and return the decoded JSON body.

        Returns:
            The decoded body, or None when the controller answered with an empty body.

        Raises:
            UnifiAPIError: If the API request fails.
            UnifiAuthenticationError: If authentication or re-authentication fails.
            UnifiDataError: If the body is not valid JSON.
        """
        response = self._invoke_api_call(method=method, url=url, json_payload=json_payload)
        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError as e:
            error_msg = f"Failed to parse API response for {url}: {e}. Response: {response.text[:200]}"
            logger.debug(error_msg)
            raise UnifiDataError(error_msg) from e
        log_api_response(logger, url, body, response.status_code)
        return body

    def _process_api_response(
        self, response: Optional[requests.Response], uri: str
    ) -> List[Dict[str, Any]]:
        """
        Process API response and handle common error cases.

        Args:
            response: Response from API call
            uri: URI that was called

        Returns:
            List of data items from the response

        Raises:
            UnifiAPIError: If the API request fails
            UnifiDataError: If the API response cannot be parsed
        """
        if response is None:
            raise UnifiAPIError(f"API request to {uri} failed")

        try:
            raw_data = response.json()
            if "data" not in raw_data:
                error_msg = f"Unexpected API response format for {uri}"
                logger.warning(error_msg)
                raise UnifiDataError(error_msg)
            meta = raw_data.get("meta") or {}
            if meta.get("rc", "ok") != "ok":
                raise UnifiAPIError(
                    f"API request to {uri} returned an error: {meta.get('msg', 'unknown error')}")
            log_api_response(logger, uri, raw_data, response.status_code)
            return raw_data.get("data") or []
        except (ValueError, AttributeError) as e:
            error_msg = f"Failed to parse API response: {e}"
            logger.error(error_msg)
            raise UnifiDataError(error_msg) from e

    def get_unifi_site(self, raw=False) -> Union[List[Dict[str, Any]], List[UnifiSite]]:
        """
        Get the sites visible to the logged in account via `/api/self/sites`.

        Args:
            raw (bool): If True, returns the raw API response as a list of dictionaries.
                        If False (default), maps the response to `UnifiSite` objects.

        Returns:
            Union[List[Dict[str, Any]], List[UnifiSite]]: The sites of the controller.

        Raises:
            UnifiAPIError: If the API request fails (e.g., network issue, 4xx/5xx error).
            UnifiDataError: If the API response cannot be parsed as valid JSON or lacks
                           the expected 'data' field.
            UnifiAuthenticationError: If authentication or re-authentication fails.
        """
        uri = f"{self.controller_url}/api/self/sites"
        response = self.invoke_get_rest_api_call(uri)
        raw_results = self._process_api_response(response, uri)

        if raw:
            return raw_results
        return map_api_data_to_models(raw_results, UnifiSite)

    def invoke_get_rest_api_call(self, url, headers=None):
        """
        Make a GET request to the UniFi Controller REST API with automatic session renewal.

        Args:
            url: The URL to send the GET request to.
            headers: Optional additional headers to include in the request.

        Returns:
            The response object on success.

        Raises:
            UnifiAPIError: If the API request fails.
            UnifiAuthenticationError: If re-authentication fails.
        """
        return self._invoke_api_call(method="GET", url=url, headers=headers)

    def get_firewall_rules(
        self, site_name: str, raw=False
    ) -> Union[List[Dict[str, Any]], List[UnifiFirewallRule]]:
        """
        Fetch legacy firewall rules for the site (REST endpoint).

        Args:
            site_name: The short name (ID) of the site.
            raw (bool): If True, returns raw dictionaries. If False (default), returns
                        `UnifiFirewallRule` objects bound to this controller, so that
                        `rule.save()` persists them.

        Returns:
            The firewall rules of the site.

        Raises:
            UnifiAPIError: If the API request fails.
            UnifiDataError: If the API response cannot be parsed.
            UnifiAuthenticationError: If authentication or re-authentication fails.
        """
        uri = f"{self.controller_url}/api/s/{site_name}/rest/firewallrule"
        logger.debug(f"Fetching firewall rules for site {site_name} via {uri}")
        response = self.invoke_get_rest_api_call(url=uri)
        raw_results = self._process_api_response(response, uri)

        if raw:
            return raw_results
        rules = map_api_data_to_models(raw_results, UnifiFirewallRule)
        return [rule.bind(self, site_name) for rule in rules]

    def save_firewall_rule(self, site_name: str, rule: UnifiFirewallRule) -> List[Dict[str, Any]]:
        """
        Persist a legacy firewall rule via `PUT /api/s/{site_name}/rest/firewallrule/{_id}`.

        The whole rule is sent back, including fields the model does not know about,
        because the REST endpoint replaces the stored object.

        Args:
            site_name: The short name (ID) of the site.
            rule: The rule to save.

        Returns:
            Raw API response data, typically the updated rule.

        Raises:
            UnifiAPIError: If the API request fails.
            UnifiDataError: If the API response cannot be parsed.
            UnifiAuthenticationError: If authentication or re-authentication fails.
        """
        uri = f"{self.controller_url}/api/s/{site_name}/rest/firewallrule/{rule.id}"
        logger.info(
            f"Saving firewall rule {rule.id} (enabled={rule.enabled}) on site {site_name}")
        response = self._invoke_api_call(
            method="PUT", url=uri, json_payload=rule.to_dict())
        return self._process_api_response(response, uri)
