class UnifiControllerError(Exception):
    """Base exception for UniFi firewall switch errors."""

    pass


class UnifiAuthenticationError(UnifiControllerError):
    """Raised when authentication with the UniFi Controller fails."""

    pass


class UnifiAPIError(UnifiControllerError):
    """Raised when an API call to the UniFi Controller fails."""

    pass


class UnifiDataError(UnifiControllerError):
    """Raised when there is an error parsing data from the UniFi Controller."""

    pass


class SiteNotFoundError(UnifiControllerError):
    """Raised when the configured site does not exist on the controller."""

    def __init__(self, site_name, available=None):
        self.site_name = site_name
        self.available = list(available or [])
        super().__init__(
            f"Site <{site_name}> was not found on the controller "
            f"(available sites: {', '.join(self.available) or 'none'})"
        )


class RuleNotFoundError(UnifiControllerError):
    """Raised when a configured legacy firewall rule does not exist on the site."""

    pass


class PolicyNotMatchedError(UnifiControllerError):
    """Raised when no firewall policy matches a configured entry."""

    pass


class ProbeExhaustedError(UnifiControllerError):
    """Raised when every endpoint candidate of a probe has failed."""

    def __init__(self, message, attempts=None):
        self.attempts = list(attempts or [])
        super().__init__(message)


class RemoteWriteFailedError(UnifiControllerError):
    """Raised when an enable/disable write could not be applied on the controller."""

    pass
