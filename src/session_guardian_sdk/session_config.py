from typing import Optional

DEFAULT_BASE_URL = "http://localhost/api"
DEFAULT_RENEWAL_PATH = "/auth/refresh"


def accept_language_for(language: str) -> str:
    """Map the UI language to the Accept-Language header value."""
    return "fr-FR" if language == "fr" else "en-US"


class SessionTimingConfig:  # pylint: disable=too-few-public-methods,too-many-instance-attributes
    """Timing constants for credential freshness, scheduling and renewal (seconds)."""

    DEFAULT: "SessionTimingConfig"

    def __init__(
        self,
        freshness_threshold: float = 10.0,
        lead_ratio: float = 0.2,
        min_lead: float = 10.0,
        max_lead: float = 300.0,
        min_delay: float = 1.0,
        debounce_window: float = 2.0,
        renewal_timeout: float = 15.0,
    ) -> None:
        """Initialize timing configuration.

        Args:
            freshness_threshold: Remaining lifetime at or below which a stored
                credential is renewed before use
            lead_ratio: Fraction of the remaining lifetime used as lead time for
                the proactive renewal timer
            min_lead: Lower bound of the lead time
            max_lead: Upper bound of the lead time
            min_delay: Smallest timer delay while more than one second of
                lifetime remains
            debounce_window: Interval after a completed renewal during which new
                renewal requests reuse the stored credential
            renewal_timeout: Upper bound on a single renewal call
        """
        if freshness_threshold < 0:
            raise ValueError("freshness_threshold must not be negative")
        if not 0 < lead_ratio < 1:
            raise ValueError("lead_ratio must be between 0 and 1")
        if min_lead < 0 or max_lead < 0:
            raise ValueError("Lead bounds must not be negative")
        if min_lead > max_lead:
            raise ValueError("min_lead must not exceed max_lead")
        if min_delay < 0:
            raise ValueError("min_delay must not be negative")
        if debounce_window < 0:
            raise ValueError("debounce_window must not be negative")
        if renewal_timeout <= 0:
            raise ValueError("renewal_timeout must be positive")

        self.freshness_threshold = freshness_threshold
        self.lead_ratio = lead_ratio
        self.min_lead = min_lead
        self.max_lead = max_lead
        self.min_delay = min_delay
        self.debounce_window = debounce_window
        self.renewal_timeout = renewal_timeout


SessionTimingConfig.DEFAULT = SessionTimingConfig()


class SessionGuardianConfiguration:
    """Configuration for SessionGuardian."""

    DEFAULT: "SessionGuardianConfiguration"

    def __init__(
        self,
        base_url: Optional[str] = None,
        renewal_path: str = DEFAULT_RENEWAL_PATH,
        language: str = "fr",
        timing: Optional[SessionTimingConfig] = None,
        request_timeout: int = 30,
    ):
        """Initialize configuration.

        Args:
            base_url: Override the default API URL
            renewal_path: Path of the renewal endpoint, relative to base_url
            language: UI language used to derive the Accept-Language header
            timing: Timing constants; defaults to SessionTimingConfig.DEFAULT
            request_timeout: Total timeout of a single HTTP request in seconds
        """
        self.base_url = base_url or DEFAULT_BASE_URL
        self.renewal_path = renewal_path
        self.language = language
        self.timing = timing or SessionTimingConfig.DEFAULT
        self.request_timeout = request_timeout

    def get_base_url(self) -> str:
        return self.base_url


SessionGuardianConfiguration.DEFAULT = SessionGuardianConfiguration()
