"""
Exceptions — errors raised by the sender outside of response classification.

HTTP responses from push services are never raised; they are returned as
PushOutcome values (see webpush_sender.models.outcomes). The classes here
cover local failures: bad options, unusable key material, and the opt-in
PushDeliveryError raised by PushOutcome.raise_for_outcome().
"""

from typing import Any


class WebPushError(Exception):
    """Base class for all errors raised by webpush_sender."""

    pass


class ConfigurationError(WebPushError):
    """Raised when options or subscription data cannot produce a request."""

    pass


class VapidKeyError(WebPushError):
    """Raised when VAPID key material cannot be parsed or used for signing."""

    pass


class PushDeliveryError(WebPushError):
    """
    Raised on demand for a failed push.

    Wraps the classified failure so except-based callers keep access to
    the raw response and the push service host.
    """

    def __init__(self, outcome: Any) -> None:
        super().__init__(str(outcome))
        self.outcome = outcome

    @property
    def response(self):
        return self.outcome.response

    @property
    def host(self) -> str:
        return self.outcome.host
