"""
Push Outcomes — the classified result of one push request.

Every push resolves to exactly one of these variants. Delivered wraps a
2xx response; each PushFailure subclass names one way a push service can
refuse a message. All variants carry the raw httpx.Response and the push
service host so callers can inspect status, headers and body, and tell
which subscription failed.

Callers match on the variant:

    match outcome:
        case Delivered():
            ...
        case ExpiredSubscription() | InvalidSubscription():
            delete_subscription(sub)
        case TooManyRequests() | PushServiceError():
            schedule_retry(sub)

or opt into exceptions with outcome.raise_for_outcome().
"""

from typing import ClassVar

import httpx
from pydantic import BaseModel, ConfigDict

from webpush_sender.core.exceptions import PushDeliveryError


class PushOutcome(BaseModel):
    """Base class for all push outcomes."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    response: httpx.Response
    host: str

    ok: ClassVar[bool] = False
    # Subscription is gone for good; the caller should delete it
    should_unsubscribe: ClassVar[bool] = False
    # Same request may succeed later (rate limits, service outages)
    retryable: ClassVar[bool] = False

    @property
    def status_code(self) -> int:
        return self.response.status_code

    def raise_for_outcome(self) -> httpx.Response:
        """
        Return the response for a delivered push, raise for anything else.

        Raises:
            PushDeliveryError: If this outcome is a failure variant.
        """
        if not self.ok:
            raise PushDeliveryError(self)
        return self.response

    def __str__(self) -> str:
        return (
            f"host: {self.host}, {self.response.status_code} "
            f"{self.response.reason_phrase}\nbody:\n{self.response.text}"
        )


class Delivered(PushOutcome):
    """The push service accepted the message (2xx)."""

    ok: ClassVar[bool] = True


class PushFailure(PushOutcome):
    """Base class for every refused push."""

    pass


class ExpiredSubscription(PushFailure):
    """410 Gone: the subscription is permanently invalid."""

    should_unsubscribe: ClassVar[bool] = True


class InvalidSubscription(PushFailure):
    """404 Not Found: the push service does not know this subscription."""

    should_unsubscribe: ClassVar[bool] = True


class Unauthorized(PushFailure):
    """401/403 (or Google's 400 UnauthorizedRegistration): credentials rejected."""

    pass


class PayloadTooLarge(PushFailure):
    """413: the encrypted payload exceeds the push service limit."""

    pass


class TooManyRequests(PushFailure):
    """429: rate limited, try again later."""

    retryable: ClassVar[bool] = True


class PushServiceError(PushFailure):
    """5xx: the push service failed internally."""

    retryable: ClassVar[bool] = True


class ResponseError(PushFailure):
    """Any other non-2xx response."""

    pass
