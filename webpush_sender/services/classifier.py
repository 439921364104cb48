"""
Response Classifier — maps a push service response to a PushOutcome.

Evaluated in this order:

    410                         -> ExpiredSubscription
    404                         -> InvalidSubscription
    401, 403, 400 + reason      -> Unauthorized
    413                         -> PayloadTooLarge
    429                         -> TooManyRequests
    5xx                         -> PushServiceError
    any other non-2xx           -> ResponseError
    2xx                         -> Delivered

The "400 + reason" rule is Google FCM specific: FCM reports rejected
credentials as 400 with the reason phrase "UnauthorizedRegistration".
Callers talking to other vendors can pass their own reason phrases.
"""

import logging
from collections.abc import Iterable
from http import HTTPStatus

import httpx

from webpush_sender.models.options import DEFAULT_UNAUTHORIZED_REASONS
from webpush_sender.models.outcomes import (
    Delivered,
    ExpiredSubscription,
    InvalidSubscription,
    PayloadTooLarge,
    PushOutcome,
    PushServiceError,
    ResponseError,
    TooManyRequests,
    Unauthorized,
)

logger = logging.getLogger(__name__)


def classify_response(
    response: httpx.Response,
    host: str,
    unauthorized_reasons: Iterable[str] = DEFAULT_UNAUTHORIZED_REASONS,
) -> PushOutcome:
    """
    Classify a raw push service response.

    Args:
        response: The response returned by the dispatcher.
        host: Push service host, kept on the outcome for diagnostics.
        unauthorized_reasons: Reason phrases that turn a 400 into
            Unauthorized.

    Returns:
        Delivered for 2xx (the response is passed through untouched),
        otherwise the PushFailure variant for the status.
    """
    status = response.status_code

    if status == HTTPStatus.GONE:
        outcome_cls = ExpiredSubscription
    elif status == HTTPStatus.NOT_FOUND:
        outcome_cls = InvalidSubscription
    elif status in (HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN) or (
        status == HTTPStatus.BAD_REQUEST
        and response.reason_phrase in set(unauthorized_reasons)
    ):
        outcome_cls = Unauthorized
    elif status == HTTPStatus.REQUEST_ENTITY_TOO_LARGE:
        outcome_cls = PayloadTooLarge
    elif status == HTTPStatus.TOO_MANY_REQUESTS:
        outcome_cls = TooManyRequests
    elif 500 <= status < 600:
        outcome_cls = PushServiceError
    elif not 200 <= status < 300:
        outcome_cls = ResponseError
    else:
        logger.info("Push delivered: status=%d, host=%s", status, host)
        return Delivered(response=response, host=host)

    logger.warning(
        "Push rejected: status=%d, reason=%s, host=%s, outcome=%s",
        status,
        response.reason_phrase,
        host,
        outcome_cls.__name__,
    )
    return outcome_cls(response=response, host=host)
