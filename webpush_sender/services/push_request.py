"""
Push Request — sends one Web Push message to one subscription.

Orchestrates the request pipeline:
1. Encrypt the message for the subscription (or skip for an empty push)
2. Compose the headers, signing a VAPID token when configured
3. POST to the subscription endpoint
4. Classify the response into a PushOutcome

Everything derived from the inputs (endpoint, headers, body) is computed
once when the PushRequest is built and never shared between requests,
so concurrent pushes need no coordination:

    outcomes = await asyncio.gather(
        *(payload_send(subscription=s, message=msg, vapid=vapid) for s in subs)
    )
"""

import logging
from typing import Any, Optional, Union
from urllib.parse import urlsplit

from webpush_sender.models.options import DeliveryOptions, VapidOptions
from webpush_sender.models.outcomes import PushOutcome
from webpush_sender.models.subscription import Subscription
from webpush_sender.services.classifier import classify_response
from webpush_sender.services.dispatch import dispatch, dispatch_sync
from webpush_sender.services.encryption import Encryptor, build_payload
from webpush_sender.services.headers import compose_headers

logger = logging.getLogger(__name__)


def _as_subscription(subscription: Union[Subscription, dict[str, Any]]) -> Subscription:
    if isinstance(subscription, Subscription):
        return subscription
    return Subscription.model_validate(subscription)


def _as_vapid_options(vapid: Union[VapidOptions, dict[str, Any], None]) -> VapidOptions:
    if vapid is None:
        return VapidOptions()
    if isinstance(vapid, VapidOptions):
        return vapid
    return VapidOptions.model_validate(vapid)


class PushRequest:
    """
    A single, fully prepared push request.

    Construction does all the local work (validation, encryption, header
    composition and VAPID signing) and raises on bad input before any
    network activity. perform() / perform_sync() then send it once.
    """

    def __init__(
        self,
        subscription: Union[Subscription, dict[str, Any]],
        message: Union[str, bytes, None] = None,
        vapid: Union[VapidOptions, dict[str, Any], None] = None,
        delivery: Optional[DeliveryOptions] = None,
        encryptor: Optional[Encryptor] = None,
        now: Optional[float] = None,
    ) -> None:
        """
        Prepare a push request.

        Args:
            subscription: Endpoint and keys, as a Subscription or the
                browser's PushSubscription JSON.
            message: Plaintext payload. None or empty sends a wake-up push.
            vapid: VAPID options; None or key-less options disable VAPID.
            delivery: TTL, urgency, API key and timeouts (defaults apply).
            encryptor: Encryption collaborator (aesgcm via http_ece by default).
            now: Signing time for the VAPID token (defaults to the clock).

        Raises:
            pydantic.ValidationError: If the subscription or options are invalid.
            ConfigurationError: If a message is given without subscription keys.
            VapidKeyError: If VAPID applies and its key material is unusable.
        """
        self.subscription = _as_subscription(subscription)
        self.vapid_options = _as_vapid_options(vapid)
        self.delivery_options = delivery or DeliveryOptions()

        self.endpoint = self.subscription.endpoint
        self.host = urlsplit(self.endpoint).hostname or ""

        self.envelope = build_payload(message, self.subscription.keys, encryptor)
        self.headers = compose_headers(
            self.envelope,
            self.endpoint,
            self.vapid_options,
            self.delivery_options,
            now=now,
        )

    @property
    def body(self) -> bytes:
        """Ciphertext for an encrypted push, empty bytes otherwise."""
        if self.envelope is None:
            return b""
        return self.envelope.ciphertext

    async def perform(self) -> PushOutcome:
        """
        Send the request and classify the response.

        Raises:
            httpx.RequestError: On transport failures (not classified).
        """
        logger.debug(
            "Sending push to host=%s (encrypted=%s, bytes=%d)",
            self.host,
            self.envelope is not None,
            len(self.body),
        )
        response = await dispatch(self.endpoint, self.headers, self.body, self.delivery_options)
        return classify_response(
            response, self.host, self.delivery_options.unauthorized_reasons
        )

    def perform_sync(self) -> PushOutcome:
        """Blocking variant of perform()."""
        logger.debug(
            "Sending push to host=%s (encrypted=%s, bytes=%d)",
            self.host,
            self.envelope is not None,
            len(self.body),
        )
        response = dispatch_sync(self.endpoint, self.headers, self.body, self.delivery_options)
        return classify_response(
            response, self.host, self.delivery_options.unauthorized_reasons
        )


# ===================================================================
# Entry Points
# ===================================================================

async def payload_send(
    *,
    subscription: Union[Subscription, dict[str, Any]],
    message: Union[str, bytes, None] = None,
    vapid: Union[VapidOptions, dict[str, Any], None] = None,
    encryptor: Optional[Encryptor] = None,
    **delivery: Any,
) -> PushOutcome:
    """
    Send a Web Push message and return the classified outcome.

    Extra keyword arguments become DeliveryOptions (ttl, urgency,
    api_key, open_timeout, ssl_timeout, read_timeout,
    unauthorized_reasons).

    Returns:
        Delivered on 2xx, otherwise the matching PushFailure variant.
        Outcomes are returned, not raised; use
        outcome.raise_for_outcome() for exception-style handling.
    """
    request = PushRequest(
        subscription,
        message=message,
        vapid=vapid,
        delivery=DeliveryOptions(**delivery),
        encryptor=encryptor,
    )
    return await request.perform()


def payload_send_sync(
    *,
    subscription: Union[Subscription, dict[str, Any]],
    message: Union[str, bytes, None] = None,
    vapid: Union[VapidOptions, dict[str, Any], None] = None,
    encryptor: Optional[Encryptor] = None,
    **delivery: Any,
) -> PushOutcome:
    """Blocking variant of payload_send()."""
    request = PushRequest(
        subscription,
        message=message,
        vapid=vapid,
        delivery=DeliveryOptions(**delivery),
        encryptor=encryptor,
    )
    return request.perform_sync()
