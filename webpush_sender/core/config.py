"""
Sender Configuration

Loads environment variables and provides typed settings for callers
that keep their VAPID credentials and delivery defaults in the
environment. Uses python-dotenv to load from a .env file.

The request pipeline never reads these values on its own. Callers opt
in with load_vapid_options() / load_delivery_options() and pass the
result to payload_send().
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from webpush_sender.core.exceptions import ConfigurationError
from webpush_sender.models.options import DeliveryOptions, VapidOptions

# Load .env file (override the location with WEBPUSH_ENV_FILE)
_env_path = Path(os.getenv("WEBPUSH_ENV_FILE", ".env")).resolve()
load_dotenv(dotenv_path=_env_path)


def _optional_float(name: str) -> float | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}.") from exc


def _int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}.") from exc


# --- VAPID ---
VAPID_SUBJECT: str = os.getenv("WEBPUSH_VAPID_SUBJECT", "")
VAPID_PUBLIC_KEY: str = os.getenv("WEBPUSH_VAPID_PUBLIC_KEY", "")
VAPID_PRIVATE_KEY: str = os.getenv("WEBPUSH_VAPID_PRIVATE_KEY", "")
VAPID_PEM_PATH: str = os.getenv("WEBPUSH_VAPID_PEM_PATH", "")
VAPID_EXPIRATION: int = _int("WEBPUSH_VAPID_EXPIRATION", 24 * 60 * 60)

# --- Legacy GCM/FCM server key ---
GCM_API_KEY: str = os.getenv("WEBPUSH_GCM_API_KEY", "")

# --- Delivery defaults ---
TTL: int = _int("WEBPUSH_TTL", 60 * 60 * 24 * 7 * 4)  # 4 weeks
URGENCY: str = os.getenv("WEBPUSH_URGENCY", "normal")
OPEN_TIMEOUT: float | None = _optional_float("WEBPUSH_OPEN_TIMEOUT")
SSL_TIMEOUT: float | None = _optional_float("WEBPUSH_SSL_TIMEOUT")
READ_TIMEOUT: float | None = _optional_float("WEBPUSH_READ_TIMEOUT")


def is_vapid_configured() -> bool:
    """
    Check if VAPID credentials are available without raising exceptions.

    Either a PEM path or both halves of the raw key pair count.
    """
    return bool(VAPID_PEM_PATH or (VAPID_PUBLIC_KEY and VAPID_PRIVATE_KEY))


def validate_vapid_config() -> bool:
    """Check that VAPID credentials are present and non-empty."""
    if is_vapid_configured():
        return True

    missing = []
    if not VAPID_PUBLIC_KEY:
        missing.append("WEBPUSH_VAPID_PUBLIC_KEY")
    if not VAPID_PRIVATE_KEY:
        missing.append("WEBPUSH_VAPID_PRIVATE_KEY")
    raise EnvironmentError(
        f"Missing required VAPID environment variables: {', '.join(missing)} "
        f"(or set WEBPUSH_VAPID_PEM_PATH). "
        f"Please fill in your .env file at: {_env_path}"
    )


def load_vapid_options() -> VapidOptions:
    """
    Build VapidOptions from the environment.

    Returns an empty VapidOptions (VAPID disabled) when no credentials
    are configured, so the result can always be passed to payload_send().

    Raises:
        FileNotFoundError: If WEBPUSH_VAPID_PEM_PATH points at a missing file.
    """
    if not is_vapid_configured():
        return VapidOptions()

    fields: dict = {"expiration": VAPID_EXPIRATION}
    if VAPID_SUBJECT:
        fields["subject"] = VAPID_SUBJECT

    if VAPID_PEM_PATH:
        pem_path = Path(VAPID_PEM_PATH)
        if not pem_path.exists():
            raise FileNotFoundError(f"VAPID PEM file not found: {VAPID_PEM_PATH}")
        fields["pem"] = pem_path.read_text()
    else:
        fields["public_key"] = VAPID_PUBLIC_KEY
        fields["private_key"] = VAPID_PRIVATE_KEY

    return VapidOptions(**fields)


def load_delivery_options(**overrides) -> DeliveryOptions:
    """Build DeliveryOptions from the environment, applying keyword overrides last."""
    fields = {
        "ttl": TTL,
        "urgency": URGENCY,
        "api_key": GCM_API_KEY or None,
        "open_timeout": OPEN_TIMEOUT,
        "ssl_timeout": SSL_TIMEOUT,
        "read_timeout": READ_TIMEOUT,
    }
    fields.update(overrides)
    return DeliveryOptions(**fields)
