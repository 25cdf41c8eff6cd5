"""
PayPal Settings

Process-wide configuration for the payout relay. Built once at startup from
environment variables and passed by reference to everything that needs it.

Also home of the credential resolver: picks the sandbox or live credential
set for a given payment mode.
"""

import os
import logging
from typing import Optional, Mapping

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

LIVE_MODE = "live"
SANDBOX_MODE = "sandbox"

LIVE_BASE_URL = "https://api-m.paypal.com"
SANDBOX_BASE_URL = "https://api-m.sandbox.paypal.com"

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_SENDER_NAME = "E.V.A"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class PayPalCredentials(BaseModel):
    """Client credentials and API base URL for one mode."""
    client_id: str = ""
    client_secret: str = ""
    base_url: str

    class Config:
        frozen = True


class PayPalSettings(BaseModel):
    """Immutable relay configuration."""
    sandbox: PayPalCredentials = Field(default_factory=lambda: PayPalCredentials(base_url=SANDBOX_BASE_URL))
    live: PayPalCredentials = Field(default_factory=lambda: PayPalCredentials(base_url=LIVE_BASE_URL))
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    sender_name: str = DEFAULT_SENDER_NAME
    batch_partial_results: bool = False

    class Config:
        frozen = True


def resolve_credentials(settings: PayPalSettings, mode: Optional[str]) -> PayPalCredentials:
    """
    Select the credential set for a payment mode.

    Only the exact literal "live" selects live credentials. Anything else,
    including "Live" or "LIVE", falls back to sandbox.
    """
    if mode == LIVE_MODE:
        return settings.live
    return settings.sandbox


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUE_VALUES


def load_settings(environ: Optional[Mapping[str, str]] = None) -> PayPalSettings:
    """
    Build settings from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        PayPalSettings instance
    """
    env = os.environ if environ is None else environ

    settings = PayPalSettings(
        sandbox=PayPalCredentials(
            client_id=env.get("PAYPAL_SANDBOX_CLIENT_ID", ""),
            client_secret=env.get("PAYPAL_SANDBOX_CLIENT_SECRET", ""),
            base_url=env.get("PAYPAL_SANDBOX_BASE_URL", SANDBOX_BASE_URL).rstrip("/"),
        ),
        live=PayPalCredentials(
            client_id=env.get("PAYPAL_LIVE_CLIENT_ID", ""),
            client_secret=env.get("PAYPAL_LIVE_CLIENT_SECRET", ""),
            base_url=env.get("PAYPAL_LIVE_BASE_URL", LIVE_BASE_URL).rstrip("/"),
        ),
        timeout_seconds=float(env.get("PAYPAL_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)),
        sender_name=env.get("PAYOUT_SENDER_NAME", DEFAULT_SENDER_NAME),
        batch_partial_results=_env_flag(env.get("PAYOUT_BATCH_PARTIAL_RESULTS")),
    )

    for mode, creds in ((SANDBOX_MODE, settings.sandbox), (LIVE_MODE, settings.live)):
        if not creds.client_id or not creds.client_secret:
            logger.warning(f"⚠️ PayPal {mode} credentials not configured - {mode} payouts will fail to authenticate")

    return settings
