"""Sentry error tracking configuration and initialization."""

import os
import re

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.utils import BadDsn

from quizpot.core.logging import get_logger

logger = get_logger(__name__)

# Guard against multiple initializations
_sentry_initialized = False

_ADDRESS_PATTERN = re.compile(r"0x[0-9a-fA-F]{40}")
_ACCOUNT_KEYS = {"participant", "recipient", "winner", "caller", "source", "destination"}


def init_sentry() -> None:
    """
    Initialize Sentry SDK for error tracking.

    Only initializes if SENTRY_DSN environment variable is set and valid,
    so local development and tests run without Sentry. Safe to call twice.

    Configuration:
    - Performance monitoring disabled
    - Logging integration disabled to avoid duplication with structlog
    - Account addresses scrubbed from event payloads
    """
    global _sentry_initialized

    if _sentry_initialized:
        return

    sentry_dsn = os.getenv("SENTRY_DSN")
    if not sentry_dsn:
        logger.info("sentry.disabled", message="Sentry DSN not found, error tracking disabled")
        return

    # Catches placeholder values like "xxx" that might be set in CI
    sentry_dsn_stripped = sentry_dsn.strip()
    if not sentry_dsn_stripped.startswith(("https://", "http://")):
        logger.info(
            "sentry.disabled",
            message="Sentry DSN appears to be invalid or placeholder, error tracking disabled",
        )
        return

    environment = os.getenv("ENVIRONMENT", "development")

    try:
        sentry_sdk.init(
            dsn=sentry_dsn_stripped,
            environment=environment,
            traces_sample_rate=0.0,
            send_default_pii=False,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                LoggingIntegration(level=None, event_level=None),
            ],
            before_send=_scrub_accounts,
        )

        _sentry_initialized = True
        logger.info(
            "sentry.initialized", message="Sentry error tracking enabled", environment=environment
        )
    except BadDsn as exc:
        logger.warning(
            "sentry.init_failed",
            message="Failed to initialize Sentry due to invalid DSN, error tracking disabled",
            error=str(exc),
        )


def _mask(value: str) -> str:
    return _ADDRESS_PATTERN.sub(lambda m: m.group(0)[:6] + "…" + m.group(0)[-4:], value)


def _scrub_accounts(event: dict, hint: dict) -> dict:
    """Mask account addresses in extra data, contexts and breadcrumbs."""
    extra = event.get("extra")
    if isinstance(extra, dict):
        event["extra"] = {
            key: _mask(str(value)) if key in _ACCOUNT_KEYS or isinstance(value, str) else value
            for key, value in extra.items()
        }

    contexts = event.get("contexts")
    if isinstance(contexts, dict) and isinstance(contexts.get("disbursement"), dict):
        disbursement = contexts["disbursement"]
        for key in _ACCOUNT_KEYS & disbursement.keys():
            disbursement[key] = _mask(str(disbursement[key]))

    breadcrumbs = event.get("breadcrumbs")
    if isinstance(breadcrumbs, dict):
        values = breadcrumbs.get("values", [])
    else:
        values = breadcrumbs if isinstance(breadcrumbs, list) else []
    for crumb in values:
        if isinstance(crumb, dict) and isinstance(crumb.get("message"), str):
            crumb["message"] = _mask(crumb["message"])

    return event


def report_disbursement_failure(
    session_id: int, kind: str, recipient: str, amount: int, error: str
) -> None:
    """Report a stuck payout or refund as an operational incident.

    No-op when Sentry is not initialized.
    """
    if not _sentry_initialized:
        return

    with sentry_sdk.new_scope() as scope:
        scope.set_tag("session_id", str(session_id))
        scope.set_tag("disbursement_kind", kind)
        scope.set_context(
            "disbursement",
            {"recipient": recipient, "amount": str(amount), "error": error},
        )
        sentry_sdk.capture_message(f"{kind.lower()} transfer failed", level="warning")


def report_subscriber_failure(exc: Exception, kind: str, session_id: int | None) -> None:
    """Capture an exception raised by a notification subscriber.

    No-op when Sentry is not initialized.
    """
    if not _sentry_initialized:
        return

    with sentry_sdk.new_scope() as scope:
        scope.set_tag("notification_kind", kind)
        if session_id is not None:
            scope.set_tag("session_id", str(session_id))
        sentry_sdk.capture_exception(exc)
