"""Slack request signature verification."""

from __future__ import annotations

import hashlib
import hmac
import logging
import time

from fastapi import HTTPException, Request, status

from sprintbot.api.dependencies import SettingsDep

logger = logging.getLogger("sprintbot.api.security")

SIGNATURE_VERSION = "v0"
MAX_REQUEST_AGE_SECONDS = 5 * 60


class SlackSignatureError(Exception):
    """Request did not come from Slack or is too old."""


def compute_signature(signing_secret: str, timestamp: str, body: bytes) -> str:
    """Compute the ``v0=`` signature Slack sends for a request body."""
    basestring = f"{SIGNATURE_VERSION}:{timestamp}:".encode() + body
    digest = hmac.new(signing_secret.encode(), basestring, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def verify_slack_signature(
    signing_secret: str,
    timestamp: str,
    signature: str,
    body: bytes,
    now: float | None = None,
) -> None:
    """Check a request's Slack signature.

    Args:
        signing_secret: App signing secret.
        timestamp: Value of ``X-Slack-Request-Timestamp``.
        signature: Value of ``X-Slack-Signature``.
        body: Raw request body.
        now: Current UNIX time (for testing).

    Raises:
        SlackSignatureError: If headers are missing, the request is stale or
            the signature does not match.
    """
    if not signing_secret:
        raise SlackSignatureError("Signing secret not configured")
    if not timestamp or not signature:
        raise SlackSignatureError("Signature headers missing")
    try:
        sent_at = int(timestamp)
    except ValueError as e:
        raise SlackSignatureError("Invalid request timestamp") from e

    current = time.time() if now is None else now
    if abs(current - sent_at) > MAX_REQUEST_AGE_SECONDS:
        raise SlackSignatureError("Request timestamp is too old")

    expected = compute_signature(signing_secret, timestamp, body)
    if not hmac.compare_digest(expected, signature):
        raise SlackSignatureError("Signatures do not match")


async def verified_slack_body(request: Request, settings: SettingsDep) -> bytes:
    """Dependency that returns the raw body of a verified Slack request."""
    body = await request.body()
    try:
        verify_slack_signature(
            settings.slack_signing_secret,
            request.headers.get("X-Slack-Request-Timestamp", ""),
            request.headers.get("X-Slack-Signature", ""),
            body,
        )
    except SlackSignatureError as e:
        logger.warning("Rejected Slack request: %s", e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e
    return body
