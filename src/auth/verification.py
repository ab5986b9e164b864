"""Verification-code providers used to answer login security challenges.

The state machine only needs ``await provider.fetch_code()`` returning a
six-digit string or None. The Gmail provider reads the newest LinkedIn
verification email through the Gmail API.
"""

import asyncio
import base64
import logging
import re
from typing import Any, Protocol, runtime_checkable

from src.core.config import GmailConfig

logger = logging.getLogger(__name__)

CODE_PATTERN = re.compile(r"\b(\d{6})\b")
LABELLED_CODE_PATTERN = re.compile(r"verification code[:\s]+(\d{6})", re.IGNORECASE)


@runtime_checkable
class VerificationCodeProvider(Protocol):
    """Anything that can produce a verification code on demand."""

    async def fetch_code(self) -> str | None: ...


class StaticCodeProvider:
    """Returns a fixed code (or None). Handy for scripted runs and tests."""

    def __init__(self, code: str | None) -> None:
        self._code = code
        self.calls = 0

    async def fetch_code(self) -> str | None:
        self.calls += 1
        return self._code


def extract_code(text: str | None) -> str | None:
    """Extract a 6-digit verification code from an email body."""
    if not text:
        return None
    match = CODE_PATTERN.search(text)
    if match:
        return match.group(1)
    match = LABELLED_CODE_PATTERN.search(text)
    if match:
        return match.group(1)
    return None


def decode_base64url(data: str) -> str:
    if not data:
        return ""
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")


def plain_text_body(payload: dict[str, Any] | None) -> str:
    """Return the first text/plain part of a Gmail message payload."""
    if not payload:
        return ""
    body = payload.get("body") or {}
    if payload.get("mimeType") == "text/plain" and body.get("data"):
        return decode_base64url(body["data"])
    for part in payload.get("parts") or []:
        text = plain_text_body(part)
        if text:
            return text
    return ""


class GmailCodeProvider:
    """Reads the latest LinkedIn verification code from a Gmail inbox."""

    def __init__(
        self,
        config: GmailConfig,
        *,
        service: Any = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._service = service
        self._log = log or logger

    async def fetch_code(self) -> str | None:
        try:
            return await asyncio.to_thread(self._fetch_code_sync)
        except Exception as e:
            self._log.warning("Gmail API error: %s", e)
            return None

    def _fetch_code_sync(self) -> str | None:
        self._log.info("Fetching verification code from Gmail...")
        service = self._get_service()
        res = service.users().messages().list(
            userId="me", maxResults=5, q=self._config.query,
        ).execute()
        messages = res.get("messages") or []
        if not messages:
            self._log.warning("No verification emails found")
            return None

        message_id = messages[0].get("id")
        if not message_id:
            self._log.warning("Newest verification email has no id")
            return None

        msg = service.users().messages().get(
            userId="me", id=message_id, format="full",
        ).execute()
        code = extract_code(plain_text_body(msg.get("payload")))
        if code is None:
            self._log.warning("Could not extract code from verification email")
            return None
        self._log.info("Extracted verification code from email %s", message_id)
        return code

    def _get_service(self) -> Any:
        if self._service is not None:
            return self._service
        try:
            from google.oauth2.credentials import Credentials
            from googleapiclient.discovery import build
        except ImportError:
            msg = (
                "google-api-python-client is required for Gmail verification codes. "
                "Install with: pip install 'linkedin-job-acquisition[gmail]'"
            )
            raise ImportError(msg) from None

        creds = Credentials(
            token=self._config.access_token or None,
            refresh_token=self._config.refresh_token,
            token_uri=self._config.token_uri,
            client_id=self._config.client_id,
            client_secret=self._config.client_secret,
        )
        self._service = build("gmail", "v1", credentials=creds, cache_discovery=False)
        return self._service
