"""Login state machine: saved session → login form → security challenge.

States::

    UNAUTHENTICATED → SESSION_CHECK → {AUTHENTICATED | LOGIN_FORM}
    LOGIN_FORM → {AUTHENTICATED | CHALLENGE | FAILED}
    CHALLENGE → {AUTHENTICATED | FAILED}

AUTHENTICATED is reached at most once per machine and always persists the
context cookies first. FAILED is terminal; ``ensure()`` keeps raising.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, NoReturn

from patchright.async_api import TimeoutError as PlaywrightTimeoutError

from src.auth.session_store import SessionStore
from src.auth.verification import VerificationCodeProvider
from src.browser.actions import settle
from src.browser.extract import find_first
from src.core.config import LinkedInCredentials, TimingConfig
from src.core.errors import AuthenticationError
from src.platforms.linkedin.searcher import (
    FEED_URL,
    LOGIN_URL,
    is_authenticated_url,
    is_challenge_url,
)
from src.platforms.linkedin.selectors import (
    CODE_INPUT_SELECTORS,
    CODE_SUBMIT_SELECTORS,
    LOGIN_SUBMIT_SELECTORS,
    PASSWORD_SELECTORS,
    USERNAME_SELECTORS,
)

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    SESSION_CHECK = "session_check"
    LOGIN_FORM = "login_form"
    CHALLENGE = "challenge"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class AuthenticationStateMachine:
    """Drives a browser page to an authenticated LinkedIn session."""

    def __init__(
        self,
        page: Any,
        credentials: LinkedInCredentials,
        store: SessionStore,
        *,
        code_provider: VerificationCodeProvider | None = None,
        timing: TimingConfig | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._page = page
        self._credentials = credentials
        self._store = store
        self._code_provider = code_provider
        self._timing = timing or TimingConfig()
        self._log = log or logger
        self._state = AuthState.UNAUTHENTICATED
        self._failure = ""

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state is AuthState.AUTHENTICATED

    async def ensure(self) -> None:
        """Reach AUTHENTICATED or raise AuthenticationError. No-op once authenticated."""
        if self._state is AuthState.AUTHENTICATED:
            return
        if self._state is AuthState.FAILED:
            raise AuthenticationError(self._failure, self._state)

        try:
            await self._run()
        except AuthenticationError:
            raise
        except Exception as e:
            self._fail(f"Login failed in state {self._state.value}: {e}")

    async def _run(self) -> None:
        self._transition(AuthState.SESSION_CHECK)
        if await self._check_saved_session():
            await self._authenticated("Logged in using saved session")
            return

        self._transition(AuthState.LOGIN_FORM)
        url = await self._submit_login_form()
        if is_authenticated_url(url):
            await self._authenticated("Login successful")
            return
        if not is_challenge_url(url):
            self._fail(f"Login status unclear. Current URL: {url}")

        self._transition(AuthState.CHALLENGE)
        self._log.info("LinkedIn security challenge detected")
        if await self._try_verification_code():
            await self._authenticated("Verification successful")
            return
        if await self._wait_for_manual_completion():
            await self._authenticated("Challenge completed")
            return
        self._fail("Challenge completion timeout")

    # --- States ---

    async def _check_saved_session(self) -> bool:
        blob = self._store.load()
        if not blob:
            self._log.debug("No saved session")
            return False

        try:
            await self._page.context.add_cookies(blob)
            self._log.info("Checking saved session (%d cookies)...", len(blob))
            await self._page.goto(FEED_URL, wait_until="domcontentloaded")
            await settle(self._timing.login_settle_s)
        except Exception:
            self._log.warning("Saved session replay failed", exc_info=True)
            return False

        if is_authenticated_url(self._page.url):
            return True
        self._log.info("Saved session expired (landed on %s), logging in again", self._page.url)
        return False

    async def _submit_login_form(self) -> str:
        self._log.info("Logging into LinkedIn...")
        await self._page.goto(LOGIN_URL, wait_until="domcontentloaded")

        username = await find_first(self._page, USERNAME_SELECTORS)
        password = await find_first(self._page, PASSWORD_SELECTORS)
        submit = await find_first(self._page, LOGIN_SUBMIT_SELECTORS)
        if username is None or password is None or submit is None:
            self._fail(f"Login form not found at {self._page.url}")

        await username.fill(self._credentials.email)
        await password.fill(self._credentials.password)
        await submit.click()
        await settle(self._timing.login_settle_s)
        return str(self._page.url)

    async def _try_verification_code(self) -> bool:
        """Single bounded attempt to answer the challenge with a provider code."""
        code_input = await find_first(self._page, CODE_INPUT_SELECTORS)
        if code_input is None:
            self._log.info("No verification code input found")
            return False
        if self._code_provider is None:
            self._log.info("No verification code provider configured")
            return False

        try:
            code = await asyncio.wait_for(
                self._code_provider.fetch_code(),
                timeout=self._timing.code_provider_timeout_s,
            )
        except Exception:
            self._log.warning("Verification code provider failed", exc_info=True)
            return False
        if not code:
            self._log.warning("Could not fetch verification code")
            return False

        self._log.info("Verification code received, submitting")
        try:
            await code_input.scroll_into_view_if_needed()
            await code_input.click()
            await code_input.fill(code)
            submit = await find_first(self._page, CODE_SUBMIT_SELECTORS)
            if submit is None:
                self._log.warning("No submit control for verification code")
                return False
            await submit.click()
            await settle(self._timing.login_settle_s)
        except Exception:
            self._log.warning("Failed to submit verification code", exc_info=True)
            return False

        return is_authenticated_url(self._page.url)

    async def _wait_for_manual_completion(self) -> bool:
        timeout_s = self._timing.challenge_timeout_s
        self._log.warning(
            "Please complete the security challenge manually in the browser. "
            "Waiting up to %.0f seconds...", timeout_s,
        )
        try:
            await self._page.wait_for_url(is_authenticated_url, timeout=timeout_s * 1000)
        except (PlaywrightTimeoutError, asyncio.TimeoutError):
            return False
        return True

    # --- Transitions ---

    async def _authenticated(self, message: str) -> None:
        try:
            cookies = await self._page.context.cookies()
            self._store.save(cookies)
        except Exception:
            self._log.warning("Failed to save session", exc_info=True)
        self._transition(AuthState.AUTHENTICATED)
        self._log.info(message)

    def _transition(self, state: AuthState) -> None:
        self._log.debug("Auth state %s -> %s", self._state.value, state.value)
        self._state = state

    def _fail(self, message: str) -> NoReturn:
        self._failure = message
        self._transition(AuthState.FAILED)
        self._log.error("Login failed: %s", message)
        raise AuthenticationError(message, AuthState.FAILED)
