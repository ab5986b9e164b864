"""Exceptions surfaced to callers of the engine."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.auth.state_machine import AuthState


class AuthenticationError(RuntimeError):
    """Login could not reach an authenticated state.

    Raised for an ambiguous post-login address or a challenge that was not
    completed in time. Not retried; build a new engine to try again.
    """

    def __init__(self, message: str, state: "AuthState | None" = None) -> None:
        super().__init__(message)
        self.state = state
