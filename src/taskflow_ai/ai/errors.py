# src/taskflow_ai/ai/errors.py

"""
Error taxonomy shared by provider adapters and the AIService.

Every adapter call either returns an EnhancementResult or raises exactly one
of these. Callers decide between retry, showing the message, or sending the
user to credential setup (see AIError.should_reconfigure).
"""

from __future__ import annotations


class AIError(Exception):
    kind: str = "ai_error"
    default_message: str = "AI error."

    def __init__(self, message: str | None = None) -> None:
        self.message = (message or "").strip() or self.default_message
        super().__init__(self.message)

    @property
    def should_reconfigure(self) -> bool:
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AIError):
            return NotImplemented
        return self.kind == other.kind and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.kind, self.message))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class NotConfiguredError(AIError):
    """No credential stored for the mode's provider."""

    kind = "not_configured"
    default_message = "AI provider not configured. Please add your API key in Settings."

    @property
    def should_reconfigure(self) -> bool:
        return True


class InvalidAPIKeyError(AIError):
    """The provider rejected the credential (malformed or revoked key)."""

    kind = "invalid_api_key"
    default_message = "Invalid API key. Please check your API key in Settings."

    @property
    def should_reconfigure(self) -> bool:
        return True


class InvalidResponseError(AIError):
    """
    The response could not be turned into text.

    Raised for an empty/unparseable body and for a well-formed body that lacks
    the text field. The latter usually means the provider changed its contract.
    """

    kind = "invalid_response"
    default_message = "Invalid response from AI provider."


class ProviderError(AIError):
    """Provider-side failure with a readable reason (blocked, stopped early, region, upstream)."""

    kind = "provider_error"
    default_message = "AI provider error."


class NetworkError(AIError):
    """Transport failure: timeout, DNS, connection reset."""

    kind = "network_error"
    default_message = "unknown network failure"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message)
        self.detail = self.message
        self.message = f"Network error: {self.detail}"
        self.args = (self.message,)
