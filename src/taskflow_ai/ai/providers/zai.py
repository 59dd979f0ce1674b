# src/taskflow_ai/ai/providers/zai.py

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from ...core.ports import CredentialStore
from ..errors import (
    AIError,
    InvalidAPIKeyError,
    InvalidResponseError,
    NetworkError,
    NotConfiguredError,
    ProviderError,
)
from ..models import EnhancementResult, ModeData, ProviderType
from .common import HELLO_PROMPT, make_timeout, provider_label, require_https

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.z.ai/api/paas/v4"
DEFAULT_MODEL = "glm-4.5-flash"
DEFAULT_TIMEOUT_SECONDS = 30.0

# finish_reason values that mean the text was cut short or withheld.
_STOPPED_EARLY = {"length", "content_filter", "sensitive", "network_error"}


class ZAIProvider:
    """
    Z.ai (GLM) through its OpenAI-compatible chat completions endpoint.

    Uses native roles: mode system prompt -> system, input text -> user.
    Automatic SDK retries are disabled; the caller decides whether to retry.
    """

    provider_type = ProviderType.ZAI

    def __init__(
        self,
        credentials: CredentialStore,
        *,
        base_url: str = DEFAULT_BASE_URL,
        default_model: str = DEFAULT_MODEL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credentials = credentials
        self._base_url = require_https(base_url)
        self._default_model = (default_model or "").strip() or DEFAULT_MODEL
        self._timeout_seconds = float(timeout_seconds)
        self._transport = transport

    @property
    def name(self) -> str:
        return self.provider_type.display_name

    @property
    def default_model(self) -> str:
        return self._default_model

    @property
    def is_configured(self) -> bool:
        return self._credentials.has_key(self.provider_type.credential_key)

    def _api_key(self) -> str:
        try:
            api_key = self._credentials.get(self.provider_type.credential_key)
        except Exception as e:
            raise NetworkError(f"Could not read API key: {e}") from e
        if not api_key:
            raise NotConfiguredError()
        return api_key

    def _make_client(self, api_key: str) -> AsyncOpenAI:
        timeout = make_timeout(self._timeout_seconds)
        return AsyncOpenAI(
            base_url=self._base_url,
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
            http_client=httpx.AsyncClient(timeout=timeout, transport=self._transport),
        )

    async def enhance(self, text: str, mode: ModeData) -> EnhancementResult:
        api_key = self._api_key()
        model = mode.model_name.strip() or self._default_model
        messages = [
            {"role": "system", "content": mode.system_prompt},
            {"role": "user", "content": text},
        ]

        logger.info("Z.ai: enhance mode=%s model=%s chars=%d", mode.name, model, len(text))
        try:
            t0 = time.monotonic()
            completion = await self._complete(api_key, model, messages)
            elapsed = time.monotonic() - t0
            enhanced, tokens = _extract_text(completion)
        except AIError as e:
            logger.info("Z.ai: failed model=%s kind=%s", model, e.kind)
            raise
        except Exception as e:
            logger.debug("Z.ai: unexpected failure", exc_info=True)
            raise NetworkError(str(e) or e.__class__.__name__) from e

        logger.info("Z.ai: done model=%s in %.2fs tokens=%s", model, elapsed, tokens)
        return EnhancementResult(
            original_text=text,
            enhanced_text=enhanced.strip(),
            mode_name=mode.name,
            provider=provider_label(self.name, model),
            tokens_used=tokens,
            processing_time=elapsed,
        )

    async def test_connection(self) -> bool:
        api_key = self._api_key()
        try:
            completion = await self._complete(
                api_key,
                self._default_model,
                [{"role": "user", "content": HELLO_PROMPT}],
            )
            _extract_text(completion)
        except AIError:
            raise
        except Exception as e:
            raise NetworkError(str(e) or e.__class__.__name__) from e
        return True

    async def _complete(self, api_key: str, model: str, messages: list[dict[str, str]]) -> Any:
        try:
            async with self._make_client(api_key) as client:
                return await client.chat.completions.create(model=model, messages=messages)
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise InvalidAPIKeyError() from e
        except openai.APITimeoutError as e:
            raise NetworkError(f"Request timed out after {self._timeout_seconds:.0f}s") from e
        except openai.APIConnectionError as e:
            raise NetworkError(_describe_cause(e)) from e
        except openai.APIResponseValidationError as e:
            raise InvalidResponseError() from e
        except openai.RateLimitError as e:
            raise ProviderError(f"Z.ai rate limit reached: {_status_message(e)}") from e
        except openai.APIStatusError as e:
            raise ProviderError(f"Z.ai error ({e.status_code}): {_status_message(e)}") from e


def _extract_text(completion: Any) -> tuple[str, int | None]:
    choices = getattr(completion, "choices", None) or []
    if not isinstance(choices, list) or not choices:
        raise InvalidResponseError()

    choice0 = choices[0]
    finish_reason = getattr(choice0, "finish_reason", None)
    if finish_reason in _STOPPED_EARLY:
        raise ProviderError(f"Response stopped: {finish_reason}")

    message = getattr(choice0, "message", None)
    content = getattr(message, "content", None) if message is not None else None
    if not isinstance(content, str) or not content.strip():
        raise InvalidResponseError()

    usage = getattr(completion, "usage", None)
    total = getattr(usage, "total_tokens", None) if usage is not None else None
    tokens = total if isinstance(total, int) else None
    return content, tokens


def _status_message(err: openai.APIStatusError) -> str:
    body = err.body
    if isinstance(body, dict):
        msg = body.get("message")
        if msg:
            return str(msg)
    return err.message


def _describe_cause(err: Exception) -> str:
    cause = err.__cause__
    if cause is not None and str(cause):
        return str(cause)
    return str(err) or err.__class__.__name__
