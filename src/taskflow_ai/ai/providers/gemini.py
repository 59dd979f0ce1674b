# src/taskflow_ai/ai/providers/gemini.py

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

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
from .common import HELLO_PROMPT, build_combined_prompt, make_timeout, provider_label, require_https

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-flash-lite-latest"
DEFAULT_TIMEOUT_SECONDS = 60.0

# finishReason values that mean "the model finished normally".
_NORMAL_FINISH = {"STOP", "FINISH_REASON_UNSPECIFIED"}


class GeminiProvider:
    """
    Google Gemini via the Generative Language REST API (generateContent).

    Gemini takes one combined prompt here: system prompt + labelled input text.
    The API key is read from the credential store on every call.
    """

    provider_type = ProviderType.GEMINI

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

    async def enhance(self, text: str, mode: ModeData) -> EnhancementResult:
        api_key = self._api_key()
        model = mode.model_name.strip() or self._default_model
        prompt = build_combined_prompt(mode.system_prompt, text)

        logger.info("Gemini: enhance mode=%s model=%s chars=%d", mode.name, model, len(text))
        try:
            t0 = time.monotonic()
            data = await self._generate(api_key, model, prompt)
            elapsed = time.monotonic() - t0
            enhanced, tokens = _extract_text(data)
        except AIError as e:
            logger.info("Gemini: failed model=%s kind=%s", model, e.kind)
            raise
        except Exception as e:
            logger.debug("Gemini: unexpected failure", exc_info=True)
            raise NetworkError(str(e) or e.__class__.__name__) from e

        logger.info("Gemini: done model=%s in %.2fs tokens=%s", model, elapsed, tokens)
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
            data = await self._generate(api_key, self._default_model, HELLO_PROMPT)
            _extract_text(data)
        except AIError:
            raise
        except Exception as e:
            raise NetworkError(str(e) or e.__class__.__name__) from e
        return True

    async def _generate(self, api_key: str, model: str, prompt: str) -> dict[str, Any]:
        url = f"{self._base_url}/models/{model}:generateContent"
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}

        try:
            async with httpx.AsyncClient(
                timeout=make_timeout(self._timeout_seconds),
                transport=self._transport,
            ) as client:
                resp = await client.post(url, json=payload, headers={"x-goog-api-key": api_key})
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request timed out after {self._timeout_seconds:.0f}s") from e
        except httpx.HTTPError as e:
            raise NetworkError(str(e) or e.__class__.__name__) from e

        if resp.status_code >= 400:
            raise _map_http_error(resp)

        try:
            data = resp.json()
        except ValueError as e:
            raise InvalidResponseError() from e
        if not isinstance(data, dict):
            raise InvalidResponseError()
        return data


def _extract_text(data: dict[str, Any]) -> tuple[str, int | None]:
    feedback = data.get("promptFeedback") or {}
    candidates = data.get("candidates") or []
    if not isinstance(feedback, dict) or not isinstance(candidates, list):
        raise InvalidResponseError()

    block_reason = feedback.get("blockReason")
    if block_reason:
        raise ProviderError(f"Content blocked: {block_reason}")
    if not candidates and feedback:
        raise ProviderError("Content was blocked by safety filters")
    if not candidates or not isinstance(candidates[0], dict):
        raise InvalidResponseError()

    candidate = candidates[0]
    finish_reason = candidate.get("finishReason")
    if finish_reason and finish_reason not in _NORMAL_FINISH:
        raise ProviderError(f"Response stopped: {finish_reason}")

    content = candidate.get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    texts = [p["text"] for p in parts or [] if isinstance(p, dict) and isinstance(p.get("text"), str)]
    if not texts:
        logger.info("Gemini: candidate had no text parts (keys=%s)", sorted(candidate))
        raise InvalidResponseError()

    usage = data.get("usageMetadata") or {}
    total = usage.get("totalTokenCount") if isinstance(usage, dict) else None
    tokens = total if isinstance(total, int) else None
    text = "".join(texts)
    if not text.strip():
        raise InvalidResponseError()
    return text, tokens


def _map_http_error(resp: httpx.Response) -> AIError:
    try:
        body = resp.json()
    except ValueError:
        body = None

    err = body.get("error") if isinstance(body, dict) else None
    if not isinstance(err, dict):
        err = {}

    message = str(err.get("message") or "").strip() or (resp.text or "").strip()[:200] or f"HTTP {resp.status_code}"
    reasons = {
        str(d.get("reason"))
        for d in err.get("details") or []
        if isinstance(d, dict) and d.get("reason")
    }

    if "API_KEY_INVALID" in reasons or resp.status_code == 401:
        return InvalidAPIKeyError()
    if resp.status_code == 403 and "api key" in message.lower():
        return InvalidAPIKeyError()
    if "user location is not supported" in message.lower():
        return ProviderError("Gemini is not available in your region")

    logger.info("Gemini: HTTP %s status=%s", resp.status_code, err.get("status"))
    return ProviderError(f"Gemini error: {message}")
