# src/taskflow_ai/ai/providers/common.py

from __future__ import annotations

from urllib.parse import urlparse

import httpx

HELLO_PROMPT = "Say hello"


def build_combined_prompt(system_prompt: str, text: str) -> str:
    """Single-prompt layout for providers without a separate system role."""
    return f"{system_prompt}\n\nText to process:\n\n{text}"


def require_https(base_url: str) -> str:
    url = (base_url or "").strip().rstrip("/")
    parsed = urlparse(url)
    if parsed.scheme != "https" or not parsed.netloc:
        raise ValueError(f"AI provider endpoint must be an https:// URL, got {base_url!r}")
    return url


def make_timeout(total_s: float, *, connect_s: float = 10.0) -> httpx.Timeout:
    """One overall budget per request; connect is capped separately."""
    return httpx.Timeout(total_s, connect=min(connect_s, total_s))


def provider_label(display_name: str, model: str) -> str:
    return f"{display_name} ({model})"
