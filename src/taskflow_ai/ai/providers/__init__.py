from .gemini import GeminiProvider
from .zai import ZAIProvider

__all__ = ["GeminiProvider", "ZAIProvider"]
