from .base import LLMProvider, ProviderError, RateLimitError, StructuredOutputError
from .gemini import GeminiProvider
from .openai import OpenAIProvider

__all__ = [
    "LLMProvider",
    "ProviderError",
    "RateLimitError",
    "StructuredOutputError",
    "GeminiProvider",
    "OpenAIProvider",
]
