import logging
from typing import Any
import httpx
from .base import (
    LLMProvider,
    ProviderError,
    RateLimitError,
    T,
    ToolGeneration,
    ToolInvocation,
    ToolSchema,
    parse_structured,
    schema_instructions,
)


logger = logging.getLogger(__name__)

UNSUPPORTED_SCHEMA_KEYS = {"title", "default", "additionalProperties"}


def _gemini_schema(schema: Any) -> Any:
    """Reduce a pydantic JSON schema to the OpenAPI subset Gemini accepts."""
    if isinstance(schema, list):
        return [_gemini_schema(item) for item in schema]
    if not isinstance(schema, dict):
        return schema

    any_of = schema.get("anyOf")
    if any_of:
        non_null = [option for option in any_of if option.get("type") != "null"]
        if len(non_null) == 1:
            reduced = {**schema, **non_null[0], "nullable": True}
            reduced.pop("anyOf")
            return _gemini_schema(reduced)

    return {
        key: _gemini_schema(value)
        for key, value in schema.items()
        if key not in UNSUPPORTED_SCHEMA_KEYS
    }


class GeminiProvider(LLMProvider):
    API_URL = "https://generativelanguage.googleapis.com/v1beta/models"
    DEFAULT_MODEL = "gemini-2.5-flash"

    def __init__(self, api_key: str, model: str | None = None, temperature: float = 0.1):
        self.api_key = api_key
        self.model = model or self.DEFAULT_MODEL
        self.temperature = temperature

    async def _generate(self, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.API_URL}/{self.model}:generateContent?key={self.api_key}",
                    json=payload,
                    timeout=120.0,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                raise RateLimitError(f"Gemini rate limit or quota exceeded: {e.response.text[:200]}") from e
            raise ProviderError(f"Gemini request failed with {status}", retryable=status >= 500) from e
        except httpx.TransportError as e:
            raise ProviderError(f"Gemini network error: {e}", retryable=True) from e

        data = response.json()
        candidates = data.get("candidates") or []
        if not candidates:
            raise ProviderError(f"Gemini returned no candidates: {data.get('promptFeedback')}")
        return candidates[0].get("content") or {}

    async def generate_with_tools(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: list[ToolSchema],
    ) -> ToolGeneration:
        payload: dict[str, Any] = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": {"temperature": self.temperature},
        }
        if tools:
            payload["tools"] = [{
                "functionDeclarations": [
                    {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": _gemini_schema(tool.json_schema()),
                    }
                    for tool in tools
                ]
            }]

        content = await self._generate(payload)
        text_parts = []
        invocations = []
        for part in content.get("parts") or []:
            if "text" in part:
                text_parts.append(part["text"])
            elif "functionCall" in part:
                call = part["functionCall"]
                invocations.append(ToolInvocation(name=call["name"], arguments=call.get("args") or {}))

        logger.info(f"Gemini returned {len(invocations)} tool call(s)")
        return ToolGeneration(text="".join(text_parts), tool_invocations=invocations)

    async def generate_structured(self, prompt: str, schema: type[T]) -> T:
        content = await self._generate({
            "contents": [{
                "parts": [{"text": f"{prompt}\n\n{schema_instructions(schema)}"}]
            }],
            "generationConfig": {
                "temperature": self.temperature,
                "responseMimeType": "application/json",
            },
        })
        text = "".join(part.get("text", "") for part in content.get("parts") or [])
        return parse_structured(text, schema)
