import json
import logging
import openai
from openai import AsyncOpenAI
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


class OpenAIProvider(LLMProvider):
    """Provider for OpenAI and any OpenAI-compatible chat completions API."""

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        base_url: str | None = None,
        temperature: float = 0.1,
    ):
        self.model = model or self.DEFAULT_MODEL
        self.temperature = temperature
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def _complete(self, **kwargs):
        try:
            return await self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                **kwargs,
            )
        except openai.RateLimitError as e:
            raise RateLimitError(f"OpenAI rate limit or quota exceeded: {e}") from e
        except (openai.APIConnectionError, openai.InternalServerError) as e:
            raise ProviderError(f"OpenAI transient error: {e}", retryable=True) from e
        except openai.APIStatusError as e:
            raise ProviderError(f"OpenAI request failed with {e.status_code}: {e}") from e

    async def generate_with_tools(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: list[ToolSchema],
    ) -> ToolGeneration:
        kwargs = {
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        if tools:
            kwargs["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": tool.json_schema(),
                    },
                }
                for tool in tools
            ]

        response = await self._complete(**kwargs)
        message = response.choices[0].message

        invocations = []
        for call in message.tool_calls or []:
            try:
                arguments = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError:
                logger.warning(f"Skipping tool call {call.function.name} with malformed arguments")
                continue
            invocations.append(ToolInvocation(name=call.function.name, arguments=arguments))

        return ToolGeneration(text=message.content or "", tool_invocations=invocations)

    async def generate_structured(self, prompt: str, schema: type[T]) -> T:
        response = await self._complete(
            messages=[{"role": "user", "content": f"{prompt}\n\n{schema_instructions(schema)}"}],
            response_format={"type": "json_object"},
        )
        text = response.choices[0].message.content or ""
        logger.info(f"OpenAI response length: {len(text)} chars")
        return parse_structured(text, schema)
