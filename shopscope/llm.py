from typing import Any, Protocol

from anthropic import AsyncAnthropic

from .config import DEFAULT_MAX_TOKENS, DEFAULT_MODEL
from .prompts import build_system_prompt


class InvalidModelJSON(ValueError):
    def __init__(self, raw_text: str, error: str, kind: str):
        super().__init__(f"Model output failure ({kind}): {error}")
        self.raw_text = raw_text
        self.error = error
        self.kind = kind


class EmptyModelOutput(InvalidModelJSON):
    def __init__(self):
        super().__init__(
            raw_text="",
            error="No text content found in model response",
            kind="empty_output",
        )


class StructuredGenerator(Protocol):
    async def generate_structured(self, prompt: str, schema: dict[str, Any]) -> str: ...


def resolve_client(client: Any | None = None, api_key: str | None = None) -> Any:
    if client is not None:
        return client
    if not api_key:
        raise RuntimeError("api_key is required when client is not provided")
    return AsyncAnthropic(api_key=api_key)


def extract_text(resp) -> str:
    """Concatenate the text blocks of a Messages API reply, unmodified."""
    raw_text = "".join(getattr(block, "text", None) or "" for block in resp.content)
    if not raw_text.strip():
        raise EmptyModelOutput()
    return raw_text


class AnthropicGenerator:
    """Remote text generation over the Anthropic Messages API.

    The JSON Schema travels in the system prompt as a hard constraint on the
    reply; the user turn carries the instruction text unchanged.
    """

    def __init__(
        self,
        *,
        client: Any | None = None,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ):
        self._client = resolve_client(client=client, api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens

    async def generate_structured(self, prompt: str, schema: dict[str, Any]) -> str:
        resp = await self._client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=0.0,
            system=build_system_prompt(schema),
            messages=[{"role": "user", "content": prompt}],
        )
        return extract_text(resp)
