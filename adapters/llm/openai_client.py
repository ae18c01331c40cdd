from typing import AsyncIterator, List, Optional

import openai
from openai import AsyncOpenAI

from config.settings import settings
from config.logging import get_logger

log = get_logger("openai")

_client = None


class UpstreamError(RuntimeError):
    """Raised when the embedding or generation service fails."""


def get_openai() -> AsyncOpenAI:
    global _client
    if _client is None:
        if not settings.OPENAI_API_KEY:
            raise UpstreamError("OPENAI_API_KEY is not set in environment/.env")
        _client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY, timeout=settings.OPENAI_TIMEOUT)
    return _client


async def embed_texts(texts: List[str], model: Optional[str] = None) -> List[List[float]]:
    """One batched embeddings call; output order matches `texts`."""
    client = get_openai()
    try:
        resp = await client.embeddings.create(model=model or settings.EMBED_MODEL, input=texts)
    except openai.OpenAIError as e:
        log.error("Embedding request failed: %s", e)
        raise UpstreamError(str(e)) from e
    return [d.embedding for d in sorted(resp.data, key=lambda d: d.index)]


class OpenAIGenerator:
    """
    Text generation through the OpenAI Responses API.

      complete() -> full answer text
      stream()   -> async iterator of text deltas; raises UpstreamError on failure
    """

    def __init__(self, model: Optional[str] = None):
        self.model = model or settings.OPENAI_MODEL

    async def complete(self, instructions: str, input: str) -> str:
        client = get_openai()
        try:
            resp = await client.responses.create(model=self.model, instructions=instructions, input=input)
        except openai.OpenAIError as e:
            log.error("Generation request failed: %s", e)
            raise UpstreamError(str(e)) from e
        return resp.output_text or ""

    async def stream(self, instructions: str, input: str) -> AsyncIterator[str]:
        client = get_openai()
        try:
            async with client.responses.stream(model=self.model, instructions=instructions, input=input) as stream:
                async for event in stream:
                    if event.type == "response.output_text.delta":
                        yield event.delta
                    elif event.type == "error":
                        raise UpstreamError(event.message or "stream error")
                    elif event.type == "response.failed":
                        err = getattr(event.response, "error", None)
                        raise UpstreamError(getattr(err, "message", None) or "stream error")
        except openai.OpenAIError as e:
            log.error("Generation stream failed: %s", e)
            raise UpstreamError(str(e)) from e
