
# apps/assistant/sse.py
import json
from contextlib import aclosing
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Sequence, Tuple

from config.logging import get_logger
from core.knowledge.schemas import Source

log = get_logger("sse")

TERMINAL_EVENTS = ("done", "error")

# Keep proxies (nginx, CDNs) from buffering or caching the stream
SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
SSE_MEDIA_TYPE = "text/event-stream; charset=utf-8"


def format_event(event: str, data: Any) -> str:
    """
    One SSE frame. Strings go out raw, anything else as JSON.
    Multi-line payloads become one `data:` line per line.
    """
    payload = data if isinstance(data, str) else json.dumps(data)
    lines = "".join(f"data: {line}\n" for line in payload.split("\n"))
    return f"event: {event}\n{lines}\n"


async def event_stream(
    sources: Sequence[Source],
    events: AsyncIterator[Tuple[str, str]],
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
) -> AsyncIterator[str]:
    """
    sources first, then tokens, then exactly one terminal frame.
    `is_disconnected` is polled before every frame after sources; once it
    reports True the generation session is closed and nothing else is sent.
    """
    yield format_event("sources", [s.model_dump() for s in sources])

    async with aclosing(events) as stream:
        async for kind, data in stream:
            if is_disconnected is not None and await is_disconnected():
                log.info("Client disconnected; closing answer stream")
                return
            yield format_event(kind, data)
            if kind in TERMINAL_EVENTS:
                return

    # The producer ended without a terminal event
    yield format_event("error", "stream ended unexpectedly")


async def error_stream(message: str) -> AsyncIterator[str]:
    yield format_event("error", message)
