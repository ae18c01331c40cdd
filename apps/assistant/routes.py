
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from config.logging import get_logger
from adapters.llm.openai_client import UpstreamError
from apps.assistant.sse import SSE_HEADERS, SSE_MEDIA_TYPE, error_stream, event_stream
from core.knowledge.schemas import AskRequest, AskResponse, ErrorResponse
from core.knowledge.store import load_knowledge
from rag.composer import RagComposer

router = APIRouter()
log = get_logger("assistant")

# Instantiate composer once; the KB and its embedding cache live for the process
composer = RagComposer(knowledge=load_knowledge())


def get_composer() -> RagComposer:
    return composer


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _validation_message(e: ValidationError) -> str:
    for err in e.errors():
        loc = err.get("loc") or ()
        if not loc or loc[0] == "question":
            return "Missing 'question'"
    field = e.errors()[0]["loc"][0]
    return f"Invalid '{field}'"


def _stream_response(body) -> StreamingResponse:
    return StreamingResponse(body, media_type=SSE_MEDIA_TYPE, headers=SSE_HEADERS)


@router.post("/assistant", response_model=AskResponse, responses={400: {"model": ErrorResponse}})
async def ask(
    req: Request,
    stream: str = Query(None, description="'1' for a text/event-stream response"),
    composer: RagComposer = Depends(get_composer),
):
    """
    Answers a question about the portfolio:
      - Validates the JSON body ({question, ownerName?})
      - Retrieves and ranks knowledge entries, picks citation sources
      - Returns {answer, sources} or, with ?stream=1, an SSE stream
        (sources -> token* -> done|error)
    """
    stream_mode = stream == "1"

    try:
        body = await req.json()
    except ValueError:
        return _error(400, "Invalid JSON payload")

    try:
        ask_req = AskRequest.model_validate(body)
    except ValidationError as e:
        return _error(400, _validation_message(e))

    try:
        retrieval = await composer.retrieve(ask_req.question)
        if stream_mode:
            events = composer.stream(retrieval, ask_req.owner_name)
            return _stream_response(event_stream(retrieval.sources, events, req.is_disconnected))

        answer = await composer.answer(retrieval, ask_req.owner_name)
        return AskResponse(answer=answer, sources=retrieval.sources)
    except UpstreamError as e:
        log.error(f"Upstream error: {e}")
        if stream_mode:
            return _stream_response(error_stream(str(e)))
        return _error(502, str(e))
    except Exception as e:
        log.exception("Assistant request failed")
        msg = str(e) or "Server error"
        if stream_mode:
            return _stream_response(error_stream(msg))
        return _error(500, msg)
