
from contextlib import aclosing
from typing import AsyncIterator, List, Optional, Sequence, Tuple
import pathlib
import re

from config.settings import settings
from config.logging import get_logger
from adapters.llm.openai_client import OpenAIGenerator
from core.indexing.cache import EmbeddingCache
from core.knowledge.schemas import RankedEntry, Retrieval
from core.knowledge.store import KnowledgeBase
from .intents import classify
from .policies import select_sources
from .ranking import rank
from .retriever import Retriever

log = get_logger("composer")

NO_ANSWER = "(No answer)"


# -------- Prompts --------
_DEFAULT_INSTRUCTIONS = (
    "You are {assistant_name}, {owner_name}'s portfolio AI assistant.\n"
    "Only acknowledge small talk if the user greets you or asks about well-being "
    "(e.g., \"hi\", \"hello\", \"how are you\"). Do NOT small-talk for task-oriented queries "
    "like \"show me a demo\".\n"
    "Answer using the context below when possible. If a question is unrelated to "
    "{owner_name}'s work, say you only cover their projects.\n"
    "Do not include markdown links in your text; refer the user to the sources shown below instead.\n"
    "Keep replies concise. If the user asks for a demo, mention which demo is relevant in plain "
    "text (no links) and say \"See sources below\" for the URL."
)


def _load_instructions(assistant_name: str, owner_name: str) -> str:
    """
    Instructions template: prompts/instructions.txt when present, else the default.
    Placeholders: {assistant_name}, {owner_name}.
    """
    template = _DEFAULT_INSTRUCTIONS
    try:
        base = pathlib.Path("prompts") / "instructions.txt"
        if base.exists():
            template = base.read_text(encoding="utf-8").strip()
    except OSError as e:
        log.warning("Could not read prompts/instructions.txt: %s", e)

    return template.replace("{assistant_name}", assistant_name).replace("{owner_name}", owner_name)


# -------- Context utilities --------
def build_context(ranked: Sequence[RankedEntry], top_k: int = 5) -> str:
    blocks = []
    for idx, r in enumerate(ranked[:top_k], start=1):
        e = r.entry
        url_line = f"\nURL: {e.url}" if e.url else ""
        blocks.append(f"### [{idx}] {e.title}{url_line}\n{e.content}")
    return "\n\n".join(blocks)


def build_input(question: str, context: str) -> str:
    return f"User question: {question}\n\nRelevant project notes:\n{context}"


# -------- Output sanitizers (citations travel as sources, never inline) --------
_MD_LINK_PATTERN = re.compile(r"\[.*?\]\(.*?\)")


def strip_markdown_links(text: str) -> str:
    return _MD_LINK_PATTERN.sub("", text or "")


class LinkStripper:
    """
    Incremental strip_markdown_links for streamed deltas.

    Text from the first "[" on the current line is held back until it either
    completes a link (and is dropped) or can no longer become one.
    """

    MAX_HOLD = 2000

    def __init__(self):
        self._buf = ""

    def feed(self, delta: str) -> str:
        self._buf = strip_markdown_links(self._buf + delta)
        line_start = self._buf.rfind("\n") + 1
        hold = self._buf.find("[", line_start)
        if hold == -1 or len(self._buf) - hold > self.MAX_HOLD:
            out, self._buf = self._buf, ""
        else:
            out, self._buf = self._buf[:hold], self._buf[hold:]
        return out

    def flush(self) -> str:
        out, self._buf = strip_markdown_links(self._buf), ""
        return out


# -------- Composer --------
class RagComposer:
    """
    Orchestrates retrieval, citation selection and generation.

      retrieval = await composer.retrieve(question)
      text = await composer.answer(retrieval, owner_name)         # batch
      async for kind, data in composer.stream(retrieval, owner_name):  # "token" | "done" | "error"
          ...
    """

    def __init__(
        self,
        knowledge: KnowledgeBase,
        retriever=None,
        generator=None,
        context_top_k: Optional[int] = None,
        max_sources: Optional[int] = None,
        brand_entry_id: Optional[str] = None,
        assistant_name: Optional[str] = None,
    ):
        self.knowledge = knowledge
        self.retriever = retriever or Retriever()
        self.generator = generator or OpenAIGenerator()

        # None means unset; an explicit 0 is honoured
        self.context_top_k = int(settings.CONTEXT_TOP_K if context_top_k is None else context_top_k)
        self.max_sources = int(settings.MAX_SOURCES if max_sources is None else max_sources)
        self.brand_entry_id = settings.BRAND_ENTRY_ID if brand_entry_id is None else brand_entry_id
        self.assistant_name = settings.ASSISTANT_NAME if assistant_name is None else assistant_name

        self.cache = EmbeddingCache(list(knowledge), self.retriever.embed)

    async def retrieve(self, question: str) -> Retrieval:
        kb_pairs = await self.cache.get_kb_embeddings()
        query_vecs: List[List[float]] = await self.retriever.embed([question])
        ranked = rank(query_vecs[0], kb_pairs)

        intent = classify(question)
        sources = select_sources(
            question,
            ranked,
            intent=intent,
            brand_entry_id=self.brand_entry_id,
            max_sources=self.max_sources,
        )
        log.debug("intent=%s sources=%s", intent.value, [s.title for s in sources])
        return Retrieval(
            question=question,
            ranked=ranked,
            context=build_context(ranked, self.context_top_k),
            intent=intent,
            sources=sources,
        )

    def _prompt(self, retrieval: Retrieval, owner_name: Optional[str]) -> Tuple[str, str]:
        instructions = _load_instructions(self.assistant_name, owner_name or settings.OWNER_NAME)
        return instructions, build_input(retrieval.question, retrieval.context)

    async def answer(self, retrieval: Retrieval, owner_name: Optional[str] = None) -> str:
        instructions, input = self._prompt(retrieval, owner_name)
        text = await self.generator.complete(instructions, input)
        return strip_markdown_links(text or NO_ANSWER).strip() or NO_ANSWER

    async def stream(self, retrieval: Retrieval, owner_name: Optional[str] = None) -> AsyncIterator[Tuple[str, str]]:
        """
        Yields ("token", delta)* then exactly one ("done", "") or ("error", message).
        Failures of the generation session end the stream with an error event.
        """
        instructions, input = self._prompt(retrieval, owner_name)
        stripper = LinkStripper()
        try:
            async with aclosing(self.generator.stream(instructions, input)) as deltas:
                async for delta in deltas:
                    text = stripper.feed(delta)
                    if text:
                        yield "token", text
            tail = stripper.flush()
            if tail:
                yield "token", tail
        except Exception as e:
            log.error("Answer stream failed: %s", e)
            # release text held back by the link buffer before reporting
            tail = stripper.flush()
            if tail:
                yield "token", tail
            yield "error", str(e) or "stream error"
            return
        yield "done", ""
