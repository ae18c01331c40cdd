
# core/indexing/cache.py
import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from config.logging import get_logger
from core.knowledge.schemas import KnowledgeEntry

log = get_logger("embeddings")

EmbedFn = Callable[[List[str]], Awaitable[List[List[float]]]]
KBPairs = List[Tuple[KnowledgeEntry, List[float]]]


def entry_text(entry: KnowledgeEntry) -> str:
    return f"{entry.title}\n\n{entry.content}"


class EmbeddingCache:
    """
    Process-wide memo of one embedding vector per knowledge entry.

    The first caller starts a single batched embedding request and stores the
    in-flight task; concurrent callers await that same task instead of issuing
    their own request. A failed attempt is dropped so the next call retries.
    """

    def __init__(self, entries: Sequence[KnowledgeEntry], embed: EmbedFn):
        self._entries = tuple(entries)
        self._embed = embed
        self._task: Optional[asyncio.Task] = None
        self._pairs: Optional[KBPairs] = None

    @property
    def ready(self) -> bool:
        return self._pairs is not None

    async def _compute(self) -> KBPairs:
        texts = [entry_text(e) for e in self._entries]
        log.info("Embedding %d knowledge entries", len(texts))
        vecs = await self._embed(texts)
        if len(vecs) != len(self._entries):
            raise ValueError(
                f"Embedding service returned {len(vecs)} vectors for {len(self._entries)} entries"
            )
        return list(zip(self._entries, vecs))

    def _forget_failure(self, task: asyncio.Task) -> None:
        # Runs even when every waiter was cancelled, so a failure is never replayed
        if self._task is not task:
            return
        if task.cancelled() or task.exception() is not None:
            self._task = None

    async def get_kb_embeddings(self) -> KBPairs:
        if self._pairs is not None:
            return self._pairs

        if self._task is None:
            self._task = asyncio.ensure_future(self._compute())
            self._task.add_done_callback(self._forget_failure)
        task = self._task

        try:
            # shield: a cancelled waiter must not cancel the shared request
            pairs = await asyncio.shield(task)
        except Exception:
            if self._task is task:
                self._task = None
            raise

        self._pairs = pairs
        self._task = None
        return pairs
