
# jobs/warm_kb.py
import asyncio

from config.settings import settings
from core.indexing.cache import EmbeddingCache
from core.knowledge.store import load_knowledge
from rag.retriever import Retriever


async def warm(cache: EmbeddingCache) -> int:
    """Embeds every KB entry once; returns the vector dimension."""
    pairs = await cache.get_kb_embeddings()
    return len(pairs[0][1]) if pairs else 0


if __name__ == "__main__":
    kb = load_knowledge()
    cache = EmbeddingCache(list(kb), Retriever().embed)
    dim = asyncio.run(warm(cache))
    print(f"Embedded entries: {len(kb)} (file={settings.KB_PATH}, model={settings.EMBED_MODEL}, dim={dim})")
