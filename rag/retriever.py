
# rag/retriever.py
import asyncio
from typing import List, Optional

from config.settings import settings
from adapters.llm.openai_client import embed_texts

class Retriever:
    """
    Embedding provider that switches automatically:
      - OpenAI embeddings when EMBED_MODEL starts with 'text-embedding'
      - Sentence-Transformers otherwise (HF model id)

    Usage:
      r = Retriever()
      vecs = await r.embed(["hello", "world"])
    """

    def __init__(self, embed_model: Optional[str] = None):
        self.embed_model = embed_model or settings.EMBED_MODEL

        # Decide provider
        self.use_openai = self.embed_model.startswith("text-embedding")
        self.st_model = None

    def _load_st(self):
        if self.st_model is None:
            from sentence_transformers import SentenceTransformer
            self.st_model = SentenceTransformer(self.embed_model)
        return self.st_model

    async def embed(self, texts: List[str]) -> List[List[float]]:
        """
        Returns one vector per text, in input order.
        """
        if not texts:
            return []
        if self.use_openai:
            # NOTE: the OpenAI SDK batches natively with 'input=list[str]'
            return await embed_texts(texts, model=self.embed_model)

        # Local model: keep encode() off the event loop
        model = await asyncio.to_thread(self._load_st)
        vecs = await asyncio.to_thread(model.encode, texts, normalize_embeddings=False)
        return vecs.tolist()
