
# rag/ranking.py
from typing import List, Sequence, Tuple

import numpy as np

from core.knowledge.schemas import KnowledgeEntry, RankedEntry

EPSILON = 1e-8


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b| + eps); zero vectors score 0 instead of dividing by zero."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Embedding dimensions differ: {va.shape} vs {vb.shape}")
    return float(np.dot(va, vb) / (np.linalg.norm(va) * np.linalg.norm(vb) + EPSILON))


def rank(
    query_vector: Sequence[float],
    kb_pairs: Sequence[Tuple[KnowledgeEntry, Sequence[float]]],
) -> List[RankedEntry]:
    """Entries by cosine score, highest first. sorted() is stable, so ties keep KB order."""
    scored = [
        RankedEntry(entry=entry, score=cosine_similarity(query_vector, vec))
        for entry, vec in kb_pairs
    ]
    return sorted(scored, key=lambda r: r.score, reverse=True)
