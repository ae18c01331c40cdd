
# rag/policies.py
import re
from typing import List, Optional, Sequence, Set

from config.settings import settings
from core.knowledge.schemas import Candidate, Intent, KnowledgeEntry, RankedEntry, Source
from rag.intents import classify, rule_for

# letters/digits, hyphens allowed inside a token ("event-driven")
_TOKEN_PATTERN = re.compile(r"[^\W_]+(?:-+[^\W_]+)*")


def tokenize(s: str) -> Set[str]:
    return set(_TOKEN_PATTERN.findall((s or "").lower()))


def overlap_count(tokens: Set[str], entry: KnowledgeEntry) -> int:
    hay = entry.text
    return sum(1 for t in tokens if t in hay)


def build_candidates(question: str, ranked: Sequence[RankedEntry], brand_entry_id: str) -> List[Candidate]:
    """Citable entries only: must have a url and must not be the brand entry."""
    tokens = tokenize(question)
    return [
        Candidate(entry=r.entry, score=r.score, overlap=overlap_count(tokens, r.entry))
        for r in ranked
        if r.entry.url and r.entry.id != brand_entry_id
    ]


def pick_candidates(
    intent: Intent,
    candidates: List[Candidate],
    max_sources: int,
) -> List[Candidate]:
    rule = rule_for(intent)
    if rule is not None:
        # Topical intents cite exactly one entry, in semantic order
        topical = [c for c in candidates if rule.matches_entry(c.entry)]
        return (topical or candidates)[:1]

    # Generic: prefer keyword overlap; fall back to top semantic matches
    some = [c for c in candidates if c.overlap >= 1]
    pool = sorted(some or candidates, key=lambda c: (-c.overlap, -c.score))
    return pool[:max_sources]


def select_sources(
    question: str,
    ranked: Sequence[RankedEntry],
    intent: Optional[Intent] = None,
    brand_entry_id: Optional[str] = None,
    max_sources: Optional[int] = None,
) -> List[Source]:
    if intent is None:
        intent = classify(question)
    brand_entry_id = brand_entry_id if brand_entry_id is not None else settings.BRAND_ENTRY_ID
    max_sources = max_sources if max_sources is not None else settings.MAX_SOURCES

    candidates = build_candidates(question, ranked, brand_entry_id)
    picked = pick_candidates(intent, candidates, max_sources)
    return [Source(title=c.entry.title, url=c.entry.url) for c in picked]
