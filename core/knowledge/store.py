
# core/knowledge/store.py
import json
import pathlib
from typing import Iterable, Iterator, Optional

from config.settings import settings
from core.knowledge.schemas import KnowledgeEntry


class KnowledgeBase:
    """
    Immutable, ordered set of KnowledgeEntry objects.

    Loaded once per process (see `load_knowledge`) and injected into the
    composer; KB order is the tie-break order for ranking.
    """

    def __init__(self, entries: Iterable[KnowledgeEntry]):
        self._entries = tuple(entries)
        seen = set()
        for e in self._entries:
            if e.id in seen:
                raise ValueError(f"Duplicate knowledge entry id: {e.id!r}")
            seen.add(e.id)

    def __iter__(self) -> Iterator[KnowledgeEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> Optional[KnowledgeEntry]:
        for e in self._entries:
            if e.id == entry_id:
                return e
        return None

    @classmethod
    def from_json(cls, path: str) -> "KnowledgeBase":
        raw = json.loads(pathlib.Path(path).read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError(f"Knowledge file must contain a JSON list: {path}")
        return cls(KnowledgeEntry.model_validate(item) for item in raw)


def load_knowledge(path: Optional[str] = None) -> KnowledgeBase:
    return KnowledgeBase.from_json(path or settings.KB_PATH)
