from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from config.settings import settings


class KnowledgeEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    content: str
    url: Optional[str] = None

    @property
    def text(self) -> str:
        """Lower-cased title + content, used for lexical matching."""
        return f"{self.title} {self.content}".lower()


class RankedEntry(BaseModel):
    entry: KnowledgeEntry
    score: float


class Candidate(RankedEntry):
    overlap: int = Field(0, ge=0)


class Intent(str, Enum):
    WATCHDOG = "watchdog"
    DEMO = "demo"
    CLI = "cli"
    NONE = "none"


class Source(BaseModel):
    title: str
    url: str


class Retrieval(BaseModel):
    question: str
    ranked: List[RankedEntry]
    context: str
    intent: Intent
    sources: List[Source]


# --- HTTP payloads --------------------------------------------------------------

class AskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: StrictStr = Field(..., min_length=1)
    # null falls back to settings.OWNER_NAME in the composer
    owner_name: Optional[str] = Field(default_factory=lambda: settings.OWNER_NAME, alias="ownerName")


class AskResponse(BaseModel):
    answer: str
    sources: List[Source]


class ErrorResponse(BaseModel):
    error: str
