import asyncio
from typing import List, Optional

import pytest

from adapters.llm.openai_client import UpstreamError
from core.knowledge.schemas import KnowledgeEntry
from core.knowledge.store import KnowledgeBase
from rag.composer import RagComposer

# Fake embedding space: one dimension per keyword
VOCAB = [
    "watchdog", "anomaly", "alert", "cost", "guard", "demo", "dashboard",
    "cli", "finops", "terraform", "lambda", "portfolio",
]


def bow_vector(text: str) -> List[float]:
    t = text.lower()
    return [float(t.count(w)) for w in VOCAB]


class FakeRetriever:
    def __init__(self, fail: bool = False, delay: float = 0.0):
        self.calls: List[List[str]] = []
        self.fail = fail
        self.delay = delay

    async def embed(self, texts: List[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise UpstreamError("embedding service unavailable")
        return [bow_vector(t) for t in texts]


class FakeGenerator:
    def __init__(
        self,
        answer: str = "Diana built Cloud Cost Guard.",
        deltas: Optional[List[str]] = None,
        fail_after: Optional[int] = None,
    ):
        self.answer = answer
        self.deltas = deltas if deltas is not None else ["Diana ", "built ", "Cloud Cost Guard."]
        self.fail_after = fail_after
        self.calls = []
        self.closed = False

    async def complete(self, instructions: str, input: str) -> str:
        self.calls.append((instructions, input))
        return self.answer

    async def stream(self, instructions: str, input: str):
        self.calls.append((instructions, input))
        try:
            for i, d in enumerate(self.deltas):
                if self.fail_after is not None and i == self.fail_after:
                    raise UpstreamError("generation stream dropped")
                yield d
        finally:
            self.closed = True


ENTRIES = [
    KnowledgeEntry(id="brand", title="Cloud & Capital", content="Diana's portfolio of cloud and FinOps work.", url="https://example.com/"),
    KnowledgeEntry(id="cloud-cost-guard", title="Cloud Cost Guard", content="Interactive dashboard demo for cloud spend and budgets.", url="https://example.com/guard"),
    KnowledgeEntry(id="watchdog", title="Spend Watchdog", content="Anomaly detection that sends an alert when spend spikes.", url="https://example.com/watchdog"),
    KnowledgeEntry(id="finops-lite", title="FinOps Lite", content="A command-line CLI that summarizes cloud bills.", url="https://example.com/finops-lite"),
    KnowledgeEntry(id="serverless", title="Serverless Reference Architecture", content="Lambda functions and Terraform modules for event-driven workloads.", url="https://example.com/serverless"),
    KnowledgeEntry(id="skills", title="Cloud Stack & Skills", content="AWS, Terraform and Python automation.", url=None),
]


@pytest.fixture
def knowledge():
    return KnowledgeBase(ENTRIES)


@pytest.fixture
def retriever():
    return FakeRetriever()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def composer(knowledge, retriever, generator):
    return RagComposer(knowledge=knowledge, retriever=retriever, generator=generator, assistant_name="Lumen")
