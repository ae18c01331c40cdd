
# rag/intents.py
import re
from typing import NamedTuple, Optional

from core.knowledge.schemas import Intent, KnowledgeEntry


class IntentRule(NamedTuple):
    intent: Intent
    question_pattern: re.Pattern
    entry_id: str                 # reserved KB id for this topic
    entry_pattern: re.Pattern
    title_only: bool = False      # match entry_pattern against the title only

    def matches_entry(self, entry: KnowledgeEntry) -> bool:
        if entry.id == self.entry_id:
            return True
        hay = entry.title if self.title_only else entry.text
        return bool(self.entry_pattern.search(hay))


# Priority order: first match wins. "show me the watchdog demo" is a watchdog question.
INTENT_RULES = (
    IntentRule(
        Intent.WATCHDOG,
        re.compile(r"\b(watchdog|anomaly|alerts?)\b", re.IGNORECASE),
        "watchdog",
        re.compile(r"watchdog|anomaly|alert", re.IGNORECASE),
    ),
    IntentRule(
        Intent.DEMO,
        re.compile(r"\b(demo|dashboard|show\s+me|guard)\b", re.IGNORECASE),
        "cloud-cost-guard",
        re.compile(r"cloud\s*cost\s*guard", re.IGNORECASE),
        title_only=True,
    ),
    IntentRule(
        Intent.CLI,
        re.compile(r"\b(cli|command[-\s]?line|finops\s*lite)\b", re.IGNORECASE),
        "finops-lite",
        re.compile(r"\b(cli|finops\s*lite)\b", re.IGNORECASE),
    ),
)


def classify(question: str) -> Intent:
    q = question or ""
    for rule in INTENT_RULES:
        if rule.question_pattern.search(q):
            return rule.intent
    return Intent.NONE


def rule_for(intent: Intent) -> Optional[IntentRule]:
    for rule in INTENT_RULES:
        if rule.intent is intent:
            return rule
    return None
