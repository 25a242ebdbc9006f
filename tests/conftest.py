import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from trackracer_support.knowledge.knowledge_store import KNOWLEDGE_DOCUMENTS, KnowledgeBase

REPO_KNOWLEDGE_DIR = Path(__file__).resolve().parents[1] / "knowledge"


@pytest.fixture
def knowledge() -> KnowledgeBase:
    """Small knowledge base covering every document the context builder reads."""
    return KnowledgeBase(
        products={"rigs": [{"model": "TR120", "price": 899}]},
        wheelbases={
            "fanatec": {"DD2": {"torqueNm": 25}},
            "moza": {"R21": {"torqueNm": 21}},
            "simagic": {"Alpha": {"torqueNm": 15}},
            "thrustmaster": {"T818": {"torqueNm": 10}},
            "logitech": {"G923": {"torqueNm": 2.2}},
        },
        pedals={
            "fanatec": {"Clubsport V3": {"mounting": "M8"}},
            "moza": {"CRP": {"mounting": "M8"}},
            "heusinkveld": {"Sprint": {"mounting": "M8 with adapter"}},
        },
        parts={"hardware": [{"partNumber": "TR-HW-TNUT-M6", "description": "M6 T-nut"}]},
        faq_issues={
            "commonIssues": [
                {"issue": "T-nuts popping out of the channel", "solution": "Rotate the T-nut 90 degrees"},
                {"issue": "Wheel deck flex", "solution": "Add lower support brackets"},
                {"issue": "Seat creak", "solution": "Grease the slider rails"},
            ],
            "frequentQuestions": [{"q": "How long does shipping take?", "a": "5-7 business days"}],
            "proTips": ["Leave bolts finger tight until the frame is square"],
        },
    )


def write_knowledge(root: Path, documents: Dict[str, Any]) -> Path:
    """Write the five knowledge documents under root; a str value is written verbatim."""
    for name, relative in KNOWLEDGE_DOCUMENTS:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        value = documents.get(name, {})
        text = value if isinstance(value, str) else json.dumps(value)
        path.write_text(text, encoding="utf-8")
    return root


class FakeTransport:
    """ChatTransport double: per-endpoint replies, exceptions, or delays."""

    def __init__(self, outcomes: Dict[str, Any]) -> None:
        self.outcomes = outcomes
        self.calls: List[str] = []
        self.payloads: List[Dict[str, Any]] = []

    async def complete(self, endpoint: str, payload: Dict[str, Any]) -> str:
        self.calls.append(endpoint)
        self.payloads.append(payload)
        outcome = self.outcomes.get(endpoint, ConnectionRefusedError(endpoint))
        if isinstance(outcome, float):
            await asyncio.sleep(outcome)
            return "too late"
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeKnowledgeStore:
    def __init__(self, knowledge: KnowledgeBase) -> None:
        self.knowledge = knowledge
        self.loads = 0

    async def load(self) -> KnowledgeBase:
        self.loads += 1
        return self.knowledge


class FakeDispatcher:
    def __init__(self, reply: str = "Happy racing!") -> None:
        self.reply_text = reply
        self.calls: List[Dict[str, Any]] = []

    async def reply(self, messages, context: str) -> str:
        self.calls.append({"messages": list(messages), "context": context})
        return self.reply_text
