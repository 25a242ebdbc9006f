"""Deterministic retrieval context assembled from intents and knowledge documents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from .intent_classifier import ISSUE_INTENTS, WHEELBASE_BRANDS, has_intent
from .knowledge.knowledge_store import KnowledgeBase, as_mapping
from .utils import compact_json, dump_json

CATALOG_INTENTS = ("recommendation", "requirements", "pricing", "bundles", "compatibility")
PARTS_INTENTS = ("missing_part", "damaged_part", "parts_lookup")
KNOWN_ISSUE_INTENTS = ISSUE_INTENTS + ("missing_part", "damaged_part")
MAX_COMMON_ISSUES = 5
MIN_MATCH_WORD_LENGTH = 4


@dataclass(frozen=True)
class ContextSection:
    """Named block of serialized knowledge."""
    title: str
    body: str

    def render(self) -> str:
        return f"## {self.title}\n{self.body}"


def build_sections(intents: Sequence[str], knowledge: KnowledgeBase, user_message: str) -> List[ContextSection]:
    """Purpose: Select the knowledge sections relevant to a message.
    Inputs/Outputs: Inputs are intent tags, the knowledge base, and the raw message;
        output is the ordered list of sections.
    Side Effects / State: None; pure function.
    Dependencies: Uses intent groups from intent_classifier and JSON helpers from utils.
    Failure Modes: Missing or non-object documents contribute nothing (or an empty map).
    If Removed: The model answers without any grounding knowledge.
    Testing Notes: Feed fixed knowledge and verify section titles and order per intent mix.
    """
    # Rules are independent; each appends in a fixed position of the output.
    sections: List[ContextSection] = []

    if has_intent(intents, CATALOG_INTENTS):
        sections.append(ContextSection("Track Racer Product Catalog", dump_json(knowledge.products)))

    mentioned = [brand for brand in WHEELBASE_BRANDS if brand in intents]
    if mentioned or "compatibility" in intents:
        brands = mentioned or list(WHEELBASE_BRANDS)
        sections.append(
            ContextSection("Wheelbase Compatibility", dump_json(_filter_brands(knowledge.wheelbases, brands)))
        )
        pedals = _filter_brands(knowledge.pedals, brands)
        pedal_doc = as_mapping(knowledge.pedals)
        if "heusinkveld" in intents and pedal_doc.get("heusinkveld") is not None:
            pedals["heusinkveld"] = pedal_doc["heusinkveld"]
        sections.append(ContextSection("Pedal Compatibility", dump_json(pedals)))

    if has_intent(intents, PARTS_INTENTS):
        sections.append(ContextSection("Parts Database", dump_json(knowledge.parts)))

    if has_intent(intents, KNOWN_ISSUE_INTENTS):
        faq = as_mapping(knowledge.faq_issues)
        relevant = find_relevant_issues(faq.get("commonIssues"), user_message)
        if relevant:
            sections.append(
                ContextSection("Relevant Known Issues & Solutions", dump_json(relevant[:MAX_COMMON_ISSUES]))
            )
        if faq.get("frequentQuestions") is not None:
            sections.append(ContextSection("Frequently Asked Questions", dump_json(faq["frequentQuestions"])))
        if "assembly_help" in intents and faq.get("proTips") is not None:
            sections.append(ContextSection("Pro Tips", dump_json(faq["proTips"])))

    return sections


def build_context(intents: Sequence[str], knowledge: KnowledgeBase, user_message: str) -> str:
    """Render the selected sections separated by blank lines; empty string when none apply."""
    return join_sections(build_sections(intents, knowledge, user_message))


def join_sections(sections: Sequence[ContextSection]) -> str:
    return "\n\n".join(section.render() for section in sections)


def find_relevant_issues(common_issues: Any, user_message: str) -> List[Any]:
    """Purpose: Keep known issues that share a keyword with the user's message.
    Inputs/Outputs: Inputs are the commonIssues list and the message; output is the
        matching issues in document order.
    Side Effects / State: None.
    Dependencies: Uses compact_json to get a searchable text per issue.
    Failure Modes: Non-list input yields an empty list.
    If Removed: Troubleshooting replies lose known fixes.
    Testing Notes: Words of 3 characters or fewer never match ("the", "bar").
    """
    # A word must be longer than 3 characters and appear anywhere in the issue JSON.
    if not isinstance(common_issues, list):
        return []
    words = [word for word in (user_message or "").lower().split() if len(word) >= MIN_MATCH_WORD_LENGTH]
    if not words:
        return []
    relevant = []
    for issue in common_issues:
        issue_text = compact_json(issue).lower()
        if any(word in issue_text for word in words):
            relevant.append(issue)
    return relevant


def _filter_brands(document: Any, brands: Sequence[str]) -> Dict[str, Any]:
    source = as_mapping(document)
    return {brand: source[brand] for brand in brands if source.get(brand) is not None}
