"""Keyword intent rules for support and sales messages.

Every rule is an independent (tag, predicate) pair evaluated over the lowercased
message. Rules never short-circuit each other, so one message can carry several
tags; the result keeps rule order and falls back to ``general``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Tuple

GENERAL_INTENT = "general"

SALES_INTENTS = ("recommendation", "compatibility", "requirements", "pricing", "bundles")
SUPPORT_INTENTS = ("tracking", "order_status", "missing_part", "damaged_part", "parts_lookup")
ISSUE_INTENTS = (
    "troubleshooting",
    "hardware_issue",
    "stability_issue",
    "alignment_issue",
    "assembly_help",
    "seat_issue",
    "monitor_issue",
    "support_issue",
    "return_inquiry",
)
WHEELBASE_BRANDS = ("fanatec", "moza", "simagic", "thrustmaster", "logitech")
BRAND_INTENTS = WHEELBASE_BRANDS + ("heusinkveld",)
ORDER_INTENTS = ("tracking", "order_status")

INTENT_VOCABULARY = frozenset(SALES_INTENTS + SUPPORT_INTENTS + ISSUE_INTENTS + BRAND_INTENTS + (GENERAL_INTENT,))


def has_any(text: str, terms: Iterable[str]) -> bool:
    """Purpose: Check lowercased text for any substring term.
    Inputs/Outputs: Inputs are lowercased text and a term list; output is bool.
    Side Effects / State: None.
    Dependencies: None; used by every intent rule.
    Failure Modes: Returns False for empty text or an empty term list.
    If Removed: Intent rules cannot express keyword alternatives.
    Testing Notes: "t-nut" must match inside "t-nuts keep popping".
    """
    # Plain substring matching; partial words count ("fits" hits "fit").
    return any(term in text for term in terms)


def contains(*terms: str) -> Callable[[str], bool]:
    return lambda text: has_any(text, terms)


def _order_status(text: str) -> bool:
    return "order" in text and has_any(text, ("status", "when"))


def _seat_issue(text: str) -> bool:
    return "slider" in text or ("seat" in text and has_any(text, ("move", "noise")))


def _monitor_issue(text: str) -> bool:
    return "monitor" in text and has_any(text, ("stand", "mount", "gap"))


@dataclass(frozen=True)
class IntentRule:
    """One independently testable keyword rule."""
    tag: str
    matches: Callable[[str], bool]


INTENT_RULES: Tuple[IntentRule, ...] = (
    # Sales
    IntentRule("recommendation", contains("recommend", "suggest", "which rig", "what rig")),
    IntentRule("compatibility", contains("compatible", "work with", "fit")),
    IntentRule("requirements", contains("what do i need", "setup", "getting started")),
    IntentRule("pricing", contains("price", "cost", "how much")),
    IntentRule("bundles", contains("bundle", "package", "deal")),
    # Support
    IntentRule("tracking", contains("tracking", "where is my", "shipment")),
    IntentRule("order_status", _order_status),
    IntentRule("missing_part", contains("missing", "not included", "forgot")),
    IntentRule("damaged_part", contains("damaged", "broken", "bent", "scratched")),
    IntentRule("parts_lookup", contains("part number", "replacement")),
    # Issues
    IntentRule("troubleshooting", contains("problem", "issue", "trouble", "help")),
    IntentRule("hardware_issue", contains("bolt", "screw", "t-nut", "thread")),
    IntentRule("stability_issue", contains("flex", "wobble", "loose", "noise", "creak")),
    IntentRule("alignment_issue", contains("align", "hole", "fit", "tolerance")),
    IntentRule("assembly_help", contains("instruction", "manual", "assemble", "assembly", "build")),
    IntentRule("seat_issue", _seat_issue),
    IntentRule("monitor_issue", _monitor_issue),
    IntentRule("support_issue", contains("customer service", "support", "response", "ticket")),
    IntentRule("return_inquiry", contains("return", "refund", "exchange")),
    # Equipment
    *(IntentRule(brand, contains(brand)) for brand in BRAND_INTENTS),
)


def detect_intents(message: str, rules: Iterable[IntentRule] = INTENT_RULES) -> List[str]:
    """Purpose: Map a user message to its ordered list of intent tags.
    Inputs/Outputs: Input is the raw message; output is a non-empty tag list.
    Side Effects / State: None; pure function.
    Dependencies: Uses INTENT_RULES.
    Failure Modes: None; unmatched or empty messages yield ["general"].
    If Removed: Context assembly and order lookup have nothing to key on.
    Testing Notes: Check compound rules (order_status, seat_issue, monitor_issue) in isolation.
    """
    # Evaluate every rule; keep first-seen order and drop repeats.
    lowered = (message or "").lower()
    intents: List[str] = []
    for rule in rules:
        if rule.tag not in intents and rule.matches(lowered):
            intents.append(rule.tag)
    return intents or [GENERAL_INTENT]


def has_intent(intents: Iterable[str], candidates: Iterable[str]) -> bool:
    wanted = set(candidates)
    return any(intent in wanted for intent in intents)
