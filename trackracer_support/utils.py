import json
import re
from typing import Any

THINK_BLOCK_RE = re.compile(r"<think>.*?</think>", re.DOTALL)


def dump_json(value: Any) -> str:
    """Purpose: Serialize knowledge data into the indented form embedded in prompts.
    Inputs/Outputs: Input is any JSON-compatible value; output is a 2-space indented string.
    Side Effects / State: None; pure function.
    Dependencies: Uses json.dumps; called by context assembly and order sections.
    Failure Modes: Non-serializable values raise TypeError.
    If Removed: Context sections cannot render knowledge documents.
    Testing Notes: Ensure non-ASCII text is kept verbatim and empty dicts render as "{}".
    """
    # Keep unicode as-is so product names survive untouched.
    return json.dumps(value, indent=2, ensure_ascii=False)


def compact_json(value: Any) -> str:
    """Purpose: Serialize a value without whitespace for substring matching.
    Inputs/Outputs: Input is any JSON-compatible value; output is a compact string.
    Side Effects / State: None; pure function.
    Dependencies: Uses json.dumps; called by common-issue filtering.
    Failure Modes: Non-serializable values raise TypeError.
    If Removed: Keyword matching against known issues has no text to search.
    Testing Notes: Verify separators carry no padding spaces.
    """
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def strip_thinking(text: str) -> str:
    """Purpose: Remove model reasoning annotations from a reply.
    Inputs/Outputs: Input is raw model text; output is the text without <think> spans, trimmed.
    Side Effects / State: None; pure function.
    Dependencies: Uses THINK_BLOCK_RE; called by the model dispatcher.
    Failure Modes: Returns an empty string for falsy input.
    If Removed: Internal reasoning leaks into customer-facing replies.
    Testing Notes: Include multi-line and repeated spans and verify both are removed.
    """
    # Non-greedy match so text between two spans survives.
    if not text:
        return ""
    return THINK_BLOCK_RE.sub("", text).strip()
