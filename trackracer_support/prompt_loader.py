from __future__ import annotations

from pathlib import Path

SYSTEM_PROMPT_FILE = "system_prompt.txt"
KNOWLEDGE_CONTEXT_HEADER = "## Knowledge Base Context"


def load_prompt(prompt_path: Path) -> str:
    """Purpose: Load a prompt file as UTF-8 text without BOM or trailing whitespace.
    Inputs/Outputs: Input is a Path to the prompt file; output is the decoded string.
    Side Effects / State: None; reads the filesystem.
    Dependencies: Uses Path.read_text/read_bytes; used by the model dispatcher.
    Failure Modes: UnicodeDecodeError triggers a tolerant decode that drops invalid bytes;
        a missing file raises FileNotFoundError.
    If Removed: The dispatcher has no system instruction to send.
    Testing Notes: Validate BOM stripping and fallback decoding on non-UTF8 files.
    """
    # Read as UTF-8 and fall back to a tolerant decode if needed.
    try:
        text = prompt_path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        text = prompt_path.read_bytes().decode("utf-8", errors="ignore")
    return text.lstrip("\ufeff").rstrip()


def render_system_prompt(base_prompt: str, context: str) -> str:
    """Append the knowledge context block to the base instructions when there is any context."""
    if not context:
        return base_prompt
    return f"{base_prompt}\n\n{KNOWLEDGE_CONTEXT_HEADER}\n{context}"
