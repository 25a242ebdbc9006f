"""Reference-document loader for catalog, compatibility, parts, and FAQ knowledge."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Tuple

logger = logging.getLogger("trackracer.knowledge")

KNOWLEDGE_DOCUMENTS: Tuple[Tuple[str, str], ...] = (
    ("products", "products/catalog.json"),
    ("wheelbases", "compatibility/wheelbases.json"),
    ("pedals", "compatibility/pedals.json"),
    ("parts", "parts/database.json"),
    ("faq_issues", "support/faq-issues.json"),
)


@dataclass
class KnowledgeBase:
    """The five reference documents available to one request."""
    products: Any = field(default_factory=dict)
    wheelbases: Any = field(default_factory=dict)
    pedals: Any = field(default_factory=dict)
    parts: Any = field(default_factory=dict)
    faq_issues: Any = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "KnowledgeBase":
        return cls()

    def is_empty(self) -> bool:
        return all(not getattr(self, item.name) for item in fields(self))


class KnowledgeStore:
    """Read the knowledge documents from disk on every request."""

    def __init__(self, knowledge_dir: Path) -> None:
        self._knowledge_dir = knowledge_dir

    def document_paths(self) -> List[Path]:
        return [self._knowledge_dir / relative for _, relative in KNOWLEDGE_DOCUMENTS]

    async def load(self) -> KnowledgeBase:
        """Purpose: Load all five knowledge documents concurrently.
        Inputs/Outputs: No inputs; returns a KnowledgeBase.
        Side Effects / State: Reads files under the knowledge directory.
        Dependencies: Uses asyncio.gather over threaded reads and json parsing.
        Failure Modes: Any read or parse failure returns KnowledgeBase.empty();
            the error is logged and never raised. There is no partial result.
        If Removed: Context assembly has no catalog, compatibility, or FAQ data.
        Testing Notes: Break one document and verify all five fields come back empty.
        """
        # Fan out the reads, join them, and collapse to empty on the first failure.
        paths = self.document_paths()
        try:
            documents = await asyncio.gather(*(asyncio.to_thread(_read_document, path) for path in paths))
        except Exception:
            logger.exception("knowledge load failed dir=%s", self._knowledge_dir)
            return KnowledgeBase.empty()
        names = [name for name, _ in KNOWLEDGE_DOCUMENTS]
        return KnowledgeBase(**dict(zip(names, documents)))


def _read_document(path: Path) -> Any:
    raw = path.read_text(encoding="utf-8-sig")
    return json.loads(raw)


def as_mapping(document: Any) -> Dict[str, Any]:
    """Return the document when it is a JSON object, otherwise an empty dict."""
    if isinstance(document, dict):
        return document
    return {}
