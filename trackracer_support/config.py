from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

BASE_DIR = Path(__file__).resolve().parent

LAN_OLLAMA_URL = "http://192.168.50.1:11434"
LOCAL_OLLAMA_URL = "http://localhost:11434"
DEFAULT_MODEL = "qwen3:8b"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True)
class Settings:
    """Configuration container for model endpoints, knowledge files, and runtime flags."""
    ollama_url: Optional[str]
    fallback_endpoints: Tuple[str, ...]
    model: str
    temperature: float
    request_timeout: float
    knowledge_dir: Path
    prompts_dir: Path
    debug_metadata: bool


def load_settings() -> Settings:
    """Purpose: Load configuration from environment variables and defaults.
    Inputs/Outputs: No inputs; returns a Settings instance.
    Side Effects / State: Reads environment variables and filesystem paths.
    Dependencies: Uses os.getenv and BASE_DIR for default paths.
    Failure Modes: None; missing variables fall back to defaults.
    If Removed: App cannot resolve model endpoints or knowledge files.
    Testing Notes: Verify defaults and overrides via environment variables.
    """
    # Resolve the knowledge directory, then build Settings.
    knowledge_dir = os.getenv("KNOWLEDGE_DIR")
    if knowledge_dir:
        knowledge_path = Path(knowledge_dir)
    else:
        knowledge_path = (BASE_DIR / ".." / "knowledge").resolve()

    ollama_url = (os.getenv("OLLAMA_URL") or "").strip() or None

    return Settings(
        ollama_url=ollama_url,
        fallback_endpoints=(LAN_OLLAMA_URL, LOCAL_OLLAMA_URL),
        model=os.getenv("OLLAMA_MODEL") or DEFAULT_MODEL,
        temperature=DEFAULT_TEMPERATURE,
        request_timeout=DEFAULT_TIMEOUT_SECONDS,
        knowledge_dir=knowledge_path,
        prompts_dir=(BASE_DIR / "prompts").resolve(),
        debug_metadata=os.getenv("APP_ENV", "production").strip().lower() == "development",
    )
