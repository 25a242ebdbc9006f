"""Ordered failover across model endpoints with a per-attempt timeout."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Sequence

from .config import DEFAULT_MODEL, DEFAULT_TEMPERATURE, DEFAULT_TIMEOUT_SECONDS, Settings
from .ollama_client import ChatTransport
from .prompt_loader import render_system_prompt
from .utils import strip_thinking

logger = logging.getLogger("trackracer.dispatcher")

FALLBACK_REPLY = (
    "I'm having trouble connecting to my AI backend right now. Please try again in a moment, "
    "or contact support directly at support@trackracer.com"
)


def candidate_endpoints(settings: Settings) -> List[str]:
    """Purpose: List model endpoints in the order they should be tried.
    Inputs/Outputs: Input is Settings; output is the tunnel URL (if set) followed by fallbacks.
    Side Effects / State: None.
    Dependencies: Uses Settings.ollama_url and Settings.fallback_endpoints.
    Failure Modes: None; an unset tunnel is simply skipped.
    If Removed: The dispatcher has no endpoints to contact.
    Testing Notes: With and without OLLAMA_URL, verify the order of the list.
    """
    endpoints: List[str] = []
    if settings.ollama_url:
        endpoints.append(settings.ollama_url)
    endpoints.extend(settings.fallback_endpoints)
    return endpoints


class ModelDispatcher:
    """Send the augmented conversation to the first endpoint that answers."""

    def __init__(
        self,
        transport: ChatTransport,
        endpoints: Sequence[str],
        base_prompt: str,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        fallback_reply: str = FALLBACK_REPLY,
    ) -> None:
        self._transport = transport
        self._endpoints = list(endpoints)
        self._base_prompt = base_prompt
        self._model = model
        self._temperature = temperature
        self._timeout = timeout
        self._fallback_reply = fallback_reply

    def build_messages(self, messages: Sequence[Dict[str, str]], context: str) -> List[Dict[str, str]]:
        """Prepend the system instruction (with knowledge context, if any) to the conversation."""
        system_prompt = render_system_prompt(self._base_prompt, context)
        return [{"role": "system", "content": system_prompt}, *(dict(message) for message in messages)]

    def build_payload(self, messages: Sequence[Dict[str, str]], context: str) -> Dict[str, Any]:
        return {
            "model": self._model,
            "messages": self.build_messages(messages, context),
            "stream": False,
            "options": {"temperature": self._temperature},
        }

    async def attempt(self, endpoint: str, payload: Dict[str, Any]) -> str:
        """Run a single endpoint call under the cancellation timeout."""
        return await asyncio.wait_for(self._transport.complete(endpoint, payload), timeout=self._timeout)

    async def reply(self, messages: Sequence[Dict[str, str]], context: str) -> str:
        """Purpose: Produce the assistant reply for a conversation.
        Inputs/Outputs: Inputs are the conversation and the assembled context; output is
            reply text with reasoning spans removed, or FALLBACK_REPLY.
        Side Effects / State: Network calls, strictly one after another.
        Dependencies: Uses the injected ChatTransport and asyncio.wait_for.
        Failure Modes: Never raises; failed or timed-out attempts move on to the next
            endpoint and exhausting the list returns the fallback reply.
        If Removed: The chat endpoint cannot answer.
        Testing Notes: First success must stop the loop; all failures return FALLBACK_REPLY.
        """
        # Try each endpoint in priority order; the first success wins.
        payload = self.build_payload(messages, context)
        for endpoint in self._endpoints:
            logger.info("trying model endpoint=%s model=%s", endpoint, self._model)
            try:
                content = await self.attempt(endpoint, payload)
            except asyncio.TimeoutError:
                logger.warning("model endpoint=%s timed out after %.0fs", endpoint, self._timeout)
                continue
            except Exception as exc:
                logger.warning("model endpoint=%s not available: %s", endpoint, exc)
                continue
            logger.info("model endpoint=%s answered", endpoint)
            return strip_thinking(content)
        logger.error("all model endpoints failed count=%d", len(self._endpoints))
        return self._fallback_reply


def build_dispatcher(settings: Settings, transport: ChatTransport, base_prompt: str) -> ModelDispatcher:
    return ModelDispatcher(
        transport=transport,
        endpoints=candidate_endpoints(settings),
        base_prompt=base_prompt,
        model=settings.model,
        temperature=settings.temperature,
        timeout=settings.request_timeout,
    )
