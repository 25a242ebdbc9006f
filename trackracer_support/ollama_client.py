"""Async HTTP transport for Ollama's /api/chat endpoint."""

from __future__ import annotations

import abc
from typing import Any, Callable, Dict, Optional

import httpx

from .config import DEFAULT_TIMEOUT_SECONDS


class OllamaError(Exception):
    """Raised when an Ollama endpoint cannot produce a chat reply."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ChatTransport(abc.ABC):
    """Sends one chat payload to one endpoint and returns the reply text."""

    @abc.abstractmethod
    async def complete(self, endpoint: str, payload: Dict[str, Any]) -> str:
        raise NotImplementedError


class OllamaTransport(ChatTransport):
    """Thin httpx wrapper; a fresh client is opened per call."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ) -> None:
        """Purpose: Configure the HTTP timeout and how clients are created.
        Inputs/Outputs: Inputs are a timeout in seconds and an optional client factory;
            no return value.
        Side Effects / State: Stores configuration only; no connection is opened.
        Dependencies: Uses httpx.AsyncClient.
        Failure Modes: None at init.
        If Removed: The dispatcher has no way to reach a model backend.
        Testing Notes: Pass a factory backed by httpx.MockTransport.
        """
        self._timeout = timeout
        self._client_factory = client_factory or self._default_client

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout)

    async def complete(self, endpoint: str, payload: Dict[str, Any]) -> str:
        """Purpose: POST a chat payload and extract message.content.
        Inputs/Outputs: Inputs are a base URL and the request payload; output is reply text.
        Side Effects / State: Performs one network request.
        Dependencies: Uses httpx; the caller owns timeouts across attempts.
        Failure Modes: Transport errors, non-2xx status, and non-JSON bodies raise OllamaError.
        If Removed: Model dispatch cannot complete any attempt.
        Testing Notes: Verify URL, payload, and error mapping with a mock transport.
        """
        # Post to {endpoint}/api/chat and unwrap the reply body.
        url = f"{endpoint.rstrip('/')}/api/chat"
        async with self._client_factory() as client:
            try:
                response = await client.post(url, json=payload)
            except httpx.HTTPError as exc:
                raise OllamaError(f"Ollama request to {url} failed: {exc}") from exc
            if not response.is_success:
                raise OllamaError(f"Ollama returned {response.status_code}", status_code=response.status_code)
            try:
                data = response.json()
            except ValueError as exc:
                raise OllamaError(f"Ollama returned a non-JSON body from {url}") from exc
        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        return str(content or "")
