from pathlib import Path

import pytest

from trackracer_support.config import LAN_OLLAMA_URL, LOCAL_OLLAMA_URL, Settings
from trackracer_support.model_dispatcher import FALLBACK_REPLY, ModelDispatcher, build_dispatcher, candidate_endpoints
from trackracer_support.prompt_loader import KNOWLEDGE_CONTEXT_HEADER

from conftest import FakeTransport

TUNNEL = "https://tunnel.example.com"
CONVERSATION = [{"role": "user", "content": "Which rig fits a Moza R21?"}]


def _settings(ollama_url=None) -> Settings:
    return Settings(
        ollama_url=ollama_url,
        fallback_endpoints=(LAN_OLLAMA_URL, LOCAL_OLLAMA_URL),
        model="qwen3:8b",
        temperature=0.7,
        request_timeout=60.0,
        knowledge_dir=Path("knowledge"),
        prompts_dir=Path("prompts"),
        debug_metadata=False,
    )


def _dispatcher(transport, endpoints=(TUNNEL, LAN_OLLAMA_URL, LOCAL_OLLAMA_URL), timeout=1.0):
    return ModelDispatcher(transport, endpoints, base_prompt="You are a test assistant.", timeout=timeout)


def test_candidate_endpoints_priority() -> None:
    assert candidate_endpoints(_settings(TUNNEL)) == [TUNNEL, LAN_OLLAMA_URL, LOCAL_OLLAMA_URL]
    assert candidate_endpoints(_settings()) == [LAN_OLLAMA_URL, LOCAL_OLLAMA_URL]


@pytest.mark.asyncio
async def test_first_success_short_circuits() -> None:
    transport = FakeTransport({TUNNEL: "From the tunnel", LAN_OLLAMA_URL: "From the LAN"})
    reply = await _dispatcher(transport).reply(CONVERSATION, "")
    assert reply == "From the tunnel"
    assert transport.calls == [TUNNEL]


@pytest.mark.asyncio
async def test_failed_candidate_falls_through_in_order() -> None:
    transport = FakeTransport({TUNNEL: RuntimeError("tunnel down"), LOCAL_OLLAMA_URL: "From localhost"})
    reply = await _dispatcher(transport).reply(CONVERSATION, "")
    assert reply == "From localhost"
    assert transport.calls == [TUNNEL, LAN_OLLAMA_URL, LOCAL_OLLAMA_URL]


@pytest.mark.asyncio
async def test_timed_out_candidate_is_abandoned() -> None:
    transport = FakeTransport({TUNNEL: 5.0, LAN_OLLAMA_URL: "From the LAN"})
    reply = await _dispatcher(transport, timeout=0.05).reply(CONVERSATION, "")
    assert reply == "From the LAN"
    assert transport.calls == [TUNNEL, LAN_OLLAMA_URL]


@pytest.mark.asyncio
async def test_all_candidates_failing_returns_fallback() -> None:
    transport = FakeTransport({})
    reply = await _dispatcher(transport).reply(CONVERSATION, "context")
    assert reply == FALLBACK_REPLY
    assert transport.calls == [TUNNEL, LAN_OLLAMA_URL, LOCAL_OLLAMA_URL]


@pytest.mark.asyncio
async def test_no_endpoints_returns_fallback() -> None:
    assert await _dispatcher(FakeTransport({}), endpoints=()).reply(CONVERSATION, "") == FALLBACK_REPLY


@pytest.mark.asyncio
async def test_multiline_thinking_span_is_removed() -> None:
    raw = "<think>\nThe user has a Moza R21.\nTR120 handles 25 Nm.\n</think>\n\n  The TR120 is a great match!  "
    reply = await _dispatcher(FakeTransport({TUNNEL: raw})).reply(CONVERSATION, "")
    assert reply == "The TR120 is a great match!"


@pytest.mark.asyncio
async def test_payload_shape_and_system_prompt() -> None:
    transport = FakeTransport({TUNNEL: "ok"})
    await _dispatcher(transport).reply(CONVERSATION, "## Parts Database\n{}")
    payload = transport.payloads[0]
    assert payload["model"] == "qwen3:8b"
    assert payload["stream"] is False
    assert payload["options"] == {"temperature": 0.7}
    system, user = payload["messages"]
    assert system["role"] == "system"
    assert system["content"].startswith("You are a test assistant.")
    assert system["content"].endswith(f"{KNOWLEDGE_CONTEXT_HEADER}\n## Parts Database\n{{}}")
    assert user == CONVERSATION[0]


def test_context_block_omitted_when_empty() -> None:
    messages = _dispatcher(FakeTransport({})).build_messages(CONVERSATION, "")
    assert messages[0]["content"] == "You are a test assistant."
    assert KNOWLEDGE_CONTEXT_HEADER not in messages[0]["content"]


@pytest.mark.asyncio
async def test_build_dispatcher_follows_settings() -> None:
    transport = FakeTransport({LOCAL_OLLAMA_URL: "From localhost"})
    dispatcher = build_dispatcher(_settings(TUNNEL), transport, base_prompt="Base.")
    assert await dispatcher.reply(CONVERSATION, "") == "From localhost"
    assert transport.calls == [TUNNEL, LAN_OLLAMA_URL, LOCAL_OLLAMA_URL]
    assert transport.payloads[0]["model"] == "qwen3:8b"
    assert transport.payloads[0]["messages"][0] == {"role": "system", "content": "Base."}
