"""Track Racer support pipeline orchestration.

Role:
    Validates an inbound conversation, then runs the ordered request steps:
    knowledge load, intent detection, order lookup, context assembly, and model
    generation. It owns the PipelineContext contract used by the step runner.

Pipeline data contract (fields passed across steps):
    - messages / user_message: the conversation and its last user turn.
    - knowledge: the five reference documents loaded for this request.
    - intents: ordered intent tags for the last user turn.
    - order: resolved OrderRecord, only for tracking/order_status turns.
    - context_text: knowledge context injected into the system instruction.
    - answer_text: final reply handed back to the HTTP layer.

Every context is built for one request and dropped afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from .adk_runtime import AdkAgent, AdkStep
from .context_builder import ContextSection, build_sections, join_sections
from .intent_classifier import ORDER_INTENTS, detect_intents, has_intent
from .knowledge.knowledge_store import KnowledgeBase, KnowledgeStore
from .model_dispatcher import ModelDispatcher
from .models import OrderRecord
from .order_lookup import OrderLookup, resolve_order, serialize_order

logger = logging.getLogger("trackracer.agent")

ORDER_SECTION_TITLE = "Order Information Found"
LAST_MESSAGE_ERROR = "Last message must be from user"


class InvalidConversationError(ValueError):
    """Raised when a conversation cannot be answered as-is."""


@dataclass
class PipelineContext:
    """Mutable context passed through each pipeline step."""
    messages: List[Dict[str, str]]
    user_message: str
    knowledge: KnowledgeBase = field(default_factory=KnowledgeBase.empty)
    intents: List[str] = field(default_factory=list)
    order: Optional[OrderRecord] = None
    context_text: str = ""
    answer_text: str = ""


def validate_conversation(messages: Sequence[Mapping[str, str]]) -> None:
    """Purpose: Reject conversations that do not end on a user turn.
    Inputs/Outputs: Input is the message list; no return value.
    Side Effects / State: None.
    Dependencies: None.
    Failure Modes: Raises InvalidConversationError for an empty list or a last
        message whose role is not "user".
    If Removed: The model could be asked to continue its own reply.
    Testing Notes: An assistant-last conversation must fail before any step runs.
    """
    if not messages:
        raise InvalidConversationError(LAST_MESSAGE_ERROR)
    last = messages[-1]
    if last.get("role") != "user":
        raise InvalidConversationError(LAST_MESSAGE_ERROR)


class SupportAssistantAgent:
    def __init__(
        self,
        knowledge_store: KnowledgeStore,
        dispatcher: ModelDispatcher,
        order_lookup: OrderLookup,
    ) -> None:
        """Purpose: Wire the pipeline collaborators and build the step runner.
        Inputs/Outputs: Inputs are the knowledge store, model dispatcher, and order
            lookup; no return value.
        Side Effects / State: Constructs an AdkAgent with ordered steps.
        Dependencies: Uses AdkAgent/AdkStep and step methods on this class.
        Failure Modes: None at init; runtime errors surface from step functions.
        If Removed: The chat endpoint cannot construct the pipeline.
        Testing Notes: Instantiate with fakes and verify steps run in order.
        """
        self._knowledge_store = knowledge_store
        self._dispatcher = dispatcher
        self._order_lookup = order_lookup
        self._agent = AdkAgent(
            steps=[
                AdkStep("knowledge_load", self._step_knowledge_load),
                AdkStep("intent_detection", self._step_intent_detection),
                AdkStep("order_lookup", self._step_order_lookup, skip_if=_skip_order_lookup),
                AdkStep("context_assembly", self._step_context_assembly),
                AdkStep("generation", self._step_generation),
            ]
        )

    async def handle_message(self, messages: Sequence[Mapping[str, str]]) -> PipelineContext:
        """Purpose: Run the full pipeline for one conversation.
        Inputs/Outputs: Input is the ordered role/content list; output is a populated
            PipelineContext.
        Side Effects / State: Reads knowledge files and calls model endpoints.
        Dependencies: Uses validate_conversation and AdkAgent.run.
        Failure Modes: InvalidConversationError before any step; other exceptions in
            steps propagate to the caller.
        If Removed: The chat handler cannot answer.
        Testing Notes: Use a fake dispatcher and a temp knowledge dir.
        """
        # Validate first so a bad conversation never touches the collaborators.
        validate_conversation(messages)
        conversation = [{"role": str(m.get("role")), "content": str(m.get("content") or "")} for m in messages]
        context = PipelineContext(messages=conversation, user_message=conversation[-1]["content"])
        await self._agent.run(context)
        return context

    async def _step_knowledge_load(self, context: PipelineContext) -> None:
        context.knowledge = await self._knowledge_store.load()

    async def _step_intent_detection(self, context: PipelineContext) -> None:
        context.intents = detect_intents(context.user_message)
        logger.info("detected intents=%s", context.intents)

    async def _step_order_lookup(self, context: PipelineContext) -> None:
        context.order = resolve_order(context.user_message, self._order_lookup)
        if context.order is not None:
            logger.info("order resolved order_id=%s status=%s", context.order.orderId, context.order.status)

    async def _step_context_assembly(self, context: PipelineContext) -> None:
        """Purpose: Build the knowledge context, with the order section appended last.
        Inputs/Outputs: Input is PipelineContext; sets context_text.
        Side Effects / State: None beyond the context.
        Dependencies: Uses build_sections and serialize_order.
        Failure Modes: None expected; serialization errors propagate.
        If Removed: The model answers without grounding.
        Testing Notes: An order turn with no other rules yields only the order section.
        """
        sections = build_sections(context.intents, context.knowledge, context.user_message)
        if context.order is not None:
            sections.append(ContextSection(ORDER_SECTION_TITLE, serialize_order(context.order)))
        context.context_text = join_sections(sections)
        logger.debug("context assembled sections=%d length=%d", len(sections), len(context.context_text))

    async def _step_generation(self, context: PipelineContext) -> None:
        context.answer_text = await self._dispatcher.reply(context.messages, context.context_text)


def _skip_order_lookup(context: object) -> bool:
    return not has_intent(getattr(context, "intents", []), ORDER_INTENTS)
