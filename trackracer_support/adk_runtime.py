from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional


@dataclass
class AdkStep:
    """One named coroutine in a chat turn, with an optional guard that skips it."""
    name: str
    fn: Callable[[object], Awaitable[None]]
    skip_if: Optional[Callable[[object], bool]] = None


class AdkAgent:
    """Awaits chat-turn steps one after another against a shared context."""

    def __init__(self, steps: List[AdkStep]) -> None:
        self._steps = steps

    @property
    def step_names(self) -> List[str]:
        return [step.name for step in self._steps]

    async def run(self, context: object) -> None:
        """Purpose: Drive a single support turn from knowledge load to model reply.
        Inputs/Outputs: Input is the turn's PipelineContext; results land on it, nothing is returned.
        Side Effects / State: Each step writes its output (intents, order, context text,
            answer) onto the context before the next step reads it.
        Dependencies: AdkStep coroutines supplied by SupportAssistantAgent.
        Failure Modes: A raising step stops the turn; the request handler maps it to a 500.
        If Removed: SupportAssistantAgent has no way to sequence its steps.
        Testing Notes: Recording steps plus an always-true guard show order and skipping.
        """
        # Guards see the context as left by earlier steps (order lookup reads intents).
        for step in self._steps:
            if step.skip_if and step.skip_if(context):
                continue
            await step.fn(context)
