"""
Client-side contract for the tutoring collaborator.

The tutoring service itself (a text-generation backend) lives outside the
core. This module defines what the core hands it, how a request prompt is
phrased, and how failures degrade to static fallback text. There is no
automatic retry; the user asks again explicitly.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple

logger = logging.getLogger(__name__)

FALLBACK_TEXT = "Initialize the system to receive guidance."
FAILURE_TEXT = "Connection to AI Tutor disrupted. Try again."
EMPTY_TEXT = "I'm analyzing the data stream..."

BASE_INSTRUCTION = (
    'You are an expert AI Tutor inside a game called "Neural Nexus".\n'
    "Your goal is to explain neural network concepts based on the current mini-game state.\n"
    "Keep explanations concise (under 80 words), encouraging, and use the game's metaphors.\n"
)

ARCHITECT_INSTRUCTION = (
    "Metaphor: The Neural Architect (Deep Learning).\n"
    "Elements: Layers (Depth), Nodes (Width), Synapses (Connections), Training Loop (Backprop).\n"
    "Concept: Designing a network architecture. How hidden layers extract features. "
    "The balance between network size and learning speed.\n"
)

USER_QUESTION = "Explain what is happening right now and how to win."


class GameMode(str, Enum):
    """Mode tags the host shell attaches to a stats snapshot."""

    MENU = "MENU"
    FACTORY = "FACTORY"
    PRISM = "PRISM"
    DESCENT = "DESCENT"
    QUANTUM = "QUANTUM"
    ARCHITECT = "ARCHITECT"


@dataclass(frozen=True)
class TutorContext:
    mode: GameMode
    stats: Dict[str, Any] = field(default_factory=dict)


class TutorService(ABC):
    """A text-generation backend that explains the current state."""

    @abstractmethod
    async def explain(self, system_instruction: str, contents: str) -> str:
        """Return explanatory text; may raise `ExternalServiceFailure`."""
        ...


def build_prompt(context: TutorContext) -> Tuple[str, str]:
    """
    Phrase a tutor request for `context`.

    Returns:
        (system_instruction, contents)
    """
    stats = context.stats
    if context.mode == GameMode.ARCHITECT:
        instruction = BASE_INSTRUCTION + ARCHITECT_INSTRUCTION
        state = (
            f"Current Network State: Structure=[{stats.get('structure')}], "
            f"Total Epochs={stats.get('epochs')}, Current Loss={stats.get('loss')}, "
            f"Learning Rate={stats.get('lr')}."
        )
    else:
        instruction = BASE_INSTRUCTION
        state = "Current State: " + ", ".join(f"{k}={v}" for k, v in stats.items()) + "."
    return instruction, f"Context: {state}. User Question: {USER_QUESTION}"


async def request_explanation(service: TutorService | None, context: TutorContext) -> str:
    """
    Ask `service` to explain `context`, never raising.

    A missing service, a failing call or an empty answer each degrade to a
    static fallback text.
    """
    if service is None:
        return FALLBACK_TEXT
    instruction, contents = build_prompt(context)
    try:
        text = await service.explain(instruction, contents)
    except Exception as exc:  # any collaborator failure is non-fatal
        logger.warning("Tutor request failed: %s", exc)
        return FAILURE_TEXT
    return text or EMPTY_TEXT
