"""
Reveal Module
=============

State machine that sequences the two display panes.

This module implements the control logic:
    - controller.py: RevealController (states, loop ownership, surfaces)
    - chain.py: LangGraph workflow for the two external calls

Key Design Decisions:
    - One explicit RevealState instead of independent flags
    - A single animation loop handle, stopped before it is replaced
    - LangGraph is used for STRUCTURE of the call chain, not reasoning
"""

from synthesis_reveal.reveal.chain import RevealChain, RevealChainState
from synthesis_reveal.reveal.controller import (
    CAPTION_EXTRACTING,
    CAPTION_SYNTHESIZING,
    ERROR_CAPTION,
    RevealController,
)

__all__ = [
    "RevealChain",
    "RevealChainState",
    "RevealController",
    "ERROR_CAPTION",
    "CAPTION_EXTRACTING",
    "CAPTION_SYNTHESIZING",
]
