"""Streaming orchestrators and their selection."""

from __future__ import annotations

from .base import IterationResult, StreamingOrchestrator
from .default import DefaultStreamingOrchestrator
from .double_agent import DoubleAgentOrchestrator, Phase
from .selection import select_orchestrator
from .typed_output import TypedOutputStreamingOrchestrator

__all__ = [
    "DefaultStreamingOrchestrator",
    "DoubleAgentOrchestrator",
    "IterationResult",
    "Phase",
    "StreamingOrchestrator",
    "TypedOutputStreamingOrchestrator",
    "select_orchestrator",
]
