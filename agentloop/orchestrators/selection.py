"""Orchestrator selection from declared capabilities and request shape."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ..errors import UnsupportedCapabilityError
from ..provider_capabilities import ProviderCapabilities
from ..tools.base import Tool
from ..tools.return_result import with_return_result_tool
from .base import StreamingOrchestrator
from .default import DefaultStreamingOrchestrator
from .double_agent import DoubleAgentOrchestrator
from .typed_output import TypedOutputStreamingOrchestrator

logger = logging.getLogger("agentloop.orchestrator.selection")


def select_orchestrator(
    capabilities: ProviderCapabilities,
    tools: Sequence[Tool],
    output_schema: dict[str, Any] | None,
) -> tuple[StreamingOrchestrator, list[Tool]]:
    """Pick a fresh orchestrator and the executable tool list for one call.

    With an output schema the returned tools always include the synthetic
    ``return_result`` tool, so a call to it can be honoured even when the
    provider was expected to answer natively; it is only advertised to the
    model when native support is missing.
    """
    has_tools = bool(tools)
    if has_tools and not capabilities.supports_tools:
        raise UnsupportedCapabilityError(capabilities.provider, "tool calling")

    if output_schema is None:
        return DefaultStreamingOrchestrator(), list(tools)

    tools_with_result = with_return_result_tool(tools, output_schema)

    if capabilities.supports_native_schema:
        if not has_tools or capabilities.supports_tools_with_schema:
            logger.debug("Native typed output for %s", capabilities.provider)
            return TypedOutputStreamingOrchestrator(has_return_result_tool=False), tools_with_result
        logger.debug("Double agent typed output for %s", capabilities.provider)
        return DoubleAgentOrchestrator(), list(tools)

    if capabilities.supports_tools:
        logger.debug("return_result typed output for %s", capabilities.provider)
        return TypedOutputStreamingOrchestrator(has_return_result_tool=True), tools_with_result

    raise UnsupportedCapabilityError(capabilities.provider, "typed output")

