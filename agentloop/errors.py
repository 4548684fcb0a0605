"""Exceptions raised by the agent loop."""

from __future__ import annotations


class AgentError(Exception):
    """Base class for errors raised by agentloop."""


class IterationLimitError(AgentError):
    def __init__(self, max_iterations: int) -> None:
        self.max_iterations = max_iterations
        super().__init__(f"Agent exceeded maximum of {max_iterations} iterations")


class HistoryAlternationError(AgentError):
    """The supplied history breaks the system/user/model ordering rules."""

    def __init__(self, index: int, reason: str) -> None:
        self.index = index
        self.reason = reason
        super().__init__(f"Invalid history at index {index}: {reason}")


class SchemaDecodeError(AgentError):
    """The final output could not be decoded into the requested type."""

    def __init__(self, text: str, cause: Exception) -> None:
        self.text = text
        self.cause = cause
        super().__init__(f"Failed to decode typed output: {cause}")


class UnsupportedCapabilityError(AgentError):
    def __init__(self, provider: str, capability: str) -> None:
        self.provider = provider
        self.capability = capability
        super().__init__(f"Provider {provider!r} does not support {capability}")


class ReservedToolNameError(AgentError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Tool name {name!r} is reserved for typed output. "
            "Please use a different tool name."
        )
