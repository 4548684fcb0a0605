"""Agent configuration and logging setup."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import IO

logger = logging.getLogger("agentloop.config")

DEFAULT_MAX_ITERATIONS = 25
DEFAULT_THINKING_BUDGET = 128000
MIN_THINKING_BUDGET = 1024
MAX_THINKING_BUDGET = 1_000_000
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def resolve_thinking_budget(thinking_budget: int | None) -> int:
    """Normalize budget to a safe integer range."""
    if thinking_budget is None:
        return DEFAULT_THINKING_BUDGET

    try:
        budget = int(thinking_budget)
    except (TypeError, ValueError):
        logger.warning(
            "Invalid thinking_budget=%r; falling back to default=%d",
            thinking_budget,
            DEFAULT_THINKING_BUDGET,
        )
        return DEFAULT_THINKING_BUDGET

    if budget < MIN_THINKING_BUDGET:
        logger.warning(
            "thinking_budget=%d is below min=%d; clamping",
            budget,
            MIN_THINKING_BUDGET,
        )
        return MIN_THINKING_BUDGET
    if budget > MAX_THINKING_BUDGET:
        logger.warning(
            "thinking_budget=%d exceeds max=%d; clamping",
            budget,
            MAX_THINKING_BUDGET,
        )
        return MAX_THINKING_BUDGET
    return budget


def _env_int(name: str, default: int | None) -> int | None:
    raw = (os.getenv(name, "") or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, defaulting to %r", name, raw, default)
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name, "") or "").strip().lower()
    if not raw:
        return default
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    logger.warning("Invalid %s=%r, defaulting to %r", name, raw, default)
    return default


@dataclass(frozen=True)
class AgentConfig:
    """Settings threaded into an :class:`~agentloop.agent.Agent`.

    ``max_iterations`` bounds the number of model requests made for one
    ``send``/``send_stream`` call.
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    enable_thinking: bool = False
    thinking_budget: int | None = None
    system_prompt: str | None = None

    def __post_init__(self) -> None:
        if self.max_iterations <= 0:
            raise ValueError(f"max_iterations must be positive, got {self.max_iterations}")

    @property
    def effective_thinking_budget(self) -> int:
        return resolve_thinking_budget(self.thinking_budget)

    @classmethod
    def from_env(cls, **overrides: object) -> AgentConfig:
        """Build a config from ``AGENTLOOP_*`` environment variables."""
        max_iterations = _env_int("AGENTLOOP_MAX_ITERATIONS", DEFAULT_MAX_ITERATIONS)
        if max_iterations is None or max_iterations <= 0:
            logger.warning(
                "AGENTLOOP_MAX_ITERATIONS must be positive, defaulting to %d",
                DEFAULT_MAX_ITERATIONS,
            )
            max_iterations = DEFAULT_MAX_ITERATIONS
        values: dict[str, object] = {
            "max_iterations": max_iterations,
            "enable_thinking": _env_bool("AGENTLOOP_ENABLE_THINKING", False),
            "thinking_budget": _env_int("AGENTLOOP_THINKING_BUDGET", None),
        }
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]


def configure_logging(level: int | str | None = None, stream: IO[str] | None = None) -> None:
    """Install a console handler for applications embedding the agent."""
    if level is None:
        level = (os.getenv("AGENTLOOP_LOG_LEVEL", "INFO") or "INFO").strip().upper()
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        stream=stream or sys.stdout,
    )
