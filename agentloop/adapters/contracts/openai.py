"""OpenAI provider contract."""

from __future__ import annotations

from typing import Any

from .base import ProviderContract

SCHEMA_NAME = "output"


def json_schema_response_format(schema: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {"name": SCHEMA_NAME, "schema": schema, "strict": False},
    }


class OpenAIProviderContract(ProviderContract):
    """OpenAI-specific reasoning/thinking behavior."""

    def build_thinking_kwargs(self, budget: int) -> dict[str, Any]:
        kwargs = self.build_budget_kwargs(budget)
        kwargs["reasoning"] = {"effort": "high", "summary": "auto"}
        return kwargs

    def build_schema_kwargs(self, schema: dict[str, Any]) -> dict[str, Any]:
        return {"response_format": json_schema_response_format(schema)}

    def extract_thinking_deltas(self, block: dict[str, Any]) -> list[str]:
        if block.get("type") == "reasoning":
            deltas: list[str] = []
            summaries = block.get("summary")
            if isinstance(summaries, list):
                for summary in summaries:
                    if isinstance(summary, dict):
                        text = str(summary.get("text", ""))
                        if text:
                            deltas.append(text)
            reasoning = str(block.get("reasoning", ""))
            if reasoning:
                deltas.append(reasoning)
            return deltas
        return super().extract_thinking_deltas(block)
