"""Google provider contract."""

from __future__ import annotations

from typing import Any

from .base import ProviderContract


class GoogleProviderContract(ProviderContract):
    """Google-specific thinking and JSON-mode kwargs."""

    def build_thinking_kwargs(self, budget: int) -> dict[str, Any]:
        kwargs = self.build_budget_kwargs(budget)
        kwargs["thinking_budget"] = max(int(budget) - 1, 0)
        kwargs["include_thoughts"] = True
        return kwargs

    def build_schema_kwargs(self, schema: dict[str, Any]) -> dict[str, Any]:
        return {
            "response_mime_type": "application/json",
            "response_json_schema": schema,
        }
