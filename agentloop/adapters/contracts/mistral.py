"""Mistral provider contract."""

from __future__ import annotations

from typing import Any

from .base import ProviderContract
from .openai import json_schema_response_format


class MistralProviderContract(ProviderContract):
    """Mistral accepts OpenAI-style ``response_format`` payloads."""

    def build_schema_kwargs(self, schema: dict[str, Any]) -> dict[str, Any]:
        return {"response_format": json_schema_response_format(schema)}
