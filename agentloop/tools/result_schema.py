from __future__ import annotations

from typing import Any

UNKNOWN_TOOL = "unknown_tool"
INVALID_ARGUMENTS = "invalid_arguments"
TOOL_ERROR = "tool_error"


def make_tool_result(
    *,
    kind: str,
    text: str,
    success: bool,
    error: str | None = None,
    code: str | None = None,
    data: Any = None,
    meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a normalized tool result envelope.

    ``text`` is what the model sees. ``code`` tags failures for diagnostics
    (``unknown_tool``, ``invalid_arguments``, ``tool_error``).
    """
    return {
        "kind": kind,
        "text": text,
        "success": bool(success),
        "error": error if not success else None,
        "code": code if not success else None,
        "data": data if data is not None else {},
        "meta": meta or {},
    }


def make_tool_success(
    *,
    kind: str,
    text: str,
    data: Any = None,
    meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return make_tool_result(kind=kind, text=text, success=True, data=data, meta=meta)


def make_tool_error(
    *,
    kind: str,
    error: str,
    code: str = TOOL_ERROR,
    text: str | None = None,
    data: Any = None,
    meta: dict[str, Any] | None = None,
) -> dict[str, Any]:
    rendered = text if text is not None else f"Error: {error}"
    return make_tool_result(
        kind=kind,
        text=rendered,
        success=False,
        error=error,
        code=code,
        data=data,
        meta=meta,
    )
