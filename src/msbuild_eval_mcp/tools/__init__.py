"""MCP Tools for project evaluation."""

from .evaluation import (
    prepare_request,
    register_evaluation_tools,
    resolve_framework_payload,
    result_payload,
)

__all__ = [
    "register_evaluation_tools",
    "prepare_request",
    "result_payload",
    "resolve_framework_payload",
]
