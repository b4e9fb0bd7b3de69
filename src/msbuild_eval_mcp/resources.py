"""MCP Resources for evaluation reference data."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from .evaluation.framework import SHORT_NAMES
from .evaluation.items import DEFAULT_COMPILE_INCLUDES, default_excludes

if TYPE_CHECKING:
    from mcp.server.fastmcp import FastMCP


def register_resources(server: FastMCP) -> None:
    """Register MCP resources."""

    @server.resource("msbuild://default-excludes", mime_type="application/json")
    async def default_excludes_resource() -> str:
        """Default item excludes and conventional Compile globs (JSON).

        Excludes apply unless DisableDefaultRemoves=true.
        """
        return json.dumps(
            {
                "defaultExcludes": list(default_excludes()),
                "defaultCompileIncludes": {
                    suffix: list(globs) for suffix, globs in DEFAULT_COMPILE_INCLUDES.items()
                },
                "overrideProperty": "DisableDefaultRemoves",
            },
            indent=2,
        )

    @server.resource("msbuild://frameworks", mime_type="application/json")
    async def frameworks_resource() -> str:
        """Known short framework names and their identifiers (JSON)."""
        return json.dumps({short: family.value for short, family in SHORT_NAMES.items()}, indent=2)
