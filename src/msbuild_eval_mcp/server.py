"""MCP Server for .NET project evaluation."""

from __future__ import annotations

import logging

from mcp.server.fastmcp import Context, FastMCP

from .evaluation import EvaluationSession
from .resources import register_resources
from .tools import register_evaluation_tools
from .utils.project import get_project_root

logger = logging.getLogger(__name__)

_initial_project_path: str | None = None


async def resolve_workspace_root(ctx: Context | None) -> str:
    """Resolve the workspace that project paths are validated against.

    Uses MCP roots from the client if available, otherwise the configured
    project path.

    Raises:
        ValueError: If no workspace can be determined
    """
    root = await get_project_root(ctx)
    if root is not None:
        return str(root)
    if _initial_project_path:
        return _initial_project_path
    raise ValueError("Cannot determine workspace root; start the server with --project")


def create_server(project_path: str | None = None) -> FastMCP:
    """Create and configure the MCP server.

    Args:
        project_path: Initial workspace root. Project files outside it are
            rejected. Can be replaced by MCP client roots.
    """
    global _initial_project_path
    _initial_project_path = project_path
    mcp = FastMCP("msbuild-eval-mcp")
    session = EvaluationSession()

    register_evaluation_tools(mcp, session, resolve_workspace_root)
    register_resources(mcp)

    @mcp.prompt(
        name="evaluate",
        description="Guide for inspecting how a .NET project will compile",
    )
    def evaluate_prompt() -> list[dict]:
        """Start here when asking what a project compiles."""
        return [
            {
                "role": "user",
                "content": """# .NET Project Evaluation Guide

## What will be compiled?
```
get_compile_items(project="src/Lib/Lib.csproj")
```
Files under bin/, obj/ and packages/ are skipped by default. To see them too:
```
get_compile_items(project="src/Lib/Lib.csproj", disable_default_removes=True)
```

## Which symbols are defined?
```
get_define_constants(project="src/Lib/Lib.csproj", configuration="Release")
resolve_framework(framework="netstandard1.5")   # no project needed
```

## Everything at once
```
evaluate_project(project="src/Lib/Lib.csproj", target_framework="net461")
```

## Notes
- Projects with several TargetFrameworks need target_framework
- Unknown frameworks still resolve (e.g. UnknownFramework,Version=v3.14)
- Portable profiles (.NETPortable) get no implicit symbol
- Evaluation reads the tree as it is now; restore first if restore generates sources
""",
            }
        ]

    logger.info("MSBuild evaluation MCP server initialized")
    return mcp
