"""Project evaluation MCP tools."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any

from mcp.server.fastmcp import Context

from ..evaluation import (
    EvaluationRequest,
    EvaluationResult,
    EvaluationSession,
    FrameworkMonikerResolver,
    ImplicitSymbolDeriver,
    drop_generated_items,
)
from ..policy import EvaluationPolicy
from ..project import ProjectFile, ambient_symbols

if TYPE_CHECKING:
    from mcp.server.fastmcp import FastMCP

logger = logging.getLogger(__name__)


def prepare_request(
    workspace_root: str,
    project: str,
    target_framework: str | None = None,
    properties: Mapping[str, str] | None = None,
) -> EvaluationRequest:
    """Validate inputs and turn a project file into an evaluation request.

    Args:
        workspace_root: Directory the project must live under
        project: Project file or directory (relative paths resolve against the workspace)
        target_framework: Framework to evaluate
        properties: Global property overrides

    Raises:
        ValueError: If the path or a property violates the policy
        ProjectFileError: If the project cannot be read
    """
    policy = EvaluationPolicy(workspace_root=workspace_root)
    project_path = policy.validate_project_path(project)
    global_properties = policy.validate_properties(properties)
    return ProjectFile.load(project_path).to_request(target_framework, global_properties)


def result_payload(result: EvaluationResult, include_generated: bool = False) -> dict[str, Any]:
    """Render a result for a tool response."""
    data = result.to_dict()
    if not include_generated:
        items = drop_generated_items(result.items)
        data["compileItems"] = list(items)
        data["compileItemCount"] = len(items)
    return data


def resolve_framework_payload(framework: str, configuration: str = "Debug") -> dict[str, Any]:
    """Resolve a framework identity without reading any project."""
    moniker = FrameworkMonikerResolver().resolve(framework)
    framework_symbols = ImplicitSymbolDeriver().derive_symbols(moniker)
    symbols = list(dict.fromkeys([*ambient_symbols(configuration), *sorted(framework_symbols)]))
    return {
        "framework": moniker.to_dict(),
        "implicitSymbols": sorted(framework_symbols),
        "defineConstants": symbols,
    }


def register_evaluation_tools(
    server: FastMCP,
    session: EvaluationSession,
    resolve_workspace: Callable[[Context], Awaitable[str]],
) -> None:
    """Register evaluation tools with MCP server."""

    async def evaluate(
        ctx: Context,
        project: str,
        target_framework: str | None,
        properties: Mapping[str, str],
    ) -> EvaluationResult:
        workspace = await resolve_workspace(ctx)
        request = prepare_request(workspace, project, target_framework, properties)
        # Tree walk blocks; keep it off the event loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, session.evaluate_request, request)

    @server.tool()
    async def evaluate_project(
        ctx: Context,
        project: str,
        target_framework: str | None = None,
        configuration: str = "Debug",
        properties: dict[str, str] | None = None,
        include_generated: bool = False,
    ) -> dict:
        """
        Evaluate a .NET project: target framework, DefineConstants and Compile items.

        Args:
            project: Path to the .csproj/.vbproj/.fsproj (or its directory)
            target_framework: Framework to evaluate; required when the project
                declares several TargetFrameworks
            configuration: Build configuration (Debug/Release)
            properties: Extra global properties, e.g. {"DisableDefaultRemoves": "true"}
            include_generated: Keep generated AssemblyInfo/AssemblyAttributes items

        Returns:
            Framework, defineConstants and compileItems
        """
        try:
            overrides = {**(properties or {}), "Configuration": configuration}
            result = await evaluate(ctx, project, target_framework, overrides)
            return {"success": True, "data": result_payload(result, include_generated)}
        except Exception as e:
            return {"success": False, "error": str(e)}

    @server.tool()
    async def get_compile_items(
        ctx: Context,
        project: str,
        target_framework: str | None = None,
        disable_default_removes: bool = False,
        include_generated: bool = False,
    ) -> dict:
        """
        List the source files a project compiles.

        Files under bin/, obj/ and packages/ are excluded unless
        disable_default_removes is set.

        Args:
            project: Path to the project file (or its directory)
            target_framework: Framework to evaluate (for multi-targeting projects)
            disable_default_removes: Include files from the default-excluded folders
            include_generated: Keep generated AssemblyInfo/AssemblyAttributes items
        """
        try:
            overrides = {}
            if disable_default_removes:
                overrides["DisableDefaultRemoves"] = "true"
            result = await evaluate(ctx, project, target_framework, overrides)
            data = result_payload(result, include_generated)
            return {
                "success": True,
                "data": {
                    "compileItems": data["compileItems"],
                    "count": data["compileItemCount"],
                },
            }
        except Exception as e:
            return {"success": False, "error": str(e)}

    @server.tool()
    async def get_define_constants(
        ctx: Context,
        project: str,
        target_framework: str | None = None,
        configuration: str = "Debug",
    ) -> dict:
        """
        Get the DefineConstants a project compiles with.

        Includes configuration symbols (DEBUG/TRACE) and the implicit
        framework symbol (e.g. NETSTANDARD1_5, NET461).
        """
        try:
            result = await evaluate(ctx, project, target_framework, {"Configuration": configuration})
            return {
                "success": True,
                "data": {
                    "defineConstants": list(result.symbols),
                    "value": result.define_constants,
                    "framework": result.moniker.to_dict(),
                },
            }
        except Exception as e:
            return {"success": False, "error": str(e)}

    @server.tool()
    async def resolve_framework(framework: str, configuration: str = "Debug") -> dict:
        """
        Resolve a target framework moniker and its implicit symbols.

        Accepts short (netstandard1.5, net461) and long
        (.NETFramework,Version=v4.0,Profile=Client) forms. Unknown
        frameworks still resolve.

        Args:
            framework: Target framework moniker
            configuration: Build configuration for the ambient symbols
        """
        try:
            return {"success": True, "data": resolve_framework_payload(framework, configuration)}
        except Exception as e:
            return {"success": False, "error": str(e)}

    logger.debug("Evaluation tools registered")
