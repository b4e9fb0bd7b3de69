"""Entry point for msbuild-eval-mcp server."""

import argparse
import asyncio
import logging
import os
import sys

from .server import create_server
from .utils.project import configure_project_root, find_workspace_root


def configure_logging() -> None:
    """Configure logging based on environment."""
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    # stdout carries the MCP protocol
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="MSBuild Eval MCP Server - evaluate .NET projects via MCP"
    )
    parser.add_argument(
        "--project",
        type=str,
        default=None,
        help="Workspace root. Only project files under this path can be evaluated.",
    )
    parser.add_argument(
        "--project-from-cwd",
        action="store_true",
        default=False,
        help="Auto-detect the workspace from the current working directory. "
        "Searches upward for .sln, .csproj/.vbproj/.fsproj, or .git markers. "
        "Cannot be used with --project.",
    )
    return parser.parse_args(argv)


def resolve_startup_root(args: argparse.Namespace) -> str:
    """Pick the workspace root from parsed arguments.

    Raises:
        ValueError: If --project and --project-from-cwd are combined
    """
    if args.project_from_cwd:
        if args.project is not None:
            raise ValueError("--project-from-cwd cannot be used with --project")
        return str(find_workspace_root())
    return os.path.abspath(args.project or os.getcwd())


async def main() -> None:
    """Main entry point."""
    configure_logging()
    logger = logging.getLogger(__name__)

    args = parse_args()
    try:
        project_path = resolve_startup_root(args)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    configure_project_root(
        use_project_from_cwd=args.project_from_cwd,
        explicit_project_path=args.project,
        startup_cwd=os.getcwd(),
    )
    logger.info(f"Starting MSBuild Eval MCP Server (workspace: {project_path})...")

    mcp = create_server(project_path)

    try:
        await mcp.run_stdio_async()
    except Exception:
        logger.exception("Server error")
        raise
    finally:
        logger.info("Server stopped")


def run() -> None:
    """Run the server."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
