"""Workspace root detection utilities.

The workspace root bounds which project files evaluation tools may read.
It is determined from, in order:
1. MCP Roots from client (via Context.list_roots())
2. Environment variables (MSBUILD_EVAL_PROJECT_ROOT, MCP_PROJECT_ROOT)
3. Explicit --project path
4. Startup CWD (with marker search when --project-from-cwd is used)
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

if TYPE_CHECKING:
    from mcp.server.fastmcp import Context

logger = logging.getLogger(__name__)

# Marker globs in priority order; the first marker found anywhere up the
# tree wins over lower-priority markers closer to the start directory
WORKSPACE_MARKERS: tuple[tuple[str, ...], ...] = (
    ("*.sln",),
    ("*.csproj", "*.vbproj", "*.fsproj"),
)


@dataclass
class ProjectRootConfig:
    """Settings that decide the workspace root."""

    startup_cwd: Path | None = None
    use_project_from_cwd: bool = False
    explicit_project_path: Path | None = None
    env_var_names: tuple[str, ...] = field(
        default_factory=lambda: ("MSBUILD_EVAL_PROJECT_ROOT", "MCP_PROJECT_ROOT")
    )


# Set once at startup
_config: ProjectRootConfig = ProjectRootConfig()


def configure_project_root(
    *,
    use_project_from_cwd: bool = False,
    explicit_project_path: str | Path | None = None,
    startup_cwd: str | Path | None = None,
) -> None:
    """Configure workspace root detection.

    Args:
        use_project_from_cwd: Whether --project-from-cwd was specified
        explicit_project_path: Explicit --project path if provided
        startup_cwd: CWD captured at startup
    """
    global _config
    _config = ProjectRootConfig(
        use_project_from_cwd=use_project_from_cwd,
        explicit_project_path=Path(explicit_project_path) if explicit_project_path else None,
        startup_cwd=Path(startup_cwd) if startup_cwd else None,
    )
    logger.debug(
        f"Workspace root configured: use_cwd={use_project_from_cwd}, "
        f"explicit={explicit_project_path}, startup_cwd={startup_cwd}"
    )


def get_config() -> ProjectRootConfig:
    """Get current workspace root configuration."""
    return _config


def parse_file_uri(uri: str) -> Path | None:
    """Parse a file:// URI to an absolute Path.

    Handles ``file:///home/x``, ``file:///C:/x`` and, on Windows,
    UNC ``file://server/share``.

    Returns:
        Path if parsing succeeds, None otherwise
    """
    try:
        parsed = urlparse(str(uri))
    except ValueError as e:
        logger.warning(f"Failed to parse file URI '{uri}': {e}")
        return None

    if parsed.scheme != "file":
        logger.warning(f"Not a file URI: {uri}")
        return None

    path_str = unquote(parsed.path)
    if sys.platform == "win32":
        # "/C:/path" -> "C:/path"
        if len(path_str) > 2 and path_str.startswith("/") and path_str[2] == ":":
            path_str = path_str[1:]
        if parsed.netloc:
            path_str = f"\\\\{parsed.netloc}{path_str}"

    path = Path(path_str)
    if not path.is_absolute():
        logger.warning(f"Parsed path is not absolute: {path}")
        return None
    return path


def find_workspace_root(start_dir: str | Path | None = None, boundary: str | Path | None = None) -> Path:
    """Walk up from start_dir looking for a solution, project file, or .git.

    Args:
        start_dir: Directory to start from (defaults to CWD)
        boundary: Do not search above this directory

    Returns:
        The marked directory, or start_dir when nothing is found
    """
    current = Path(start_dir or Path.cwd()).resolve()
    limit = Path(boundary).resolve() if boundary is not None else None

    def ancestors() -> Iterator[Path]:
        yield current
        if current == limit:
            return
        for parent in current.parents:
            yield parent
            if limit is not None and parent == limit:
                return

    for patterns in WORKSPACE_MARKERS:
        for directory in ancestors():
            if any(any(directory.glob(p)) for p in patterns):
                return directory

    for directory in ancestors():
        # .git is a file in worktrees
        if (directory / ".git").exists():
            return directory

    return current


def _is_usable_dir(path: Path | None, source: str) -> bool:
    if path is None:
        return False
    if path.exists() and path.is_dir():
        return True
    logger.warning(f"{source} path does not exist or is not a directory: {path}")
    return False


def _configured_root() -> Path | None:
    """Root from environment, --project, or startup CWD."""
    config = get_config()

    for env_var in config.env_var_names:
        env_value = os.environ.get(env_var)
        if env_value and _is_usable_dir(Path(env_value), env_var):
            logger.debug(f"Using workspace root from {env_var}: {env_value}")
            return Path(env_value)

    if _is_usable_dir(config.explicit_project_path, "--project"):
        return config.explicit_project_path

    if config.startup_cwd is not None:
        if config.use_project_from_cwd:
            return find_workspace_root(config.startup_cwd)
        return config.startup_cwd

    return None


async def get_project_root(ctx: Context | None = None) -> Path | None:
    """Determine the workspace root, preferring roots announced by the client.

    Args:
        ctx: MCP Context, or None outside a tool call

    Returns:
        Workspace root, or None if not determinable
    """
    if ctx is not None:
        try:
            roots = await ctx.list_roots()
        except Exception as e:
            # Clients without roots support raise here
            logger.info(f"Could not get roots from client: {e}")
            roots = None

        if roots:
            path = parse_file_uri(str(roots[0].uri))
            if path is not None and _is_usable_dir(path, "MCP root"):
                logger.info(f"Using workspace root from MCP client: {path}")
                return path

    root = _configured_root()
    if root is None:
        logger.warning("Could not determine workspace root from any source")
    return root
