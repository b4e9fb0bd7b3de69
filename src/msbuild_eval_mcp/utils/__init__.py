"""Utility modules for msbuild-eval-mcp."""

from .project import (
    ProjectRootConfig,
    configure_project_root,
    find_workspace_root,
    get_project_root,
    parse_file_uri,
)

__all__ = [
    "ProjectRootConfig",
    "configure_project_root",
    "find_workspace_root",
    "get_project_root",
    "parse_file_uri",
]
