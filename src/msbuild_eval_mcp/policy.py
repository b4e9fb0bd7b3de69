"""Evaluation policy - path and global property validation.

Security measures:
- Global property whitelisting (configuration, framework, item switches only)
- Path canonicalization with symlink/junction rejection
- UNC and device path denial
- Project paths constrained to the workspace
"""

from __future__ import annotations

import os
import stat
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final

# Global properties a caller may override (case-insensitive)
ALLOWED_PROPERTIES: Final[frozenset[str]] = frozenset(
    {
        "configuration",
        "targetframework",
        "disabledefaultremoves",
        "enabledefaultitems",
        "enabledefaultcompileitems",
        "defineconstants",
        "disableimplicitframeworkdefines",
        "baseoutputpath",
        "baseintermediateoutputpath",
        "defaultitemexcludes",
    }
)

BOOLEAN_PROPERTIES: Final[frozenset[str]] = frozenset(
    {
        "disabledefaultremoves",
        "enabledefaultitems",
        "enabledefaultcompileitems",
        "disableimplicitframeworkdefines",
    }
)

# Properties holding directory names relative to the project
PATH_PROPERTIES: Final[frozenset[str]] = frozenset({"baseoutputpath", "baseintermediateoutputpath"})

ALLOWED_CONFIGURATIONS: Final[frozenset[str]] = frozenset({"Debug", "Release"})


@dataclass
class EvaluationPolicy:
    """Security policy for evaluation requests.

    Validates:
    - Paths are within the allowed workspace
    - No symlinks, junctions, or reparse points
    - No UNC or device paths
    - Global properties are whitelisted
    """

    workspace_root: str
    allow_unc_paths: bool = False
    allow_device_paths: bool = False

    def __post_init__(self) -> None:
        """Validate and canonicalize workspace root."""
        self.workspace_root = self._validate_path(
            self.workspace_root, allow_symlinks=False, context="workspace_root"
        )

    def _validate_path(
        self,
        path: str,
        allow_symlinks: bool = False,
        context: str = "path",
    ) -> str:
        """Validate and canonicalize a path.

        Args:
            path: Path to validate
            allow_symlinks: Whether to allow symlinks (default False)
            context: Context for error messages

        Returns:
            Canonicalized absolute path

        Raises:
            ValueError: If path is invalid or violates security policy
        """
        if not path:
            raise ValueError(f"Empty {context}")

        # Device paths (\\?\, \\.\) also start with \\ so check them first
        if path.startswith(("\\\\.\\", "\\\\?\\")):
            if not self.allow_device_paths:
                raise ValueError(f"Device paths not allowed in {context}: {path}")

        if path.startswith("\\\\") and not self.allow_unc_paths:
            raise ValueError(f"UNC paths not allowed in {context}: {path}")

        abs_path = os.path.abspath(path)

        if ".." in Path(path).parts:
            resolved = os.path.normpath(abs_path)
            if resolved != abs_path:
                raise ValueError(f"Path traversal detected in {context}: {path}")

        if os.name == "nt" and os.path.exists(abs_path):
            try:
                attrs = os.lstat(abs_path)
                if stat.S_ISLNK(attrs.st_mode) and not allow_symlinks:
                    raise ValueError(f"Symlink not allowed in {context}: {path}")
                if hasattr(attrs, "st_file_attributes"):
                    FILE_ATTRIBUTE_REPARSE_POINT = 0x400
                    if attrs.st_file_attributes & FILE_ATTRIBUTE_REPARSE_POINT:
                        if not allow_symlinks:
                            raise ValueError(
                                f"Reparse point (junction/symlink) not allowed in {context}: {path}"
                            )
            except OSError as e:
                raise ValueError(f"Cannot access {context}: {path} ({e})") from e
        elif os.path.islink(abs_path) and not allow_symlinks:
            raise ValueError(f"Symlink not allowed in {context}: {path}")

        return abs_path

    def validate_project_path(self, project_path: str) -> str:
        """Validate project path is within workspace.

        Args:
            project_path: Path to project file or directory

        Returns:
            Validated absolute path

        Raises:
            ValueError: If path is invalid or outside workspace
        """
        if not os.path.isabs(project_path):
            project_path = os.path.join(self.workspace_root, project_path)
        validated = self._validate_path(
            project_path, allow_symlinks=False, context="project_path"
        )

        try:
            common = os.path.commonpath([validated, self.workspace_root])
            if common != self.workspace_root:
                raise ValueError(f"Project path outside workspace: {project_path}")
        except ValueError as e:
            raise ValueError(f"Project path outside workspace: {project_path}") from e

        return validated

    def validate_properties(self, properties: Mapping[str, str] | None) -> dict[str, str]:
        """Validate caller-supplied global properties.

        Args:
            properties: Property name/value pairs

        Returns:
            Validated properties (values as strings)

        Raises:
            ValueError: If a property is not allowed or has an invalid value
        """
        validated: dict[str, str] = {}
        for name, raw_value in (properties or {}).items():
            key = name.strip().lower()
            value = "" if raw_value is None else str(raw_value).strip()

            if key not in ALLOWED_PROPERTIES:
                raise ValueError(f"Property not allowed: {name}")

            if key == "configuration":
                if value not in ALLOWED_CONFIGURATIONS:
                    raise ValueError(f"Invalid configuration: {value}")
            elif key in BOOLEAN_PROPERTIES:
                if value.lower() not in ("true", "false"):
                    raise ValueError(f"Invalid boolean for {name}: {value}")
                value = value.lower()
            elif key in PATH_PROPERTIES:
                parts = Path(value.replace("\\", "/")).parts
                if not value or os.path.isabs(value) or ".." in parts:
                    raise ValueError(f"Invalid relative path for {name}: {value}")

            validated[name.strip()] = value

        return validated
