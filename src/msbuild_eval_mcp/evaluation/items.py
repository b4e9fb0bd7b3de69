"""Compile item evaluation.

Combines the project's conventional include glob, explicit Compile items and
the default-exclude set (bin/, obj/, packages/ ...) into the list of source
files handed to the compiler.
"""

from __future__ import annotations

import logging
import os
import posixpath
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Final

from .errors import InvalidPatternError
from .globbing import PathMatcher, root_relative_pattern

logger = logging.getLogger(__name__)

DEFAULT_BASE_OUTPUT_PATH: Final[str] = "bin"
DEFAULT_BASE_INTERMEDIATE_OUTPUT_PATH: Final[str] = "obj"

# Conventional Compile globs per project language
DEFAULT_COMPILE_INCLUDES: Final[dict[str, tuple[str, ...]]] = {
    ".csproj": ("**/*.cs",),
    ".vbproj": ("**/*.vb",),
    ".fsproj": (),
}


def _output_folder(path: str, default: str) -> str | None:
    """Output folder as a glob prefix; None when it lies above the project."""
    folder = path.replace("\\", "/").rstrip("/") or default
    if not folder.startswith("/"):
        collapsed = posixpath.normpath(folder)
        if collapsed == ".." or collapsed.startswith("../"):
            return None
    return folder


def default_excludes(
    base_output_path: str = DEFAULT_BASE_OUTPUT_PATH,
    base_intermediate_output_path: str = DEFAULT_BASE_INTERMEDIATE_OUTPUT_PATH,
) -> tuple[str, ...]:
    """Default item excludes for an SDK-style project.

    Output folders outside the project directory (``..\\artifacts\\obj\\``)
    are left out; nothing under the project can live there.

    Args:
        base_output_path: BaseOutputPath property (build output)
        base_intermediate_output_path: BaseIntermediateOutputPath property

    Returns:
        Ordered exclude globs
    """
    folders = (
        _output_folder(base_output_path, DEFAULT_BASE_OUTPUT_PATH),
        _output_folder(base_intermediate_output_path, DEFAULT_BASE_INTERMEDIATE_OUTPUT_PATH),
    )
    return tuple(f"{folder}/**" for folder in folders if folder) + (
        "packages/**",
        "**/*.user",
        "**/*.*proj",
        "**/*.sln",
        "**/*.vssscc",
    )


@dataclass(frozen=True)
class ExclusionPolicy:
    """Default excludes and the switch that turns them off."""

    default_excludes: tuple[str, ...] = field(default_factory=default_excludes)
    overridden: bool = False

    def effective_excludes(self, user_excludes: Sequence[str] = ()) -> tuple[str, ...]:
        """Excludes applied to the conventional include glob."""
        if self.overridden:
            return tuple(user_excludes)
        return self.default_excludes + tuple(user_excludes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "defaultExcludes": list(self.default_excludes),
            "overridden": self.overridden,
        }


class ItemEvaluator:
    """Computes the Compile item list for a project directory."""

    def __init__(self, matcher: PathMatcher | None = None):
        self._matcher = matcher or PathMatcher()

    def evaluate_compile_items(
        self,
        root: str | os.PathLike[str],
        user_includes: Sequence[str] = (),
        user_excludes: Sequence[str] = (),
        exclusion_policy: ExclusionPolicy | None = None,
        default_includes: Sequence[str] = DEFAULT_COMPILE_INCLUDES[".csproj"],
    ) -> tuple[str, ...]:
        """Evaluate Compile items.

        The conventional glob honors default excludes unless the policy is
        overridden. Explicit includes only honor the user's excludes, so a
        file named explicitly is compiled even from inside bin/ or obj/.

        Args:
            root: Project directory
            user_includes: Explicit Compile Include globs
            user_excludes: Compile Remove / Exclude globs
            exclusion_policy: Default excludes and override switch
            default_includes: Conventional include globs; empty when default
                compile items are disabled

        Returns:
            Root-relative paths in discovery order, no duplicates

        Raises:
            InvalidPatternError: If any glob is malformed, or an include
                points outside root
        """
        policy = exclusion_policy or ExclusionPolicy()
        includes = _relative_includes(root, user_includes)
        excludes = _relative_excludes(root, user_excludes)

        conventional = self._matcher.match(
            root,
            list(default_includes),
            _relative_excludes(root, policy.effective_excludes(excludes)),
        )
        explicit = self._matcher.match(root, includes, excludes)

        items = list(dict.fromkeys(conventional + explicit))
        logger.debug(
            f"Compile items for {root}: {len(conventional)} conventional, "
            f"{len(explicit)} explicit, {len(items)} total "
            f"(default excludes {'off' if policy.overridden else 'on'})"
        )
        return tuple(items)


def _relative_includes(root: str | os.PathLike[str], patterns: Sequence[str]) -> list[str]:
    relative = []
    for pattern in patterns:
        rewritten = root_relative_pattern(pattern, root)
        if rewritten is None:
            raise InvalidPatternError(pattern, "include points outside the project root")
        relative.append(rewritten)
    return relative


def _relative_excludes(root: str | os.PathLike[str], patterns: Sequence[str]) -> list[str]:
    relative = []
    for pattern in patterns:
        rewritten = root_relative_pattern(pattern, root)
        if rewritten is None:
            logger.debug(f"Ignoring exclude outside {root}: {pattern}")
            continue
        relative.append(rewritten)
    return relative
