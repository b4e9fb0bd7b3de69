"""Glob matching over project directory trees.

Patterns follow MSBuild item-spec conventions:
- ``**`` as a whole path segment matches zero or more segments
- ``*`` matches any run of characters inside one segment
- ``?`` matches a single character inside one segment
- a trailing separator means "everything below" (``bin/`` == ``bin/**``)

Both ``/`` and ``\\`` are accepted as separators. Matching is
case-insensitive on every platform so a project evaluates the same way on
Windows, Linux and macOS.

The matcher never touches the filesystem directly; it walks a ``FileTree``
so the same code runs against disk or an in-memory tree.
"""

from __future__ import annotations

import logging
import os
import posixpath
import re
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path, PurePosixPath
from typing import Protocol

from .errors import InvalidPatternError

logger = logging.getLogger(__name__)

# Characters MSBuild rejects in file specs
_ILLEGAL_CHARS = frozenset('<>|"\0')
_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:")


class FileTree(Protocol):
    """Read-only view of a directory tree."""

    def is_dir(self, root: str | os.PathLike[str]) -> bool:
        """Whether root exists and is a directory."""
        ...

    def iter_files(self, root: str | os.PathLike[str]) -> Iterator[str]:
        """Yield root-relative, ``/``-separated file paths in sorted walk order."""
        ...


class DiskFileTree:
    """FileTree backed by the live filesystem.

    Directory symlinks are not followed. Entries that disappear while the
    walk is in progress are skipped, and so are directories that cannot be
    read.
    """

    def is_dir(self, root: str | os.PathLike[str]) -> bool:
        return Path(root).is_dir()

    def iter_files(self, root: str | os.PathLike[str]) -> Iterator[str]:
        yield from self._walk(Path(root), "")

    def _walk(self, directory: Path, prefix: str) -> Iterator[str]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except (FileNotFoundError, NotADirectoryError):
            logger.debug(f"Directory vanished during walk: {directory}")
            return
        except OSError as e:
            logger.warning(f"Skipping unreadable directory {directory}: {e}")
            return

        for entry in entries:
            relative = f"{prefix}{entry.name}"
            try:
                if entry.is_dir(follow_symlinks=False):
                    yield from self._walk(Path(entry.path), relative + "/")
                elif entry.is_file():
                    yield relative
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Skipping unreadable entry {entry.path}: {e}")


class MemoryFileTree:
    """FileTree over a fixed set of paths, for tests and dry runs.

    Args:
        files: Absolute POSIX-style file paths (e.g. ``/proj/Code/Class1.cs``)
        directories: Extra directories that exist but may hold no files
    """

    def __init__(self, files: Iterable[str], directories: Iterable[str] = ()):
        self._files = sorted({str(PurePosixPath(f)) for f in files})
        self._directories = {str(PurePosixPath(d)) for d in directories}

    def is_dir(self, root: str | os.PathLike[str]) -> bool:
        root_str = str(PurePosixPath(os.fspath(root)))
        if root_str in self._directories:
            return True
        prefix = root_str.rstrip("/") + "/"
        return any(f.startswith(prefix) for f in self._files)

    def iter_files(self, root: str | os.PathLike[str]) -> Iterator[str]:
        prefix = str(PurePosixPath(os.fspath(root))).rstrip("/") + "/"
        relative = [f[len(prefix):] for f in self._files if f.startswith(prefix)]
        # Same order as a recursive walk over name-sorted directory entries
        yield from sorted(relative, key=lambda p: p.split("/"))


def normalize_pattern(pattern: str) -> str:
    """Normalize separators and shorthand in a pattern.

    Raises:
        InvalidPatternError: If the pattern cannot be used as a root-relative glob
    """
    if pattern is None or not pattern.strip():
        raise InvalidPatternError(str(pattern), "pattern is empty")

    if any(ch in _ILLEGAL_CHARS for ch in pattern):
        raise InvalidPatternError(pattern, "pattern contains illegal characters")

    normalized = pattern.strip().replace("\\", "/")
    if normalized.startswith("/") or _DRIVE_PATTERN.match(normalized):
        raise InvalidPatternError(pattern, "pattern must be relative to the project root")

    while normalized.startswith("./"):
        normalized = normalized[2:]
    if normalized.endswith("/"):
        normalized += "**"
    return normalized


def root_relative_pattern(pattern: str, root: str | os.PathLike[str]) -> str | None:
    """Rewrite a pattern that spells out the project root.

    ``$(MSBuildProjectDirectory)/Code/*.cs`` expands to an absolute pattern;
    under root it becomes ``Code/*.cs``. Patterns that point outside root
    (absolute elsewhere, or climbing out with ``..``) give None since they
    cannot select anything below it. Other patterns are returned unchanged
    for ``compile_pattern`` to validate.
    """
    if pattern is None or not pattern.strip():
        return pattern

    normalized = pattern.strip().replace("\\", "/")
    if normalized.startswith("/") or _DRIVE_PATTERN.match(normalized):
        root_prefix = os.fspath(root).replace("\\", "/").rstrip("/") + "/"
        if not normalized.lower().startswith(root_prefix.lower()):
            return None
        return normalized[len(root_prefix):] or "**"

    collapsed = posixpath.normpath(normalized)
    if collapsed == ".." or collapsed.startswith("../"):
        return None
    return pattern


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a glob into an anchored, case-insensitive regex.

    Args:
        pattern: Root-relative glob

    Returns:
        Regex to be used with ``fullmatch`` on ``/``-separated relative paths

    Raises:
        InvalidPatternError: If the pattern is malformed
    """
    normalized = normalize_pattern(pattern)
    segments = [s for s in normalized.split("/") if s and s != "."]
    if not segments:
        raise InvalidPatternError(pattern, "pattern has no path segments")

    parts: list[str] = []
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if segment == "..":
            raise InvalidPatternError(pattern, "'..' cannot be matched inside the project root")
        if segment == "**":
            parts.append(".*" if last else "(?:[^/]+/)*")
            continue
        if "**" in segment:
            raise InvalidPatternError(pattern, "'**' must be a whole path segment")

        translated = []
        for ch in segment:
            if ch == "*":
                translated.append("[^/]*")
            elif ch == "?":
                translated.append("[^/]")
            else:
                translated.append(re.escape(ch))
        parts.append("".join(translated))
        if not last:
            parts.append("/")

    return re.compile("".join(parts), re.IGNORECASE)


class PathMatcher:
    """Evaluates include/exclude globs against a FileTree.

    A file is selected iff it matches at least one include pattern and no
    exclude pattern; excludes win regardless of declaration order.
    """

    def __init__(self, tree: FileTree | None = None):
        self._tree: FileTree = tree or DiskFileTree()

    @property
    def tree(self) -> FileTree:
        """The tree this matcher walks."""
        return self._tree

    def match(
        self,
        root: str | os.PathLike[str],
        include_patterns: Sequence[str],
        exclude_patterns: Sequence[str] = (),
    ) -> tuple[str, ...]:
        """Select files under root.

        Args:
            root: Project directory; a missing directory selects nothing
            include_patterns: Root-relative include globs
            exclude_patterns: Root-relative exclude globs

        Returns:
            Root-relative ``/``-separated paths in discovery order, no duplicates

        Raises:
            InvalidPatternError: If any pattern is malformed
        """
        includes = [compile_pattern(p) for p in include_patterns]
        excludes = [compile_pattern(p) for p in exclude_patterns]

        if not includes:
            return ()
        if not self._tree.is_dir(root):
            logger.debug(f"Root does not exist, nothing to match: {root}")
            return ()

        selected: list[str] = []
        seen: set[str] = set()
        for relative in self._tree.iter_files(root):
            if relative in seen:
                continue
            if not any(p.fullmatch(relative) for p in includes):
                continue
            if any(p.fullmatch(relative) for p in excludes):
                logger.debug(f"Excluded: {relative}")
                continue
            seen.add(relative)
            selected.append(relative)

        return tuple(selected)
