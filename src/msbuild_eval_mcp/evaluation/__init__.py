"""Project evaluation engine.

Resolves target framework monikers into implicit compilation symbols and
globs the project tree into Compile items, honoring the default excludes
(bin/, obj/, packages/) and the switch that disables them.
"""

from .errors import EvaluationError, InvalidPatternError, ProjectFileError
from .framework import FrameworkFamily, FrameworkMonikerResolver, ResolvedMoniker
from .globbing import DiskFileTree, FileTree, MemoryFileTree, PathMatcher, root_relative_pattern
from .items import ExclusionPolicy, ItemEvaluator, default_excludes
from .session import (
    CompilerDriver,
    EvaluationRequest,
    EvaluationResult,
    EvaluationSession,
    drop_generated_items,
)
from .symbols import ImplicitSymbolDeriver

__all__ = [
    "EvaluationError",
    "InvalidPatternError",
    "ProjectFileError",
    "FrameworkFamily",
    "FrameworkMonikerResolver",
    "ResolvedMoniker",
    "ImplicitSymbolDeriver",
    "FileTree",
    "DiskFileTree",
    "MemoryFileTree",
    "PathMatcher",
    "root_relative_pattern",
    "ExclusionPolicy",
    "ItemEvaluator",
    "default_excludes",
    "EvaluationRequest",
    "EvaluationResult",
    "EvaluationSession",
    "CompilerDriver",
    "drop_generated_items",
]
