"""Evaluation session - stateless entry point for project evaluation.

Flow:
request → resolve moniker → derive symbols → evaluate Compile items → result

A session keeps only immutable collaborators, so evaluating (or building)
the same request twice over an unchanged tree gives the same answer.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from .framework import FrameworkMonikerResolver, ResolvedMoniker
from .globbing import FileTree, PathMatcher
from .items import DEFAULT_COMPILE_INCLUDES, ExclusionPolicy, ItemEvaluator
from .symbols import ImplicitSymbolDeriver

logger = logging.getLogger(__name__)

# Compile items the build generates into obj/ before compiling
GENERATED_ITEM_SUFFIXES: tuple[str, ...] = (".assemblyattributes.cs", ".assemblyattributes.vb")
GENERATED_ITEM_NAMES: tuple[str, ...] = ("AssemblyInfo.cs", "AssemblyInfo.vb")


def drop_generated_items(items: Iterable[str]) -> tuple[str, ...]:
    """Remove build-generated assembly attribute/info files from an item list."""
    kept = []
    for item in items:
        name = item.replace("\\", "/").rsplit("/", 1)[-1]
        if name.lower().endswith(GENERATED_ITEM_SUFFIXES):
            continue
        if name in GENERATED_ITEM_NAMES:
            continue
        kept.append(item)
    return tuple(kept)


def _unique(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(v for v in values if v))


@dataclass(frozen=True)
class EvaluationRequest:
    """Everything one evaluation reads."""

    project_root: str
    framework_identity: str
    exclusion_policy: ExclusionPolicy = field(default_factory=ExclusionPolicy)
    ambient_symbols: tuple[str, ...] = ()
    includes: tuple[str, ...] = ()
    excludes: tuple[str, ...] = ()
    default_includes: tuple[str, ...] = DEFAULT_COMPILE_INCLUDES[".csproj"]
    implicit_define: str | None = None
    disable_implicit_defines: bool = False


@dataclass(frozen=True)
class EvaluationResult:
    """Symbols and Compile items for one project evaluation."""

    project_root: str
    moniker: ResolvedMoniker
    symbols: tuple[str, ...]
    items: tuple[str, ...]

    @property
    def symbol_set(self) -> frozenset[str]:
        """Symbols as an order-insensitive set."""
        return frozenset(self.symbols)

    @property
    def define_constants(self) -> str:
        """Symbols rendered as an MSBuild DefineConstants value."""
        return ";".join(self.symbols)

    def item_paths(self) -> list[Path]:
        """Absolute paths of the Compile items."""
        root = Path(self.project_root)
        return [root.joinpath(*item.split("/")) for item in self.items]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "projectRoot": self.project_root,
            "framework": self.moniker.to_dict(),
            "defineConstants": list(self.symbols),
            "compileItems": list(self.items),
            "compileItemCount": len(self.items),
        }

    def to_summary(self) -> str:
        """Generate human-readable summary."""
        parts = [
            f"Project: {self.project_root}",
            f"  Framework: {self.moniker.full_name} ({self.moniker.short_name})",
            f"  DefineConstants: {self.define_constants or '(none)'}",
            f"  Compile items: {len(self.items)}",
        ]
        for item in self.items[:10]:
            parts.append(f"    {item}")
        if len(self.items) > 10:
            parts.append(f"    ... and {len(self.items) - 10} more")
        return "\n".join(parts)


class CompilerDriver(Protocol):
    """External collaborator that compiles an evaluated project."""

    def compile(self, project_root: Path, result: EvaluationResult) -> bool:
        """Compile result.items with result.symbols; return success."""
        ...


class EvaluationSession:
    """Evaluates projects into symbols and Compile items.

    Safe to share between threads: nothing is mutated after construction.
    """

    def __init__(self, tree: FileTree | None = None):
        self._resolver = FrameworkMonikerResolver()
        self._deriver = ImplicitSymbolDeriver()
        self._items = ItemEvaluator(PathMatcher(tree))

    def evaluate(
        self,
        project_root: str | os.PathLike[str],
        framework_identity: str,
        exclusion_policy: ExclusionPolicy | None = None,
        ambient_symbols: Sequence[str] = (),
        *,
        includes: Sequence[str] = (),
        excludes: Sequence[str] = (),
        default_includes: Sequence[str] = DEFAULT_COMPILE_INCLUDES[".csproj"],
        implicit_define: str | None = None,
        disable_implicit_defines: bool = False,
    ) -> EvaluationResult:
        """Evaluate a project directory for one target framework.

        Args:
            project_root: Project directory; missing directories yield no items
            framework_identity: Short- or long-form target framework
            exclusion_policy: Default excludes and override switch
            ambient_symbols: Configuration symbols such as DEBUG, TRACE
            includes: Explicit Compile Include globs
            excludes: Compile Remove globs
            default_includes: Conventional Compile globs
            implicit_define: Replacement for the derived framework symbol
            disable_implicit_defines: Suppress framework symbols

        Returns:
            EvaluationResult

        Raises:
            InvalidPatternError: If any glob is malformed
        """
        request = EvaluationRequest(
            project_root=os.fspath(project_root),
            framework_identity=framework_identity,
            exclusion_policy=exclusion_policy or ExclusionPolicy(),
            ambient_symbols=tuple(ambient_symbols),
            includes=tuple(includes),
            excludes=tuple(excludes),
            default_includes=tuple(default_includes),
            implicit_define=implicit_define,
            disable_implicit_defines=disable_implicit_defines,
        )
        return self.evaluate_request(request)

    def evaluate_request(self, request: EvaluationRequest) -> EvaluationResult:
        """Evaluate a prepared request."""
        moniker = self._resolver.resolve(request.framework_identity)
        framework_symbols = self._deriver.derive_symbols(
            moniker,
            implicit_define=request.implicit_define,
            disabled=request.disable_implicit_defines,
        )
        symbols = _unique([*request.ambient_symbols, *sorted(framework_symbols)])

        items = self._items.evaluate_compile_items(
            request.project_root,
            user_includes=request.includes,
            user_excludes=request.excludes,
            exclusion_policy=request.exclusion_policy,
            default_includes=request.default_includes,
        )

        logger.info(
            f"Evaluated {request.project_root} for {moniker.short_name}: "
            f"{len(symbols)} symbols, {len(items)} compile items"
        )
        return EvaluationResult(
            project_root=request.project_root,
            moniker=moniker,
            symbols=symbols,
            items=items,
        )

    def build(self, request: EvaluationRequest, driver: CompilerDriver) -> bool:
        """Evaluate and hand the result to a compiler driver.

        Args:
            request: Evaluation request
            driver: Compiler collaborator

        Returns:
            The driver's success flag
        """
        result = self.evaluate_request(request)
        success = driver.compile(Path(request.project_root), result)
        if success:
            logger.info(f"Build succeeded: {request.project_root}")
        else:
            logger.warning(f"Build failed: {request.project_root}")
        return success
