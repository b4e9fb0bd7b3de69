"""SDK-style project file reading.

Reads the parts of a .csproj/.vbproj/.fsproj that drive evaluation:
- PropertyGroup properties (TargetFramework, DisableDefaultRemoves, ...)
- Compile items (Include / Exclude / Remove)

Only the static subset of MSBuild is understood: ``$(Property)``
expansion and ``'a' == 'b'`` / ``'a' != 'b'`` conditions joined with
``and`` / ``or``. Anything else in a Condition is treated as false.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from ..evaluation.errors import ProjectFileError
from ..evaluation.items import DEFAULT_COMPILE_INCLUDES, ExclusionPolicy, default_excludes
from ..evaluation.session import EvaluationRequest
from .configuration import DEFAULT_CONFIGURATION, ambient_symbols

logger = logging.getLogger(__name__)

PROJECT_SUFFIXES: Final[tuple[str, ...]] = tuple(DEFAULT_COMPILE_INCLUDES)

_PROPERTY_REFERENCE = re.compile(r"\$\(\s*([A-Za-z_][\w.-]*)\s*\)")
_COMPARISON = re.compile(r"^'(?P<lhs>[^']*)'\s*(?P<op>==|!=)\s*'(?P<rhs>[^']*)'$")
_OR = re.compile(r"\s+or\s+", re.IGNORECASE)
_AND = re.compile(r"\s+and\s+", re.IGNORECASE)


def _local_name(tag: str) -> str:
    """Strip the XML namespace from a tag."""
    return tag.rsplit("}", 1)[-1]


def is_true(value: str | None) -> bool:
    """MSBuild boolean property test."""
    return (value or "").strip().lower() == "true"


def is_false(value: str | None) -> bool:
    return (value or "").strip().lower() == "false"


def split_item_spec(value: str | None) -> list[str]:
    """Split a ``;``-separated item spec, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(";") if part.strip()]


def find_project_file(directory: str | Path) -> Path:
    """Find the single project file in a directory.

    Raises:
        ProjectFileError: If there is no project file or more than one
    """
    directory = Path(directory)
    candidates = sorted(
        p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in PROJECT_SUFFIXES
    ) if directory.is_dir() else []

    if not candidates:
        raise ProjectFileError(f"No project file found in {directory}")
    if len(candidates) > 1:
        names = ", ".join(p.name for p in candidates)
        raise ProjectFileError(f"Multiple project files in {directory}: {names}")
    return candidates[0]


class PropertyTable:
    """Case-insensitive MSBuild property table; global properties are read-only."""

    def __init__(self, global_properties: Mapping[str, str] | None = None):
        self._values: dict[str, str] = {}
        self._global: set[str] = set()
        for name, value in (global_properties or {}).items():
            self._values[name.lower()] = str(value)
            self._global.add(name.lower())

    def get(self, name: str, default: str = "") -> str:
        return self._values.get(name.lower(), default)

    def set(self, name: str, value: str) -> None:
        """Set a property unless a global property pins it."""
        if name.lower() in self._global:
            logger.debug(f"Global property {name} overrides project value '{value}'")
            return
        self._values[name.lower()] = value

    def set_default(self, name: str, value: str) -> None:
        if not self.get(name):
            self.set(name, value)

    def expand(self, text: str | None) -> str:
        """Expand ``$(Name)`` references; unknown names expand to ''."""
        if not text:
            return ""
        return _PROPERTY_REFERENCE.sub(lambda m: self.get(m.group(1)), text)

    def as_dict(self) -> dict[str, str]:
        return dict(self._values)


def _split_unquoted(text: str, separator: re.Pattern[str]) -> list[str]:
    """Split on separator matches that fall outside '...' literals."""
    parts = []
    start = 0
    for match in separator.finditer(text):
        if text.count("'", 0, match.start()) % 2:
            continue
        parts.append(text[start:match.start()])
        start = match.end()
    parts.append(text[start:])
    return parts


def evaluate_condition(condition: str | None, properties: PropertyTable) -> bool:
    """Evaluate the supported subset of MSBuild conditions.

    Args:
        condition: Condition attribute text (None/empty means true)
        properties: Properties for ``$(Name)`` expansion

    Returns:
        Condition result; unsupported syntax evaluates to False
    """
    if condition is None or not condition.strip():
        return True

    for alternative in _split_unquoted(condition.strip(), _OR):
        terms = _split_unquoted(alternative, _AND)
        if all(_evaluate_comparison(term, properties, condition) for term in terms):
            return True
    return False


def _evaluate_comparison(term: str, properties: PropertyTable, condition: str) -> bool:
    term = term.strip()
    while term.startswith("(") and term.endswith(")"):
        term = term[1:-1].strip()

    match = _COMPARISON.match(properties.expand(term))
    if not match:
        logger.warning(f"Unsupported condition treated as false: {condition}")
        return False

    equal = match.group("lhs").strip().lower() == match.group("rhs").strip().lower()
    return equal if match.group("op") == "==" else not equal


@dataclass
class CompileItems:
    """Explicit Compile item globs from a project file."""

    includes: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)


class ProjectFile:
    """A loaded MSBuild project file."""

    def __init__(self, path: Path, root: ET.Element):
        self.path = path
        self._root = root

    @classmethod
    def load(cls, path: str | Path) -> ProjectFile:
        """Load a project file from disk.

        Raises:
            ProjectFileError: If the file is missing or not well-formed XML
        """
        path = Path(path)
        if path.is_dir():
            path = find_project_file(path)
        if not path.is_file():
            raise ProjectFileError(f"Project file not found: {path}")

        try:
            root = ET.parse(path).getroot()
        except ET.ParseError as e:
            raise ProjectFileError(f"Failed to parse {path}: {e}") from e

        if _local_name(root.tag) != "Project":
            raise ProjectFileError(f"Not an MSBuild project: {path}")
        logger.debug(f"Loaded project file {path}")
        return cls(path, root)

    @property
    def project_root(self) -> Path:
        """Directory the project globs from."""
        return self.path.parent

    def _initial_properties(self, global_properties: Mapping[str, str] | None) -> PropertyTable:
        properties = PropertyTable(global_properties)
        properties.set_default("MSBuildProjectDirectory", str(self.project_root))
        properties.set_default("MSBuildProjectFile", self.path.name)
        properties.set_default("MSBuildProjectName", self.path.stem)
        properties.set_default("Configuration", DEFAULT_CONFIGURATION)
        properties.set_default("Platform", "AnyCPU")
        return properties

    def evaluate_properties(self, global_properties: Mapping[str, str] | None = None) -> PropertyTable:
        """Evaluate PropertyGroups in document order.

        Args:
            global_properties: Caller overrides (``/p:Name=Value``); they win
                over any value in the file

        Returns:
            Evaluated property table
        """
        properties = self._initial_properties(global_properties)

        for group in self._root:
            if _local_name(group.tag) != "PropertyGroup":
                continue
            if not evaluate_condition(group.get("Condition"), properties):
                continue
            for prop in group:
                if not isinstance(prop.tag, str):
                    continue
                if not evaluate_condition(prop.get("Condition"), properties):
                    continue
                properties.set(_local_name(prop.tag), properties.expand((prop.text or "").strip()))

        return properties

    def compile_items(self, properties: PropertyTable) -> CompileItems:
        """Collect explicit Compile item globs.

        An item's Exclude attribute is applied to all Compile items.
        """
        items = CompileItems()
        for group in self._root:
            if _local_name(group.tag) != "ItemGroup":
                continue
            if not evaluate_condition(group.get("Condition"), properties):
                continue
            for item in group:
                if not isinstance(item.tag, str) or _local_name(item.tag) != "Compile":
                    continue
                if not evaluate_condition(item.get("Condition"), properties):
                    continue
                items.includes.extend(split_item_spec(properties.expand(item.get("Include"))))
                items.excludes.extend(split_item_spec(properties.expand(item.get("Exclude"))))
                items.excludes.extend(split_item_spec(properties.expand(item.get("Remove"))))
        return items

    def framework_identity(self, properties: PropertyTable) -> str:
        """Pick the framework identity this evaluation targets.

        TargetFrameworkIdentifier/Version(/Profile) win over TargetFramework,
        which wins over a single-entry TargetFrameworks.

        Raises:
            ProjectFileError: If no framework, or several, are declared
        """
        identifier = properties.get("TargetFrameworkIdentifier").strip()
        version = properties.get("TargetFrameworkVersion").strip()
        if identifier and version:
            identity = f"{identifier},Version=v{version.lstrip('vV')}"
            profile = properties.get("TargetFrameworkProfile").strip()
            if profile:
                identity += f",Profile={profile}"
            return identity

        target_framework = properties.get("TargetFramework").strip()
        if target_framework:
            return target_framework

        frameworks = split_item_spec(properties.get("TargetFrameworks"))
        if len(frameworks) == 1:
            return frameworks[0]
        if frameworks:
            raise ProjectFileError(
                f"{self.path.name} targets multiple frameworks ({';'.join(frameworks)}); "
                "choose one with target_framework"
            )
        raise ProjectFileError(f"{self.path.name} declares no target framework")

    def to_request(
        self,
        target_framework: str | None = None,
        global_properties: Mapping[str, str] | None = None,
    ) -> EvaluationRequest:
        """Build the evaluation request for this project.

        Args:
            target_framework: Framework to evaluate (required for multi-targeting)
            global_properties: Caller property overrides

        Returns:
            EvaluationRequest ready for EvaluationSession

        Raises:
            ProjectFileError: If the target framework cannot be determined
        """
        overrides = dict(global_properties or {})
        if target_framework:
            overrides["TargetFramework"] = target_framework

        properties = self.evaluate_properties(overrides)
        compile_items = self.compile_items(properties)

        excludes = default_excludes(
            properties.get("BaseOutputPath") or "bin",
            properties.get("BaseIntermediateOutputPath") or "obj",
        ) + tuple(split_item_spec(properties.get("DefaultItemExcludes")))
        policy = ExclusionPolicy(
            default_excludes=excludes,
            overridden=is_true(properties.get("DisableDefaultRemoves")),
        )

        default_includes = DEFAULT_COMPILE_INCLUDES.get(self.path.suffix.lower(), ())
        if is_false(properties.get("EnableDefaultItems")) or is_false(
            properties.get("EnableDefaultCompileItems")
        ):
            default_includes = ()

        return EvaluationRequest(
            project_root=str(self.project_root),
            framework_identity=self.framework_identity(properties),
            exclusion_policy=policy,
            ambient_symbols=ambient_symbols(
                properties.get("Configuration"), properties.get("DefineConstants")
            ),
            includes=tuple(compile_items.includes),
            excludes=tuple(compile_items.excludes),
            default_includes=default_includes,
            implicit_define=properties.get("ImplicitFrameworkDefine").strip() or None,
            disable_implicit_defines=is_true(properties.get("DisableImplicitFrameworkDefines")),
        )
