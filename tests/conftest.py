"""Pytest fixtures for msbuild-eval-mcp tests."""

import os
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

LIBRARY_PROJECT = """<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <TargetFramework>netstandard1.5</TargetFramework>
  </PropertyGroup>
</Project>
"""


def write_file(path: Path, contents: str) -> Path:
    """Write a file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(contents, encoding="utf-8")
    return path


@pytest.fixture
def library_project(tmp_path):
    """A TestLibrary project directory with one hand-written source file."""
    project_dir = tmp_path / "TestLibrary"
    write_file(project_dir / "TestLibrary.csproj", LIBRARY_PROJECT)
    write_file(
        project_dir / "Helper.cs",
        "namespace TestLibrary { public static class Helper { } }",
    )
    return project_dir


@pytest.fixture
def library_with_excluded_folders(library_project):
    """TestLibrary plus sources under bin/, obj/, packages/ and Code/."""
    for folder in ("bin", "obj", "packages"):
        write_file(library_project / folder / "source.cs", f"public class ClassFrom_{folder} {{}}")
    write_file(library_project / "Code" / "Class1.cs", "public class Class1 {}")
    return library_project
