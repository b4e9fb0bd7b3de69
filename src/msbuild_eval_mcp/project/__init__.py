"""Project file reading and build configuration."""

from .configuration import ambient_symbols, split_define_constants
from .project_file import (
    ProjectFile,
    PropertyTable,
    evaluate_condition,
    find_project_file,
)

__all__ = [
    "ProjectFile",
    "PropertyTable",
    "evaluate_condition",
    "find_project_file",
    "ambient_symbols",
    "split_define_constants",
]
