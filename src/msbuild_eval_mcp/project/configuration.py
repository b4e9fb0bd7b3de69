"""Configuration-driven (ambient) compilation symbols."""

from __future__ import annotations

import re
from typing import Final

DEFAULT_CONFIGURATION: Final[str] = "Debug"

CONFIGURATION_SYMBOLS: Final[dict[str, tuple[str, ...]]] = {
    "debug": ("DEBUG", "TRACE"),
    "release": ("RELEASE", "TRACE"),
}

_SEPARATORS = re.compile(r"[;,]")


def split_define_constants(value: str | None) -> list[str]:
    """Split a DefineConstants value on ``;`` or ``,``, dropping blanks."""
    if not value:
        return []
    return [token.strip() for token in _SEPARATORS.split(value) if token.strip()]


def ambient_symbols(
    configuration: str = DEFAULT_CONFIGURATION,
    define_constants: str | None = None,
) -> tuple[str, ...]:
    """Symbols supplied by the build configuration rather than the framework.

    Args:
        configuration: Build configuration name (Debug, Release, ...)
        define_constants: User DefineConstants from the project

    Returns:
        User constants followed by configuration symbols, without duplicates
    """
    config_symbols = CONFIGURATION_SYMBOLS.get((configuration or "").lower(), ("TRACE",))
    symbols = [*split_define_constants(define_constants), *config_symbols]
    return tuple(dict.fromkeys(symbols))
