"""Implicit compilation symbols derived from the target framework."""

from __future__ import annotations

import logging
import re

from .framework import NET5_MAJOR, FrameworkFamily, ResolvedMoniker

logger = logging.getLogger(__name__)

_NON_ALPHANUMERIC = re.compile(r"[^0-9A-Za-z]")


def symbol_for(moniker: ResolvedMoniker) -> str | None:
    """Build the framework token for a moniker, e.g. ``NETSTANDARD1_5``.

    Returns None when the moniker yields no usable symbol (portable profiles,
    identifiers with no letters).
    """
    if moniker.family == FrameworkFamily.NETPORTABLE:
        return None

    if moniker.family == FrameworkFamily.NETFRAMEWORK:
        # net40, net461: digits run together
        token = "NET" + "".join(str(v) for v in moniker.version)
    elif moniker.family == FrameworkFamily.NETCOREAPP and moniker.version[0] >= NET5_MAJOR:
        token = "NET" + "_".join(str(v) for v in moniker.version)
    else:
        prefix = _NON_ALPHANUMERIC.sub("", moniker.identifier).upper()
        if not prefix:
            return None
        token = prefix + "_".join(str(v) for v in moniker.version)

    if token[0].isdigit():
        return None
    return token


class ImplicitSymbolDeriver:
    """Maps resolved monikers to the framework subset of DefineConstants."""

    def derive_symbols(
        self,
        moniker: ResolvedMoniker,
        implicit_define: str | None = None,
        disabled: bool = False,
    ) -> frozenset[str]:
        """Derive the implicit symbols for a moniker.

        Args:
            moniker: Resolved target framework
            implicit_define: Project-supplied token replacing the derived one
            disabled: Suppress framework symbols entirely

        Returns:
            Framework symbols; ambient symbols are added by the caller
        """
        if disabled:
            return frozenset()
        if moniker.family == FrameworkFamily.NETPORTABLE:
            logger.debug(f"No implicit symbol for portable profile {moniker.profile}")
            return frozenset()

        token = implicit_define.strip() if implicit_define else symbol_for(moniker)
        if not token:
            logger.debug(f"No implicit symbol for {moniker.full_name}")
            return frozenset()
        return frozenset({token})
