"""Target framework moniker resolution.

Accepts both spellings a project can use:
- short form: ``netstandard1.5``, ``net461``, ``net8.0-windows``, ``portable-net45+win8``
- long form: ``.NETFramework,Version=v4.0,Profile=Client``

Resolution is total: every string resolves to some ResolvedMoniker. Known
identifiers are canonicalized, unknown ones are kept as written so newer
frameworks still evaluate.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final

logger = logging.getLogger(__name__)


class FrameworkFamily(str, Enum):
    """Known target framework identifiers."""

    NETFRAMEWORK = ".NETFramework"
    NETSTANDARD = ".NETStandard"
    NETCOREAPP = ".NETCoreApp"
    NETCORE = ".NETCore"
    NETPORTABLE = ".NETPortable"
    NETMICROFRAMEWORK = ".NETMicroFramework"
    SILVERLIGHT = "Silverlight"
    WINDOWSPHONE = "WindowsPhone"
    WINDOWSPHONEAPP = "WindowsPhoneApp"
    WINDOWS = "Windows"
    UAP = "UAP"
    MONOANDROID = "MonoAndroid"
    MONOTOUCH = "MonoTouch"
    MONOMAC = "MonoMac"
    XAMARIN_IOS = "Xamarin.iOS"
    XAMARIN_MAC = "Xamarin.Mac"
    XAMARIN_TVOS = "Xamarin.TVOS"
    XAMARIN_WATCHOS = "Xamarin.WatchOS"
    TIZEN = "Tizen"
    DNX = "DNX"
    DNXCORE = "DNXCore"


# Short folder names (NuGet conventions)
SHORT_NAMES: Final[dict[str, FrameworkFamily]] = {
    "net": FrameworkFamily.NETFRAMEWORK,
    "netstandard": FrameworkFamily.NETSTANDARD,
    "netcoreapp": FrameworkFamily.NETCOREAPP,
    "netcore": FrameworkFamily.NETCORE,
    "netmf": FrameworkFamily.NETMICROFRAMEWORK,
    "sl": FrameworkFamily.SILVERLIGHT,
    "wp": FrameworkFamily.WINDOWSPHONE,
    "wpa": FrameworkFamily.WINDOWSPHONEAPP,
    "win": FrameworkFamily.WINDOWS,
    "uap": FrameworkFamily.UAP,
    "monoandroid": FrameworkFamily.MONOANDROID,
    "monotouch": FrameworkFamily.MONOTOUCH,
    "monomac": FrameworkFamily.MONOMAC,
    "xamarinios": FrameworkFamily.XAMARIN_IOS,
    "xamarinmac": FrameworkFamily.XAMARIN_MAC,
    "xamarintvos": FrameworkFamily.XAMARIN_TVOS,
    "xamarinwatchos": FrameworkFamily.XAMARIN_WATCHOS,
    "tizen": FrameworkFamily.TIZEN,
    "dnx": FrameworkFamily.DNX,
    "dnxcore": FrameworkFamily.DNXCORE,
}

_SHORT_NAME_BY_FAMILY: Final[dict[FrameworkFamily, str]] = {
    family: short for short, family in SHORT_NAMES.items()
}

_FAMILY_BY_IDENTIFIER: Final[dict[str, FrameworkFamily]] = {
    family.value.lower(): family for family in FrameworkFamily
}

# First .NET version spelled "netX.Y" that targets .NETCoreApp
NET5_MAJOR: Final[int] = 5

# System.Version components are Int32
MAX_COMPONENT_DIGITS: Final[int] = 10

_SHORT_FORM_PATTERN = re.compile(r"^(?P<prefix>[a-z][a-z.+]*?)(?P<version>\d[\d.]*)?$", re.IGNORECASE)
_LEADING_VERSION_PATTERN = re.compile(r"^\d+(?:\.\d+)*")


def normalize_version(components: tuple[int, ...]) -> tuple[int, ...]:
    """Pad to two components and drop trailing zeros beyond the second."""
    parts = list(components) or [0]
    while len(parts) < 2:
        parts.append(0)
    while len(parts) > 2 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


def parse_version(text: str | None, per_digit: bool = False) -> tuple[int, ...]:
    """Best-effort version parse.

    Args:
        text: Version text, optionally prefixed with ``v``
        per_digit: Treat an undotted number as one component per digit
            (short-form convention: ``461`` is 4.6.1)

    Returns:
        Normalized version; ``(0, 0)`` when nothing numeric can be read or a
        component does not fit a version number
    """
    if not text:
        return (0, 0)
    cleaned = text.strip()
    if cleaned[:1] in ("v", "V"):
        cleaned = cleaned[1:]

    if per_digit and cleaned.isdigit():
        pieces = list(cleaned)
    else:
        match = _LEADING_VERSION_PATTERN.match(cleaned)
        if not match:
            return (0, 0)
        pieces = match.group(0).split(".")

    if any(len(piece) > MAX_COMPONENT_DIGITS for piece in pieces):
        logger.debug(f"Version component out of range: {cleaned[:40]}")
        return (0, 0)
    try:
        return normalize_version(tuple(int(piece) for piece in pieces))
    except ValueError:
        # isdigit() accepts characters int() does not (superscripts)
        return (0, 0)


@dataclass(frozen=True)
class ResolvedMoniker:
    """Canonical identifier/version/profile of a target framework."""

    identifier: str
    version: tuple[int, ...] = (0, 0)
    profile: str | None = None
    platform: str | None = None
    family: FrameworkFamily | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "version", normalize_version(tuple(self.version)))

    @property
    def is_known(self) -> bool:
        """Whether the identifier matched a known framework family."""
        return self.family is not None

    @property
    def version_string(self) -> str:
        """Dotted version, e.g. ``4.6.1``."""
        return ".".join(str(v) for v in self.version)

    @property
    def full_name(self) -> str:
        """Long-form moniker, e.g. ``.NETFramework,Version=v4.0,Profile=Client``."""
        name = f"{self.identifier},Version=v{self.version_string}"
        if self.profile:
            name += f",Profile={self.profile}"
        return name

    @property
    def short_name(self) -> str:
        """NuGet-style short folder name, e.g. ``netstandard1.5``."""
        if self.family == FrameworkFamily.NETPORTABLE:
            return f"portable-{self.profile}" if self.profile else "portable"

        if self.family == FrameworkFamily.NETCOREAPP and self.version[0] >= NET5_MAJOR:
            name = f"net{self.version_string}"
        elif self.family == FrameworkFamily.NETFRAMEWORK and all(v < 10 for v in self.version):
            name = "net" + "".join(str(v) for v in self.version)
        elif self.family is not None:
            name = f"{_SHORT_NAME_BY_FAMILY[self.family]}{self.version_string}"
        else:
            name = f"{self.identifier.lower()}{self.version_string}"

        if self.platform:
            name += f"-{self.platform}"
        return name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "identifier": self.identifier,
            "version": self.version_string,
            "known": self.is_known,
            "shortName": self.short_name,
            "fullName": self.full_name,
        }
        if self.profile:
            result["profile"] = self.profile
        if self.platform:
            result["platform"] = self.platform
        return result


class FrameworkMonikerResolver:
    """Resolves framework identity strings into ResolvedMoniker values."""

    def resolve(self, identity: str) -> ResolvedMoniker:
        """Resolve a short- or long-form framework identity.

        Never raises: malformed input degrades to a best-effort moniker.

        Args:
            identity: Framework identity as declared in the project

        Returns:
            ResolvedMoniker for the identity
        """
        text = (identity or "").strip()
        if "," in text:
            moniker = self._resolve_long_form(text)
        else:
            moniker = self._resolve_short_form(text)

        if not moniker.is_known:
            logger.debug(f"Unknown framework identifier '{moniker.identifier}' from '{identity}'")
        return moniker

    def _resolve_long_form(self, text: str) -> ResolvedMoniker:
        segments = text.split(",")
        identifier = segments[0].strip()
        version: tuple[int, ...] = (0, 0)
        profile: str | None = None

        for segment in segments[1:]:
            key, _, value = segment.partition("=")
            key = key.strip().lower()
            if key == "version":
                version = parse_version(value)
            elif key == "profile":
                profile = value.strip() or None

        family = _FAMILY_BY_IDENTIFIER.get(identifier.lower())
        if family is not None:
            identifier = family.value
        return ResolvedMoniker(
            identifier=identifier,
            version=version,
            profile=profile,
            family=family,
        )

    def _resolve_short_form(self, text: str) -> ResolvedMoniker:
        if text.lower().startswith("portable-") or text.lower() == "portable":
            profile = text[len("portable-"):] or None
            return ResolvedMoniker(
                identifier=FrameworkFamily.NETPORTABLE.value,
                profile=profile,
                family=FrameworkFamily.NETPORTABLE,
            )

        name, _, platform = text.partition("-")
        match = _SHORT_FORM_PATTERN.match(name)
        if not match:
            return ResolvedMoniker(identifier=name, platform=platform or None)

        prefix = match.group("prefix")
        version_text = match.group("version")
        dotted = bool(version_text) and "." in version_text
        version = parse_version(version_text, per_digit=not dotted)

        family = SHORT_NAMES.get(prefix.lower().replace(".", ""))
        if family == FrameworkFamily.NETFRAMEWORK and dotted and version[0] >= NET5_MAJOR:
            family = FrameworkFamily.NETCOREAPP

        return ResolvedMoniker(
            identifier=family.value if family else prefix,
            version=version,
            platform=platform or None,
            family=family,
        )
