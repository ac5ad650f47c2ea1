"""
versions.py — Dotted version strings used in mobile.toml and by the toolchains.

  VersionDouble  → "<major>[.minor]"                    (ios-version, macos-version)
  VersionTriple  → "<major>[.minor[.patch]]"            (bundle-version-short, SDK)
  VersionNumber  → triple plus any extra components     (bundle-version)
"""

from dataclasses import dataclass, field

from mobkit.report import MobkitError


class VersionError(MobkitError):
    pass


def _component(text: str, part: str, name: str) -> int:
    if not (part.isascii() and part.isdigit()):
        raise VersionError(
            f"Failed to parse {name} version from \"{text}\"",
            f"\"{part}\" isn't a non-negative integer",
        )
    return int(part)


@dataclass(frozen=True, order=True)
class VersionDouble:
    major: int
    minor: int = 0

    @classmethod
    def parse(cls, text: str) -> "VersionDouble":
        parts = text.strip().split(".")
        if len(parts) > 2:
            raise VersionError(
                f"\"{text}\" isn't a valid version string",
                "Expected the format `<major>[.minor]`",
            )
        major = _component(text, parts[0], "major")
        minor = _component(text, parts[1], "minor") if len(parts) == 2 else 0
        return cls(major, minor)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


@dataclass(frozen=True, order=True)
class VersionTriple:
    major: int
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> "VersionTriple":
        parts = text.strip().split(".")
        if len(parts) > 3:
            raise VersionError(
                f"\"{text}\" isn't a valid version string",
                "Expected the format `<major>[.minor[.patch]]`",
            )
        names = ("major", "minor", "patch")
        return cls(*(_component(text, part, name) for part, name in zip(parts, names)))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True, order=True)
class VersionNumber:
    triple: VersionTriple
    extra: tuple[int, ...] = field(default=())

    @classmethod
    def parse(cls, text: str) -> "VersionNumber":
        parts = text.strip().split(".")
        triple = VersionTriple.parse(".".join(parts[:3]))
        extra = tuple(_component(text, part, "extra") for part in parts[3:])
        return cls(triple, extra)

    def push_extra(self, number: int) -> "VersionNumber":
        """Return a copy with `number` appended, e.g. a CI build number."""
        return VersionNumber(self.triple, self.extra + (number,))

    def __str__(self) -> str:
        return str(self.triple) + "".join(f".{n}" for n in self.extra)
