"""
ndk.py — Android NDK location, version, and toolchain paths.
"""

import logging
import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from mobkit import shell
from mobkit.report import MobkitError

logger = logging.getLogger(__name__)

_NEEDED_RE = re.compile(r"\(NEEDED\)\s+Shared library: \[(.+)\]")


class NdkError(MobkitError):
    pass


class MissingToolError(MobkitError):
    def __init__(self, name: str, tried: Path):
        super().__init__(f"Missing tool `{name}`", f"tried at {tried}")
        self.name = name
        self.tried = tried


@dataclass(frozen=True, order=True)
class NdkVersion:
    major: int
    minor: int = 0

    def __str__(self) -> str:
        # 21.1 is "r21b", 21.0 is plain "r21"
        suffix = chr(ord("a") + self.minor) if 0 < self.minor < 26 else ""
        return f"r{self.major}{suffix}"


MIN_NDK_VERSION = NdkVersion(19, 0)


def read_properties(path: Path) -> dict[str, str]:
    """Parse the key=value subset of Java .properties used by SDK packages."""
    props = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line[0] in "#!":
            continue
        key, sep, value = line.partition("=")
        if not sep:
            key, sep, value = line.partition(":")
        if sep:
            props[key.strip()] = value.strip()
    return props


def host_tag(platform: str = sys.platform) -> str:
    if platform == "darwin":
        return "darwin-x86_64"
    if platform.startswith("win"):
        return "windows-x86_64"
    return "linux-x86_64"


def _check_file(path: Path, name: str) -> Path:
    if not path.is_file():
        raise MissingToolError(name, path)
    return path


def _check_dir(path: Path, name: str) -> Path:
    if not path.is_dir():
        raise MissingToolError(name, path)
    return path


@dataclass(frozen=True)
class NdkEnv:
    home: Path

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "NdkEnv":
        environ = os.environ if environ is None else environ
        ndk_home = environ.get("NDK_HOME")
        if not ndk_home:
            raise NdkError(
                "Have you installed the NDK?",
                "The `NDK_HOME` environment variable isn't set, and is required",
            )
        if not Path(ndk_home).is_dir():
            raise NdkError(
                "Have you installed the NDK?",
                f"`NDK_HOME` is set to {ndk_home!r}, which isn't a directory",
            )
        env = cls(Path(ndk_home))
        version = env.version()
        if version < MIN_NDK_VERSION:
            raise NdkError(
                f"NDK {version} is too old",
                f"You need at least NDK {MIN_NDK_VERSION}; update it through Android Studio's SDK manager",
            )
        return env

    def version(self) -> NdkVersion:
        path = self.home / "source.properties"
        try:
            props = read_properties(path)
        except OSError as exc:
            raise NdkError(f"Failed to read NDK version from {path}", str(exc)) from exc
        revision = props.get("Pkg.Revision")
        if revision is None:
            raise NdkError(f"No `Pkg.Revision` in {path}")
        # Only the last component may be non-numeric, and it isn't used.
        components = revision.split(".")[:2]
        if len(components) < 2:
            raise NdkError(f"NDK version {revision!r} in {path} has too few components")
        for component in components:
            if not (component.isascii() and component.isdigit()):
                raise NdkError(f"NDK version component {component!r} in {path} isn't numeric")
        return NdkVersion(int(components[0]), int(components[1]))

    # ── Toolchain paths ───────────────────────────────────────────────────

    def prebuilt_dir(self) -> Path:
        return _check_dir(self.home / "toolchains" / "llvm" / "prebuilt" / host_tag(), "prebuilt toolchain")

    def tool_dir(self) -> Path:
        return _check_dir(self.prebuilt_dir() / "bin", "tools")

    def compiler_path(self, triple: str, min_api: int, cxx: bool = False) -> Path:
        name = "clang++" if cxx else "clang"
        return _check_file(self.tool_dir() / f"{triple}{min_api}-{name}", name)

    def binutil_path(self, binutil: str, triple: str) -> Path:
        """`<triple>-<binutil>`, or the LLVM equivalent on NDKs without GNU binutils."""
        tool_dir = self.tool_dir()
        gnu = tool_dir / f"{triple}-{binutil}"
        if gnu.is_file():
            return gnu
        return _check_file(tool_dir / f"llvm-{binutil}", binutil)

    def libcxx_shared_path(self, abi: str) -> Path:
        lib = "libc++_shared.so"
        return _check_file(
            self.home / "sources" / "cxx-stl" / "llvm-libc++" / "libs" / abi / lib, lib
        )

    def readelf_path(self, triple: str) -> Path:
        return self.binutil_path("readelf", triple)

    def ndk_stack_path(self) -> Path:
        return _check_file(self.home / "ndk-stack", "ndk-stack")

    async def required_libs(self, elf: Path, triple: str) -> set[str]:
        readelf = self.readelf_path(triple)
        rc, out, err = await shell.run([str(readelf), "-d", str(elf)])
        if rc != 0:
            raise NdkError(f"Failed to inspect {elf}", (out + err).strip())
        libs = set(_NEEDED_RE.findall(out))
        for lib in sorted(libs):
            logger.info("%s requires shared lib %s", elf, lib)
        return libs
