"""
env.py — Environment variables every toolchain child process needs.

Missing required variables fail early with a message naming them, instead
of surfacing as a confusing Gradle or cargo error later.
"""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from mobkit.ndk import NdkEnv, read_properties
from mobkit.report import MobkitError
from mobkit.versions import VersionError, VersionTriple

logger = logging.getLogger(__name__)


class EnvError(MobkitError):
    pass


def _require(environ: Mapping[str, str], name: str) -> str:
    value = environ.get(name)
    if not value:
        raise EnvError(f"The `{name}` environment variable isn't set, and is required")
    return value


@dataclass(frozen=True)
class Env:
    home: str
    path: str
    term: Optional[str] = None
    ssh_auth_sock: Optional[str] = None

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "Env":
        environ = os.environ if environ is None else environ
        return cls(
            home=_require(environ, "HOME"),
            path=_require(environ, "PATH"),
            term=environ.get("TERM"),
            ssh_auth_sock=environ.get("SSH_AUTH_SOCK"),
        )

    def prepend_to_path(self, path) -> "Env":
        return replace(self, path=f"{path}{os.pathsep}{self.path}")

    def explicit_env(self) -> dict[str, str]:
        env = {"HOME": self.home, "PATH": self.path}
        if self.term:
            env["TERM"] = self.term
        if self.ssh_auth_sock:
            env["SSH_AUTH_SOCK"] = self.ssh_auth_sock
        return env


# ── Android ──────────────────────────────────────────────────────────────────

_SDK_PROPERTIES = (
    Path("tools") / "source.properties",
    Path("cmdline-tools") / "latest" / "source.properties",
    Path("platform-tools") / "source.properties",
)


@dataclass(frozen=True)
class AndroidEnv:
    base: Env
    sdk_root: Path
    ndk: NdkEnv

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "AndroidEnv":
        environ = os.environ if environ is None else environ
        base = Env.from_environ(environ)
        sdk_root = environ.get("ANDROID_SDK_ROOT")
        if not sdk_root:
            sdk_root = environ.get("ANDROID_HOME")
            if sdk_root:
                logger.warning(
                    "`ANDROID_HOME` is deprecated; please set `ANDROID_SDK_ROOT` instead"
                )
        if not sdk_root:
            raise EnvError(
                "Have you installed the Android SDK?",
                "The `ANDROID_SDK_ROOT` environment variable isn't set, and is required",
            )
        if not Path(sdk_root).is_dir():
            raise EnvError(
                "Have you installed the Android SDK?",
                f"`ANDROID_SDK_ROOT` is set to {sdk_root!r}, which isn't a directory",
            )
        return cls(base=base, sdk_root=Path(sdk_root), ndk=NdkEnv.from_environ(environ))

    def sdk_version(self) -> VersionTriple:
        for rel in _SDK_PROPERTIES:
            path = self.sdk_root / rel
            if not path.is_file():
                continue
            revision = read_properties(path).get("Pkg.Revision")
            if revision is None:
                raise EnvError(f"No `Pkg.Revision` in {path}")
            try:
                return VersionTriple.parse(".".join(revision.split()[0].split(".")[:3]))
            except VersionError as err:
                raise EnvError(f"Failed to parse SDK version from {path}", err.msg) from err
        raise EnvError(
            "Failed to find the Android SDK version",
            "Tried:\n" + "\n".join(str(self.sdk_root / rel) for rel in _SDK_PROPERTIES),
        )

    @property
    def platform_tools_dir(self) -> Path:
        return self.sdk_root / "platform-tools"

    def explicit_env(self) -> dict[str, str]:
        env = self.base.prepend_to_path(self.platform_tools_dir).explicit_env()
        env["ANDROID_SDK_ROOT"] = str(self.sdk_root)
        env["NDK_HOME"] = str(self.ndk.home)
        return env
