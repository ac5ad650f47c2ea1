"""
targets.py — Rust targets for Android and Apple, and the cargo calls that build them.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence, TypeVar

from mobkit import config, rustc, shell
from mobkit.dot_cargo import DotCargoTarget
from mobkit.ndk import NdkEnv
from mobkit.prompt import list_display
from mobkit.report import MobkitError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TargetInvalid(MobkitError):
    pass


class CargoError(MobkitError):
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# ANDROID
# ═══════════════════════════════════════════════════════════════════════════════

ANDROID_RUSTFLAGS = ("-Clink-arg=-landroid", "-Clink-arg=-llog", "-Clink-arg=-lOpenSLES")


@dataclass(frozen=True)
class AndroidTarget:
    name: str
    triple: str
    clang_triple: str
    binutils_triple: str
    abi: str
    arch: str

    def dot_cargo_target(self, ndk: NdkEnv, min_sdk_version: int) -> DotCargoTarget:
        return DotCargoTarget(
            ar=str(ndk.binutil_path("ar", self.binutils_triple)),
            linker=str(ndk.compiler_path(self.clang_triple, min_sdk_version)),
            rustflags=list(ANDROID_RUSTFLAGS),
        )

    def cargo_env(self, ndk: NdkEnv, min_sdk_version: int) -> dict[str, str]:
        """Compiler env for build scripts (cc-rs) targeting this ABI."""
        key = self.triple.replace("-", "_")
        clang = str(ndk.compiler_path(self.clang_triple, min_sdk_version))
        return {
            f"CC_{key}": clang,
            f"CXX_{key}": str(ndk.compiler_path(self.clang_triple, min_sdk_version, cxx=True)),
            f"AR_{key}": str(ndk.binutil_path("ar", self.binutils_triple)),
            f"CARGO_TARGET_{key.upper()}_LINKER": clang,
        }


ANDROID_TARGETS: dict[str, AndroidTarget] = {
    target.name: target
    for target in (
        AndroidTarget("aarch64", "aarch64-linux-android", "aarch64-linux-android",
                      "aarch64-linux-android", "arm64-v8a", "arm64"),
        AndroidTarget("armv7", "armv7-linux-androideabi", "armv7a-linux-androideabi",
                      "arm-linux-androideabi", "armeabi-v7a", "arm"),
        AndroidTarget("i686", "i686-linux-android", "i686-linux-android",
                      "i686-linux-android", "x86", "x86"),
        AndroidTarget("x86_64", "x86_64-linux-android", "x86_64-linux-android",
                      "x86_64-linux-android", "x86_64", "x86_64"),
    )
}
DEFAULT_ANDROID_TARGET = "aarch64"


def android_target_for_abi(abi: str) -> Optional[AndroidTarget]:
    return next((t for t in ANDROID_TARGETS.values() if t.abi == abi), None)


def android_target_for_arch(arch: str) -> Optional[AndroidTarget]:
    return next((t for t in ANDROID_TARGETS.values() if t.arch == arch), None)


# ═══════════════════════════════════════════════════════════════════════════════
# APPLE
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AppleTarget:
    name: str
    triple: str
    arch: str
    sdk: str


APPLE_TARGETS: dict[str, AppleTarget] = {
    target.name: target
    for target in (
        AppleTarget("aarch64", "aarch64-apple-ios", "arm64", "iphoneos"),
        AppleTarget("x86_64", "x86_64-apple-ios", "x86_64", "iphonesimulator"),
        AppleTarget("aarch64-sim", "aarch64-apple-ios-sim", "arm64", "iphonesimulator"),
    )
}
MACOS_TARGETS: dict[str, AppleTarget] = {
    target.arch: target
    for target in (
        AppleTarget("macos", "x86_64-apple-darwin", "x86_64", "macosx"),
        AppleTarget("macos-arm", "aarch64-apple-darwin", "arm64", "macosx"),
    )
}
DEFAULT_APPLE_TARGET = "aarch64"


def apple_target_for_arch(arch: str, sdk: str) -> Optional[AppleTarget]:
    """Map an Xcode ARCHS entry plus PLATFORM_NAME to a Rust target."""
    if sdk == "macosx":
        return MACOS_TARGETS.get(arch)
    return next(
        (t for t in APPLE_TARGETS.values() if t.arch == arch and t.sdk == sdk),
        None,
    )


# ── Shared ───────────────────────────────────────────────────────────────────

def resolve_targets(names: Sequence[str], table: Mapping[str, T], kind: str) -> list[T]:
    resolved = []
    for name in names:
        if name not in table:
            raise TargetInvalid(
                f"`{name}` isn't a valid {kind} target",
                f"Valid targets are {list_display(sorted(table))}",
            )
        resolved.append(table[name])
    return resolved


async def install_all(triples: Sequence[str]):
    for triple in triples:
        await rustc.rustup_add(triple)


def profile_dir(release: bool) -> str:
    return "release" if release else "debug"


def cargo_command(
    subcommand: str,
    triple: str,
    features: Sequence[str] = (),
    no_default_features: bool = False,
    release: bool = False,
    noise: int = 0,
) -> list[str]:
    cmd = [config.CARGO_BIN, subcommand, "--target", triple]
    if release:
        cmd.append("--release")
    if no_default_features:
        cmd.append("--no-default-features")
    if features:
        cmd += ["--features", ",".join(features)]
    if noise >= 2:
        cmd.append("-vv")
    elif noise == 1:
        cmd.append("-v")
    return cmd


async def run_cargo(cmd: list[str], cwd: Path, env: Optional[dict[str, str]] = None):
    rc = await shell.run_passthrough(cmd, cwd=str(cwd), env=env, timeout=config.BUILD_TIMEOUT)
    if rc != 0:
        raise CargoError(f"`cargo {cmd[1]}` failed for {cmd[3]}", f"{shell.display(cmd)} exited with {rc}")


def built_lib_path(root_dir: Path, triple: str, lib_name: str, release: bool) -> Path:
    return Path(root_dir) / "target" / triple / profile_dir(release) / lib_name
