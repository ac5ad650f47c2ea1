"""
config.py — Environment loading for mobkit.
Tool binaries, install locations, and timeouts. Project settings live in
mobile.toml and are handled by project_config.py.
"""

import os
import shutil
from dotenv import load_dotenv

load_dotenv()

# ── Install ──────────────────────────────────────────────────────────────────
MOBKIT_HOME: str = os.getenv("MOBKIT_HOME", os.path.expanduser("~/.mobkit"))
TEMPLATES_DIR: str = os.getenv("TEMPLATES_DIR", os.path.join(MOBKIT_HOME, "templates"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "")

# ── Rust ─────────────────────────────────────────────────────────────────────
CARGO_BIN: str = os.getenv("CARGO_BIN", "cargo")
RUSTUP_BIN: str = os.getenv("RUSTUP_BIN", "rustup")
RUSTC_BIN: str = os.getenv("RUSTC_BIN", "rustc")
GIT_BIN: str = os.getenv("GIT_BIN", "git")

# ── Android ──────────────────────────────────────────────────────────────────
ADB_BIN: str = os.getenv("ADB_BIN", "adb")
JAVA_BIN: str = os.getenv("JAVA_BIN", "java")
BUNDLETOOL_VERSION: str = os.getenv("BUNDLETOOL_VERSION", "1.8.0")
ANDROID_STUDIO_BIN: str = os.getenv("ANDROID_STUDIO_BIN", "studio.sh")

# ── Apple ────────────────────────────────────────────────────────────────────
XCODEBUILD: str = os.getenv("XCODEBUILD", "xcodebuild")
XCODEGEN_BIN: str = os.getenv("XCODEGEN_BIN", "xcodegen")
POD_BIN: str = os.getenv("POD_BIN", "pod")
IOS_DEPLOY_BIN: str = os.getenv("IOS_DEPLOY_BIN", "ios-deploy")
SECURITY_BIN: str = os.getenv("SECURITY_BIN", "security")

# ── Package managers ─────────────────────────────────────────────────────────
BREW_BIN: str = os.getenv("BREW_BIN", "brew")
GEM_BIN: str = os.getenv("GEM_BIN", "gem")

# ── Limits ───────────────────────────────────────────────────────────────────
COMMAND_TIMEOUT: int = int(os.getenv("COMMAND_TIMEOUT", "60"))
BUILD_TIMEOUT: int = int(os.getenv("BUILD_TIMEOUT", "900"))
DOWNLOAD_TIMEOUT: int = int(os.getenv("DOWNLOAD_TIMEOUT", "120"))


def validate() -> list[str]:
    problems = []
    for name in (CARGO_BIN, RUSTUP_BIN, GIT_BIN):
        if not shutil.which(name):
            problems.append(f"{name} not found on PATH")
    if COMMAND_TIMEOUT <= 0 or BUILD_TIMEOUT <= 0:
        problems.append("COMMAND_TIMEOUT and BUILD_TIMEOUT must be positive")
    if not BUNDLETOOL_VERSION.replace(".", "").isdigit():
        problems.append(f"BUNDLETOOL_VERSION {BUNDLETOOL_VERSION!r} is not a version number")
    return problems


def print_config_summary():
    print(f"  Home:            {MOBKIT_HOME}")
    print(f"  Templates:       {TEMPLATES_DIR}")
    print(f"  Cargo:           {CARGO_BIN} (rustup: {RUSTUP_BIN})")
    print(f"  adb:             {ADB_BIN}")
    print(f"  bundletool:      {BUNDLETOOL_VERSION} (java: {JAVA_BIN})")
    print(f"  xcodebuild:      {XCODEBUILD}")
    print(f"  xcodegen:        {XCODEGEN_BIN}")
    print(f"  CocoaPods:       {POD_BIN}")
    print(f"  Timeouts:        command {COMMAND_TIMEOUT}s, build {BUILD_TIMEOUT}s")
