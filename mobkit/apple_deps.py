"""
apple_deps.py — Homebrew and RubyGems packages the Apple toolchain needs.

  xcodegen    → generates the .xcodeproj from project.yml
  ios-deploy  → installs and launches on physical devices
  cocoapods   → `pod install` when the app uses pods
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from mobkit import config, prompt, shell
from mobkit.report import MobkitError

logger = logging.getLogger(__name__)

_GEM_OUTDATED_RE = re.compile(r"^(?P<name>\S+) \((?P<installed>.+) < (?P<latest>.+)\)$")


class DepsError(MobkitError):
    pass


@dataclass(frozen=True)
class PackageSpec:
    name: str
    bin_name: str
    manager: str
    tap: Optional[str] = None

    @classmethod
    def brew(cls, name: str, bin_name: Optional[str] = None, tap: Optional[str] = None) -> "PackageSpec":
        return cls(name, bin_name or name, "brew", tap)

    @classmethod
    def gem(cls, name: str, bin_name: Optional[str] = None) -> "PackageSpec":
        return cls(name, bin_name or name, "gem")

    def present(self) -> bool:
        present = shell.which(self.bin_name) is not None
        logger.info("`%s` command %s", self.bin_name, "present" if present else "absent")
        return present

    async def _run(self, cmd: list[str], action: str):
        rc = await shell.run_passthrough(cmd, timeout=config.BUILD_TIMEOUT)
        if rc != 0:
            raise DepsError(f"Failed to {action} `{self.name}`", f"{shell.display(cmd)} exited with {rc}")

    async def install(self, reinstall: bool = False) -> bool:
        """Install when absent (or always, with `reinstall`). Returns whether anything ran."""
        if self.present() and not reinstall:
            return False
        print(f"Installing `{self.name}`...")
        if self.manager == "brew":
            if self.tap:
                await self._run([config.BREW_BIN, "tap", self.tap], f"tap {self.tap} for")
            await self._run([config.BREW_BIN, "reinstall", self.name], "install")
        else:
            await self._run([config.GEM_BIN, "install", self.name], "install")
        return True

    async def upgrade(self):
        if self.manager == "brew":
            await self._run([config.BREW_BIN, "upgrade", self.name], "upgrade")
        else:
            await self._run([config.GEM_BIN, "update", self.name], "upgrade")


PACKAGES: tuple[PackageSpec, ...] = (
    PackageSpec.brew("xcodegen"),
    PackageSpec.brew("ios-deploy"),
    PackageSpec.gem("cocoapods", "pod"),
)


# ── Outdated ─────────────────────────────────────────────────────────────────

@dataclass
class Formula:
    name: str
    installed_versions: list[str] = field(default_factory=list)
    current_version: str = ""

    def notice(self) -> str:
        if len(self.installed_versions) == 1:
            installed = self.installed_versions[0]
        else:
            installed = f"[{', '.join(self.installed_versions)}]"
        return f"  - `{self.name}` is at {installed}; latest version is {self.current_version}"


def parse_brew_outdated(text: str, names: Sequence[str]) -> list[Formula]:
    data = json.loads(text or "{}")
    return [
        Formula(f["name"], list(f.get("installed_versions", [])), f.get("current_version", ""))
        for f in data.get("formulae", [])
        if f.get("name") in names
    ]


def parse_gem_outdated(text: str, names: Sequence[str]) -> list[Formula]:
    formulae = []
    for line in text.splitlines():
        m = _GEM_OUTDATED_RE.match(line.strip())
        if m and m.group("name") in names:
            formulae.append(Formula(m.group("name"), [m.group("installed")], m.group("latest")))
    return formulae


async def outdated(packages: Sequence[PackageSpec] = PACKAGES) -> list[Formula]:
    brew_names = [p.name for p in packages if p.manager == "brew"]
    gem_names = [p.name for p in packages if p.manager == "gem"]
    stale = []
    if brew_names:
        rc, out, err = await shell.run([config.BREW_BIN, "outdated", "--json=v2"])
        if rc != 0:
            raise DepsError("Failed to check for outdated packages", (out + err).strip())
        try:
            stale += parse_brew_outdated(out, brew_names)
        except json.JSONDecodeError as exc:
            raise DepsError("Failed to parse outdated package list", str(exc)) from exc
    if gem_names:
        rc, out, err = await shell.run([config.GEM_BIN, "outdated"])
        if rc != 0:
            raise DepsError("Failed to check for outdated gems", (out + err).strip())
        stale += parse_gem_outdated(out, gem_names)
    return stale


def print_notice(stale: Sequence[Formula]):
    if not stale:
        print("Apple dependencies are up to date")
        return
    print("Outdated dependencies:")
    for formula in stale:
        print(formula.notice())


async def install_all(non_interactive: bool, reinstall_deps: bool, packages: Sequence[PackageSpec] = PACKAGES):
    for package in packages:
        await package.install(reinstall_deps)
    stale = await outdated(packages)
    print_notice(stale)
    if stale and not non_interactive:
        if prompt.yes_no("Would you like these outdated dependencies to be updated for you?", True):
            by_name = {package.name: package for package in packages}
            for formula in stale:
                await by_name[formula.name].upgrade()
