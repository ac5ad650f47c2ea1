"""
doctor.py — Checks the host toolchain and prints a status report.

Each section collects items; an item is a victory, a warning, or a failure,
and a section is as bad as its worst item.
"""

import enum
import logging
import platform as host
import re
import sys
from dataclasses import dataclass, field
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mobkit import __version__, devices, paths, rustc, shell, teams
from mobkit import config as settings
from mobkit.env import AndroidEnv
from mobkit.report import MobkitError

logger = logging.getLogger(__name__)


class Status(enum.IntEnum):
    VICTORY = 0
    WARNING = 1
    FAILURE = 2

    @property
    def icon(self) -> str:
        return {Status.VICTORY: "✅", Status.WARNING: "⚠️", Status.FAILURE: "❌"}[self]


@dataclass
class Item:
    status: Status
    msg: str

    @classmethod
    def victory(cls, msg: str) -> "Item":
        return cls(Status.VICTORY, msg)

    @classmethod
    def warning(cls, msg: str) -> "Item":
        return cls(Status.WARNING, msg)

    @classmethod
    def failure(cls, msg) -> "Item":
        if isinstance(msg, MobkitError):
            msg = str(msg)
        return cls(Status.FAILURE, msg)


@dataclass
class Section:
    title: str
    items: list[Item] = field(default_factory=list)

    def add(self, item: Item) -> "Section":
        self.items.append(item)
        return self

    @property
    def status(self) -> Status:
        return max((item.status for item in self.items), default=Status.VICTORY)


# ── Checks ───────────────────────────────────────────────────────────────────

async def _first_line(cmd: list[str]) -> tuple[bool, str]:
    rc, out, err = await shell.run(cmd)
    if rc != 0:
        return False, (err or out).strip() or f"{cmd[0]} exited with {rc}"
    return True, out.strip().splitlines()[0] if out.strip() else ""


def os_item(platform: str = sys.platform) -> Item:
    if platform == "darwin":
        version = host.mac_ver()[0]
        return Item.victory(f"macOS v{version}") if version else Item.warning("Failed to detect macOS version")
    return Item.victory(f"{host.system()} {host.release()}")


async def rust_item(platform: str = sys.platform) -> Item:
    try:
        version = await rustc.check_version()
    except MobkitError as err:
        return Item.failure(err)
    if not version.valid(platform):
        return Item.failure(
            f"rustc v{version} is known to break iOS linking; run `rustup update` to get a working version"
        )
    return Item.victory(f"rustc v{version}")


async def check_mobkit(platform: str = sys.platform) -> Section:
    section = Section(f"mobkit {__version__}")
    install_dir = paths.install_dir()
    if install_dir.exists():
        section.add(Item.victory(f"Installed at {paths.contract_home(install_dir)}"))
    else:
        section.add(Item.warning(
            f"The mobkit home directory is missing; checked at {paths.contract_home(install_dir)}"
        ))
    for problem in settings.validate():
        section.add(Item.warning(problem))
    section.add(os_item(platform))
    section.add(await rust_item(platform))
    return section


async def check_apple() -> Section:
    section = Section("Apple developer tools")
    ok, line = await _first_line([settings.XCODEBUILD, "-version"])
    section.add(Item.victory(line) if ok else Item.failure(f"Failed to check Xcode version: {line}"))

    ok, line = await _first_line(["xcode-select", "-p"])
    if ok:
        section.add(Item.victory(f"Active developer dir: {paths.contract_home(line)}"))
    else:
        section.add(Item.failure(f"Failed to get active developer dir: {line}"))

    ok, line = await _first_line([settings.IOS_DEPLOY_BIN, "--version"])
    section.add(Item.victory(f"ios-deploy v{line}") if ok else Item.warning("ios-deploy isn't installed"))

    ok, line = await _first_line([settings.XCODEGEN_BIN, "--version"])
    if ok:
        version = re.sub(r"^Version:\s*", "", line)
        section.add(Item.victory(f"XcodeGen v{version}"))
    else:
        section.add(Item.warning("xcodegen isn't installed"))

    found = await teams.find_development_teams()
    if found:
        section.add(Item.victory("Development teams: " + ", ".join(str(team) for team in found)))
    else:
        section.add(Item.warning("No code signing certificates found; sign in to Xcode with your Apple ID"))
    return section


def check_android(environ=None) -> Section:
    section = Section("Android developer tools")
    try:
        env = AndroidEnv.from_environ(environ)
    except MobkitError as err:
        return section.add(Item.failure(err))
    try:
        section.add(Item.victory(
            f"SDK v{env.sdk_version()} installed at {paths.contract_home(env.sdk_root)}"
        ))
    except MobkitError as err:
        section.add(Item.failure(f"Failed to get SDK version: {err}"))
    try:
        section.add(Item.victory(
            f"NDK {env.ndk.version()} installed at {paths.contract_home(env.ndk.home)}"
        ))
    except MobkitError as err:
        section.add(Item.failure(f"Failed to get NDK version: {err}"))
    return section


async def check_devices(platform: str = sys.platform, environ=None) -> Section:
    section = Section("Connected devices")
    if platform == "darwin":
        try:
            for device in await devices.list_ios_devices():
                section.add(Item.victory(f"{device} (iOS {device.arch})"))
        except MobkitError as err:
            section.add(Item.failure(f"Failed to get iOS device list: {err}"))
    try:
        env = AndroidEnv.from_environ(environ)
    except MobkitError as err:
        # already reported by the Android developer tools section
        logger.info("skipping Android devices: %s", err)
        env = None
    if env is not None:
        try:
            for device in await devices.list_android_devices(env.explicit_env()):
                section.add(Item.victory(f"{device} (Android {device.abi})"))
        except MobkitError as err:
            section.add(Item.failure(f"Failed to get Android device list: {err}"))
    if not section.items:
        section.add(Item.victory("No connected devices were found"))
    return section


async def run_checks(platform: str = sys.platform, environ=None) -> list[Section]:
    sections = [await check_mobkit(platform)]
    if platform == "darwin":
        sections.append(await check_apple())
    sections.append(check_android(environ))
    sections.append(await check_devices(platform, environ))
    return sections


def print_report(sections: list[Section], console: Optional[Console] = None) -> bool:
    """Print every section; returns True when nothing failed."""
    console = console or Console()
    for section in sections:
        table = Table(title=f"{section.status.icon} {escape(section.title)}", title_justify="left",
                      show_header=False, box=None, pad_edge=False)
        table.add_column("", no_wrap=True)
        table.add_column("")
        for item in section.items:
            table.add_row(f"  {item.status.icon}", escape(item.msg))
        console.print(table)
        console.print()
    failed = [section.title for section in sections if section.status is Status.FAILURE]
    if failed:
        console.print(f"[bold red]Problems found in: {escape(', '.join(failed))}")
        return False
    console.print("[bold green]No problems found.")
    return True


async def run(platform: str = sys.platform, console: Optional[Console] = None) -> int:
    sections = await run_checks(platform)
    return 0 if print_report(sections, console) else 1
