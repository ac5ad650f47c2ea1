"""
project_config.py — Find, load, generate, and write mobile.toml.

The config file marks the app root: every command walks up from the working
directory until it finds one. `init` in a directory without one generates
it, by prompting or (with --non-interactive) by detection.
"""

import enum
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from mobkit import prompt, teams, toml_io
from mobkit.android_config import AndroidConfig
from mobkit.app_config import (
    DEFAULT_DOMAIN,
    App,
    AppNameError,
    check_name,
    stylize,
    transliterate_name,
)
from mobkit.apple_config import AppleConfig
from mobkit.domain import DomainError, check_domain_syntax
from mobkit.report import ActionRequest, MobkitError
from mobkit.schema import RawApp, RawApple, RawConfig, parse_raw

logger = logging.getLogger(__name__)

FILE_NAME = "mobile.toml"


class Origin(enum.Enum):
    FRESHLY_MINTED = "freshly-minted"
    LOADED = "loaded"

    @property
    def freshly_minted(self) -> bool:
        return self is Origin.FRESHLY_MINTED


class LoadError(MobkitError):
    pass


class GenError(MobkitError):
    pass


def discover_root(cwd) -> Optional[Path]:
    cwd = Path(cwd).resolve()
    for directory in (cwd, *cwd.parents):
        path = directory / FILE_NAME
        logger.debug("looking for config file at %s", path)
        if path.is_file():
            logger.info("found config file at %s", path)
            return directory
    logger.info("no config file was ever found")
    return None


def load_raw(cwd) -> Optional[tuple[Path, RawConfig]]:
    root_dir = discover_root(cwd)
    if root_dir is None:
        return None
    path = root_dir / FILE_NAME
    try:
        data = toml_io.load_toml(path)
    except toml_io.TomlError as err:
        raise LoadError("Failed to load config", str(err)) from err
    return root_dir, parse_raw(data, str(path))


def write_raw(root_dir: Path, raw: RawConfig) -> Path:
    path = Path(root_dir) / FILE_NAME
    logger.info("writing config to %s", path)
    toml_io.write_toml(path, raw.to_toml_dict())
    return path


# ── Generation ───────────────────────────────────────────────────────────────

async def detect_raw(cwd, platform: str = sys.platform) -> RawConfig:
    dir_name = Path(cwd).resolve().name
    name = transliterate_name(dir_name)
    try:
        check_name(name)
    except AppNameError as err:
        raise GenError(
            "Failed to detect `app` config",
            f"Couldn't derive an app name from {dir_name!r}: {err.msg}",
        ) from err

    apple = None
    if platform == "darwin":
        found = await teams.find_development_teams()
        if not found:
            raise GenError(
                "Failed to detect `apple` config",
                "No code signing certificates were found. "
                "Sign in to Xcode with your Apple ID, then try again.",
            )
        apple = RawApple(development_team=found[0].id)
    return RawConfig(app=RawApp(name=name, domain=DEFAULT_DOMAIN), apple=apple)


def _prompt_valid(msg: str, default_value: Optional[str], check, errors) -> str:
    while True:
        value = prompt.default(msg, default_value)
        try:
            check(value)
            return value
        except errors as err:
            print(f"Sorry! {err.msg}")


async def prompt_raw(cwd, platform: str = sys.platform) -> RawConfig:
    default_name = transliterate_name(Path(cwd).resolve().name) or None
    name = _prompt_valid("Project name", default_name, check_name, AppNameError)
    default_stylized = stylize(name)
    stylized_name = prompt.default("Stylized name", default_stylized)
    domain = _prompt_valid("Domain", DEFAULT_DOMAIN, check_domain_syntax, DomainError)
    app = RawApp(
        name=name,
        stylized_name=stylized_name if stylized_name != default_stylized else None,
        domain=domain,
    )

    apple = None
    if platform == "darwin":
        found = await teams.find_development_teams()
        if found:
            index = prompt.select("Apple development team", [str(team) for team in found], 0)
            team_id = found[index].id
        else:
            print("No code signing certificates were found; enter your team ID manually.")
            team_id = ""
            while not team_id:
                team_id = prompt.minimal("Apple development team ID")
        apple = RawApple(development_team=team_id)
    return RawConfig(app=app, apple=apple)


# ── Config ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Config:
    app: App
    android: AndroidConfig
    apple: Optional[AppleConfig] = None
    env: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, root_dir: Path, raw: RawConfig, platform: str = sys.platform) -> "Config":
        app = App.from_raw(root_dir, raw.app)
        apple = None
        # macOS always needs the Apple section; elsewhere it is validated only when written
        if raw.apple is not None or platform == "darwin":
            apple = AppleConfig.from_raw(app, raw.apple)
        android = AndroidConfig.from_raw(app, raw.android)
        return cls(app=app, android=android, apple=apple, env=dict(raw.env or {}))

    @classmethod
    def load(cls, cwd, platform: str = sys.platform) -> Optional["Config"]:
        loaded = load_raw(cwd)
        if loaded is None:
            return None
        root_dir, raw = loaded
        return cls.from_raw(root_dir, raw, platform)

    @classmethod
    def load_or_raise(cls, cwd, platform: str = sys.platform) -> "Config":
        config = cls.load(cwd, platform)
        if config is None:
            raise ActionRequest(
                f"No {FILE_NAME} found in {Path(cwd).resolve()} or any parent directory",
                "Run `mobkit init` to create one.",
            )
        return config

    @classmethod
    async def gen(cls, cwd, non_interactive: bool, platform: str = sys.platform) -> "Config":
        if non_interactive:
            raw = await detect_raw(cwd, platform)
        else:
            raw = await prompt_raw(cwd, platform)
        root_dir = Path(cwd).resolve()
        config = cls.from_raw(root_dir, raw, platform)
        logger.info("generated config: %s", config.to_dict())
        write_raw(root_dir, raw)
        return config

    @classmethod
    async def load_or_gen(
        cls, cwd, non_interactive: bool, platform: str = sys.platform
    ) -> tuple["Config", Origin]:
        config = cls.load(cwd, platform)
        if config is not None:
            return config, Origin.LOADED
        return await cls.gen(cwd, non_interactive, platform), Origin.FRESHLY_MINTED

    @property
    def path(self) -> Path:
        return self.app.root_dir / FILE_NAME

    def require_apple(self) -> AppleConfig:
        if self.apple is None:
            raise ActionRequest(
                "Apple support isn't configured",
                f"Add an `[apple]` section with `development-team` to {self.path}",
            )
        return self.apple

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"app": self.app.to_dict(), "android": self.android.to_dict()}
        if self.apple is not None:
            data["apple"] = self.apple.to_dict()
        if self.env:
            data["env"] = dict(self.env)
        return data
