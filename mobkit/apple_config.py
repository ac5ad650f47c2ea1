"""
apple_config.py — The `[apple]` section of mobile.toml, resolved.

Paths follow Xcode's layout for the generated project:
  <project-dir>/<name>.xcodeproj       → generated by xcodegen
  <project-dir>/<name>.xcworkspace     → only once CocoaPods has run
  <project-dir>/build                  → archives and exported IPAs
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from mobkit import paths
from mobkit.app_config import App
from mobkit.report import MobkitError
from mobkit.schema import RawApple
from mobkit.versions import VersionDouble, VersionError, VersionNumber, VersionTriple

logger = logging.getLogger(__name__)

KEY = "apple"
DEFAULT_PROJECT_DIR = "gen/apple"
DEFAULT_IOS_VERSION = VersionDouble(9, 0)
DEFAULT_MACOS_VERSION = VersionDouble(11, 0)
DEFAULT_BUNDLE_VERSION = VersionNumber(VersionTriple(1, 0, 0))


class AppleConfigError(MobkitError):
    pass


class IpaNotFound(MobkitError):
    def __init__(self, tried: list[Path]):
        super().__init__(
            "IPA not found", "Tried:\n" + "\n".join(str(path) for path in tried)
        )
        self.tried = tried


def _version(raw_value: Optional[str], key: str, parse, default):
    if raw_value is None:
        return default
    try:
        return parse(raw_value)
    except VersionError as err:
        raise AppleConfigError(f"`{KEY}.{key}` invalid", err.msg) from err


@dataclass(frozen=True)
class AppleConfig:
    app: App
    development_team: str
    project_dir_rel: str = DEFAULT_PROJECT_DIR
    ios_version: VersionDouble = DEFAULT_IOS_VERSION
    macos_version: VersionDouble = DEFAULT_MACOS_VERSION
    bundle_version: VersionNumber = DEFAULT_BUNDLE_VERSION
    bundle_version_short: Optional[VersionTriple] = None
    use_legacy_build_system: bool = True

    @classmethod
    def from_raw(cls, app: App, raw: Optional[RawApple]) -> "AppleConfig":
        if raw is None or raw.development_team is None:
            raise AppleConfigError(
                f"`{KEY}.development-team` must be specified",
                "Run `security find-identity -v -p codesigning` to list your teams",
            )
        if not raw.development_team.strip():
            raise AppleConfigError(f"`{KEY}.development-team` is empty")

        if raw.project_dir is None:
            logger.info("`%s.project-dir` not set; defaulting to %s", KEY, DEFAULT_PROJECT_DIR)
        elif raw.project_dir == DEFAULT_PROJECT_DIR:
            logger.warning(
                "`%s.project-dir` is set to the default value; you can remove it from your config", KEY
            )
        project_dir = raw.project_dir or DEFAULT_PROJECT_DIR
        if not paths.under_root(project_dir, app.root_dir):
            raise AppleConfigError(
                f"`{KEY}.project-dir` invalid",
                f"{project_dir} is outside of the app root {app.root_dir}",
            )

        return cls(
            app=app,
            development_team=raw.development_team.strip(),
            project_dir_rel=project_dir,
            ios_version=_version(raw.ios_version, "ios-version", VersionDouble.parse, DEFAULT_IOS_VERSION),
            macos_version=_version(
                raw.macos_version, "macos-version", VersionDouble.parse, DEFAULT_MACOS_VERSION
            ),
            bundle_version=_version(
                raw.bundle_version, "bundle-version", VersionNumber.parse, DEFAULT_BUNDLE_VERSION
            ),
            bundle_version_short=_version(
                raw.bundle_version_short, "bundle-version-short", VersionTriple.parse, None
            ),
            use_legacy_build_system=(
                True if raw.use_legacy_build_system is None else raw.use_legacy_build_system
            ),
        )

    @property
    def short_version(self) -> VersionTriple:
        return self.bundle_version_short or self.bundle_version.triple

    # ── Paths ─────────────────────────────────────────────────────────────

    @property
    def project_dir(self) -> Path:
        return self.app.prefix_path(self.project_dir_rel)

    def project_dir_exists(self) -> bool:
        return self.project_dir.is_dir()

    @property
    def workspace_path(self) -> Path:
        root_workspace = self.project_dir / f"{self.app.name}.xcworkspace"
        if root_workspace.exists():
            return root_workspace
        return self.project_dir / f"{self.app.name}.xcodeproj" / "project.xcworkspace"

    @property
    def archive_dir(self) -> Path:
        return self.project_dir / "build"

    @property
    def export_dir(self) -> Path:
        return self.project_dir / "build"

    @property
    def export_plist_path(self) -> Path:
        return self.project_dir / "ExportOptions.plist"

    @property
    def archive_path(self) -> Path:
        return self.archive_dir / f"{self.scheme}.xcarchive"

    def ipa_path(self) -> Path:
        # Xcode has named the export both ways
        tried = [self.export_dir / f"{self.scheme}.ipa", self.export_dir / f"{self.app.name}.ipa"]
        for path in tried:
            found = path.is_file()
            logger.info("IPA %sfound at %s", "" if found else "not ", path)
            if found:
                return path
        raise IpaNotFound(tried)

    @property
    def app_path(self) -> Path:
        return self.export_dir / "Payload" / f"{self.app.name}.app"

    @property
    def scheme(self) -> str:
        return f"{self.app.name}_iOS"

    def to_dict(self) -> dict[str, Any]:
        return {
            "development-team": self.development_team,
            "project-dir": self.project_dir_rel,
            "ios-version": str(self.ios_version),
            "macos-version": str(self.macos_version),
            "bundle-version": str(self.bundle_version),
            "bundle-version-short": str(self.short_version),
            "use-legacy-build-system": self.use_legacy_build_system,
        }
