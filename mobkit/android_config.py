"""
android_config.py — The `[android]` section of mobile.toml, resolved.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from mobkit import paths
from mobkit.app_config import App
from mobkit.report import MobkitError
from mobkit.schema import RawAndroid

logger = logging.getLogger(__name__)

KEY = "android"
DEFAULT_MIN_SDK_VERSION = 24
DEFAULT_VULKAN_VALIDATION = True
DEFAULT_PROJECT_DIR = "gen/android"


class AndroidConfigError(MobkitError):
    pass


def check_project_dir(project_dir: str, root_dir: Path) -> None:
    if not paths.under_root(project_dir, root_dir):
        raise AndroidConfigError(
            f"`{KEY}.project-dir` invalid",
            f"{project_dir} is outside of the app root {root_dir}",
        )
    if " " in project_dir:
        raise AndroidConfigError(
            f"`{KEY}.project-dir` invalid",
            f"{project_dir!r} contains spaces, which the NDK is remarkably intolerant of",
        )


@dataclass(frozen=True)
class AndroidConfig:
    app: App
    min_sdk_version: int = DEFAULT_MIN_SDK_VERSION
    vulkan_validation: bool = DEFAULT_VULKAN_VALIDATION
    project_dir_rel: str = DEFAULT_PROJECT_DIR
    no_default_features: bool = False
    features: tuple[str, ...] = ()

    @classmethod
    def from_raw(cls, app: App, raw: Optional[RawAndroid]) -> "AndroidConfig":
        raw = raw or RawAndroid()
        if raw.project_dir is None:
            logger.info("`%s.project-dir` not set; defaulting to %s", KEY, DEFAULT_PROJECT_DIR)
        elif raw.project_dir == DEFAULT_PROJECT_DIR:
            logger.warning(
                "`%s.project-dir` is set to the default value; you can remove it from your config", KEY
            )
        project_dir = raw.project_dir or DEFAULT_PROJECT_DIR
        check_project_dir(project_dir, app.root_dir)

        return cls(
            app=app,
            min_sdk_version=raw.min_sdk_version or DEFAULT_MIN_SDK_VERSION,
            vulkan_validation=(
                DEFAULT_VULKAN_VALIDATION if raw.vulkan_validation is None else raw.vulkan_validation
            ),
            project_dir_rel=project_dir,
            no_default_features=bool(raw.no_default_features),
            features=tuple(raw.features or ()),
        )

    @property
    def project_dir(self) -> Path:
        return self.app.prefix_path(self.project_dir_rel) / self.app.name

    def project_dir_exists(self) -> bool:
        return self.project_dir.is_dir()

    @property
    def so_name(self) -> str:
        return f"lib{self.app.name_snake}.so"

    def to_dict(self) -> dict[str, Any]:
        return {
            "min-sdk-version": self.min_sdk_version,
            "vulkan-validation": self.vulkan_validation,
            "project-dir": self.project_dir_rel,
            "no-default-features": self.no_default_features,
            "features": list(self.features),
        }
