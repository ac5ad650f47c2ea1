"""Per-platform build metadata read from the app's Cargo.toml.

Android settings live under ``[package.metadata.cargo-android]`` and Apple
settings under ``[package.metadata.cargo-apple]`` (with ``ios`` and ``macos``
sub-tables). Unknown keys are ignored so other Cargo tooling can share the
tables.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from mobkit import toml_io
from mobkit.report import MobkitError
from mobkit.schema import format_validation_error

ANDROID_KEY = "cargo-android"
APPLE_KEY = "cargo-apple"
DEFAULT_VALID_ARCHS = ("arm64", "x86_64")


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class MetadataError(MobkitError):
    pass


class MetadataModel(BaseModel):
    model_config = ConfigDict(extra="ignore", alias_generator=_kebab, populate_by_name=True)


# ── Android ──────────────────────────────────────────────────────────────────

class AssetPack(MetadataModel):
    name: str = Field(..., min_length=1)
    delivery_type: Literal["install-time", "fast-follow", "on-demand"] = "install-time"


class AndroidMetadata(MetadataModel):
    supported: bool = True
    features: Optional[List[str]] = None
    app_sources: List[str] = Field(default_factory=list)
    app_plugins: List[str] = Field(default_factory=list)
    project_dependencies: List[str] = Field(default_factory=list)
    app_dependencies: List[str] = Field(default_factory=list)
    app_dependencies_platform: List[str] = Field(default_factory=list)
    asset_packs: List[AssetPack] = Field(default_factory=list)

    @property
    def no_default_features(self) -> bool:
        return self.features is not None

    @property
    def has_code(self) -> bool:
        """Whether the Gradle app module carries Java/Kotlin code of its own."""
        return bool(
            self.app_sources
            or self.app_plugins
            or self.project_dependencies
            or self.app_dependencies
            or self.app_dependencies_platform
        )


# ── Apple ────────────────────────────────────────────────────────────────────

class Pod(MetadataModel):
    name: str = Field(..., min_length=1)
    version: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        return data

    def podfile_line(self) -> str:
        if self.version:
            return f"pod '{self.name}', '{self.version}'"
        return f"pod '{self.name}'"


class BuildScript(MetadataModel):
    name: Optional[str] = None
    script: Optional[str] = None
    path: Optional[str] = None
    shell: Optional[str] = None
    input_files: List[str] = Field(default_factory=list)
    output_files: List[str] = Field(default_factory=list)
    show_env_vars: Optional[bool] = None
    run_only_when_installing: Optional[bool] = None
    based_on_dependency_analysis: Optional[bool] = None

    @model_validator(mode="after")
    def _script_or_path(self) -> "BuildScript":
        if (self.script is None) == (self.path is None):
            raise ValueError("exactly one of `script` or `path` must be set")
        return self

    def to_xcodegen(self) -> Dict[str, Any]:
        """Shape expected by xcodegen's preBuildScripts / postBuildScripts."""
        entry: Dict[str, Any] = {}
        for key, value in (
            ("name", self.name),
            ("script", self.script),
            ("path", self.path),
            ("shell", self.shell),
            ("showEnvVars", self.show_env_vars),
            ("runOnlyWhenInstalling", self.run_only_when_installing),
            ("basedOnDependencyAnalysis", self.based_on_dependency_analysis),
        ):
            if value is not None:
                entry[key] = value
        if self.input_files:
            entry["inputFiles"] = list(self.input_files)
        if self.output_files:
            entry["outputFiles"] = list(self.output_files)
        return entry


class ApplePlatformMetadata(MetadataModel):
    features: Optional[List[str]] = None
    libraries: List[str] = Field(default_factory=list)
    frameworks: List[str] = Field(default_factory=list)
    valid_archs: List[str] = Field(default_factory=lambda: list(DEFAULT_VALID_ARCHS))
    vendor_frameworks: List[str] = Field(default_factory=list)
    vendor_sdks: List[str] = Field(default_factory=list)
    asset_catalogs: List[str] = Field(default_factory=list)
    pods: List[Pod] = Field(default_factory=list)
    pod_options: List[str] = Field(default_factory=list)
    additional_targets: List[str] = Field(default_factory=list)
    pre_build_scripts: List[BuildScript] = Field(default_factory=list)
    post_compile_scripts: List[BuildScript] = Field(default_factory=list)
    post_build_scripts: List[BuildScript] = Field(default_factory=list)
    command_line_arguments: List[str] = Field(default_factory=list)

    @property
    def no_default_features(self) -> bool:
        return self.features is not None


class AppleMetadata(MetadataModel):
    supported: bool = True
    ios: ApplePlatformMetadata = Field(default_factory=ApplePlatformMetadata)
    macos: ApplePlatformMetadata = Field(default_factory=ApplePlatformMetadata)


# ── Merged view ──────────────────────────────────────────────────────────────

def split_features(text: Optional[str]) -> list[str]:
    if not text:
        return []
    return [feature for feature in re.split(r"[\s,]+", text) if feature]


def _merge(*groups: Optional[List[str]]) -> list[str]:
    merged: dict[str, None] = {}
    for group in groups:
        merged.update(dict.fromkeys(group or ()))
    return list(merged)


@dataclass
class Metadata:
    android: AndroidMetadata = field(default_factory=AndroidMetadata)
    apple: AppleMetadata = field(default_factory=AppleMetadata)
    extra_features: list[str] = field(default_factory=list)

    @classmethod
    def from_cargo_toml(cls, data: Dict[str, Any], source: str = "Cargo.toml") -> "Metadata":
        tables = data.get("package", {}).get("metadata", {}) or {}
        try:
            android = AndroidMetadata.model_validate(tables.get(ANDROID_KEY) or {})
            apple = AppleMetadata.model_validate(tables.get(APPLE_KEY) or {})
        except ValidationError as exc:
            raise MetadataError(f"Cargo metadata in {source} invalid", format_validation_error(exc)) from exc
        return cls(android=android, apple=apple)

    @classmethod
    def load(cls, root_dir: Path) -> "Metadata":
        path = Path(root_dir) / "Cargo.toml"
        if not path.is_file():
            return cls()
        try:
            data = toml_io.load_toml(path)
        except toml_io.TomlError as err:
            raise MetadataError("Failed to load Cargo metadata", str(err)) from err
        return cls.from_cargo_toml(data, str(path))

    def add_features(self, features: Optional[str]) -> "Metadata":
        """Merge `--features` from the command line into every platform."""
        self.extra_features = _merge(self.extra_features, split_features(features))
        return self

    def android_features(self) -> list[str]:
        return _merge(self.android.features, self.extra_features)

    def ios_features(self) -> list[str]:
        return _merge(self.apple.ios.features, self.extra_features)

    def macos_features(self) -> list[str]:
        return _merge(self.apple.macos.features, self.extra_features)
