"""Pydantic models describing the structure of `mobile.toml`.

These are the raw, as-written shapes. Defaults, path checks, and version
parsing happen when the raw sections are resolved into the frozen configs in
``app_config``, ``android_config`` and ``apple_config``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mobkit.report import MobkitError


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class RawModel(BaseModel):
    """Base for every mobile.toml section: kebab-case keys, no unknown keys."""

    model_config = ConfigDict(extra="forbid", alias_generator=_kebab, populate_by_name=True)

    def to_toml_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class RawApp(RawModel):
    name: str = Field(..., min_length=1)
    stylized_name: Optional[str] = None
    domain: str
    asset_dir: Optional[str] = None
    template_pack: Optional[str] = None


class RawAndroid(RawModel):
    min_sdk_version: Optional[int] = Field(default=None, gt=0)
    vulkan_validation: Optional[bool] = None
    project_dir: Optional[str] = None
    no_default_features: Optional[bool] = None
    features: Optional[List[str]] = None


class RawApple(RawModel):
    development_team: Optional[str] = None
    project_dir: Optional[str] = None
    ios_version: Optional[str] = None
    macos_version: Optional[str] = None
    bundle_version: Optional[str] = None
    bundle_version_short: Optional[str] = None
    use_legacy_build_system: Optional[bool] = None


class RawConfig(RawModel):
    app: RawApp
    android: Optional[RawAndroid] = None
    apple: Optional[RawApple] = None
    env: Optional[Dict[str, Any]] = None


class SchemaError(MobkitError):
    pass


def format_validation_error(exc: ValidationError) -> str:
    lines = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "<root>"
        lines.append(f"`{location}`: {error.get('msg', 'invalid value')}")
    return "\n".join(lines)


def parse_raw(data: Dict[str, Any], source: str) -> RawConfig:
    try:
        return RawConfig.model_validate(data)
    except ValidationError as exc:
        raise SchemaError(f"Config file at {source} invalid", format_validation_error(exc)) from exc
