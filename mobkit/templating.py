"""
templating.py — Template packs and {{ placeholder }} substitution.

A pack is a directory tree. Files ending in `.tmpl` are rendered (and lose
the suffix); everything else is copied byte-for-byte. Placeholders are
allowed in path segments too. A pack may name a parent in `.pack.toml`:

    base = "default"

Packs are looked up in the user's template dir first, then the packs that
ship with mobkit.
"""

import enum
import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from mobkit import paths, toml_io
from mobkit.report import MobkitError

logger = logging.getLogger(__name__)

BUILTIN_DIR = Path(__file__).parent / "templates"
PACK_FILE = ".pack.toml"
TEMPLATE_SUFFIX = ".tmpl"

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z0-9_.-]+)\s*\}\}")


class TemplateError(MobkitError):
    pass


class PackLookupError(MobkitError):
    def __init__(self, name: str, tried: Sequence[Path]):
        super().__init__(
            f"Template pack {name!r} not found",
            "Tried:\n" + "\n".join(str(path) for path in tried),
        )
        self.tried = list(tried)


class Filter(enum.Enum):
    ALL = "all"
    MISSING_ONLY = "missing-only"

    def allows(self, dest: Path) -> bool:
        return self is Filter.ALL or not dest.exists()


def search_dirs() -> list[Path]:
    return [paths.user_templates_dir(), BUILTIN_DIR]


@dataclass(frozen=True)
class Pack:
    name: str
    path: Path

    @classmethod
    def lookup(cls, name: str, dirs: Optional[Sequence[Path]] = None) -> "Pack":
        tried = []
        for directory in dirs if dirs is not None else search_dirs():
            candidate = Path(directory) / name
            tried.append(candidate)
            if candidate.is_dir():
                logger.info("using template pack %r from %s", name, candidate)
                return cls(name, candidate)
        raise PackLookupError(name, tried)

    @property
    def base(self) -> Optional[str]:
        pack_file = self.path / PACK_FILE
        if not pack_file.is_file():
            return None
        base = toml_io.load_toml(pack_file).get("base")
        if base is not None and not isinstance(base, str):
            raise TemplateError(f"`base` in {pack_file} must be a string")
        return base

    def resolve_chain(self, dirs: Optional[Sequence[Path]] = None) -> list["Pack"]:
        """Return this pack and its ancestors, root ancestor first."""
        chain = [self]
        current = self
        while (base := current.base) is not None:
            if base in (pack.name for pack in chain):
                names = " -> ".join([pack.name for pack in chain] + [base])
                raise TemplateError("Template pack inheritance has a cycle", names)
            current = Pack.lookup(base, dirs)
            chain.append(current)
        return list(reversed(chain))


# ── Rendering ────────────────────────────────────────────────────────────────

def render_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return "\n".join(render_value(item) for item in value)
    return str(value)


def render_text(text: str, data: dict[str, Any], source: str = "<string>") -> str:
    def replace(m: re.Match) -> str:
        key = m.group(1)
        if key not in data:
            raise TemplateError(f"Unknown template variable {key!r}", f"in {source}")
        return render_value(data[key])

    return _PLACEHOLDER_RE.sub(replace, text)


def planned_files(src: Path, dest: Path, data: dict[str, Any]) -> list[tuple[Path, Path, bool]]:
    """(source, destination, is_template) for every file the pack emits."""
    planned = []
    for source in sorted(p for p in Path(src).rglob("*") if p.is_file()):
        rel = source.relative_to(src)
        if rel.name == PACK_FILE:
            continue
        parts = [render_text(part, data, str(source)) for part in rel.parts]
        is_template = parts[-1].endswith(TEMPLATE_SUFFIX)
        if is_template:
            parts[-1] = parts[-1][: -len(TEMPLATE_SUFFIX)]
        planned.append((source, Path(dest).joinpath(*parts), is_template))
    return planned


def process(src: Path, dest: Path, data: dict[str, Any], filter: Filter = Filter.ALL) -> list[Path]:
    written = []
    for source, target, is_template in planned_files(src, dest, data):
        if not filter.allows(target):
            logger.debug("keeping existing %s", target)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        if is_template:
            text = render_text(source.read_text(encoding="utf-8"), data, str(source))
            target.write_text(text, encoding="utf-8")
        else:
            shutil.copyfile(source, target)
        shutil.copymode(source, target)
        written.append(target)
    logger.info("rendered %d file(s) from %s into %s", len(written), src, dest)
    return written


def process_chain(chain: Sequence[Pack], dest: Path, data: dict[str, Any], filter: Filter = Filter.ALL) -> list[Path]:
    written = []
    for pack in chain:
        written.extend(process(pack.path, dest, data, filter))
    return written


def template_data(config) -> dict[str, Any]:
    """Variables every pack can use, derived from the resolved mobile.toml."""
    app = config.app
    data: dict[str, Any] = {
        "app.name": app.name,
        "app.name-snake": app.name_snake,
        "app.stylized-name": app.stylized_name,
        "app.domain": app.domain,
        "app.reverse-domain": app.reverse_domain,
        "app.identifier": app.identifier,
        "app.asset-dir": app.asset_dir_rel,
        "android.min-sdk-version": config.android.min_sdk_version,
        "android.vulkan-validation": config.android.vulkan_validation,
    }
    apple = config.apple
    data.update({
        "apple.development-team": apple.development_team if apple else "",
        "apple.ios-version": apple.ios_version if apple else "",
        "apple.macos-version": apple.macos_version if apple else "",
        "apple.bundle-version": apple.bundle_version if apple else "",
        "apple.bundle-version-short": apple.short_version if apple else "",
        "apple.use-legacy-build-system": apple.use_legacy_build_system if apple else "",
    })
    return data
