"""
app_config.py — The `[app]` section of mobile.toml, resolved.
"""

import logging
import re
import string
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from mobkit import paths
from mobkit.domain import DomainError, check_domain_syntax, reverse_domain
from mobkit.report import MobkitError
from mobkit.schema import RawApp

logger = logging.getLogger(__name__)

KEY = "app"
DEFAULT_ASSET_DIR = "assets"
DEFAULT_TEMPLATE_PACK = "default"
DEFAULT_DOMAIN = "example.com"

RUST_KEYWORDS = frozenset({
    "abstract", "as", "async", "await", "become", "box", "break", "const", "continue",
    "crate", "do", "dyn", "else", "enum", "extern", "false", "final", "fn", "for", "if",
    "impl", "in", "let", "loop", "macro", "match", "mod", "move", "mut", "override",
    "priv", "pub", "ref", "return", "self", "static", "struct", "super", "trait", "true",
    "try", "type", "typeof", "unsafe", "unsized", "use", "virtual", "where", "while", "yield",
})


class AppConfigError(MobkitError):
    pass


class AppNameError(MobkitError):
    pass


def check_name(name: str) -> None:
    if not name:
        raise AppNameError("Name can't be empty")
    if name[0] in string.digits:
        raise AppNameError(f"\"{name}\" starts with a digit, which is invalid")
    bad_chars = dict.fromkeys(c for c in name if not (c.isascii() and (c.isalnum() or c in "-_")))
    if bad_chars:
        raise AppNameError(
            f"\"{''.join(bad_chars)}\" are not valid characters; "
            "names may only contain ASCII letters, digits, `-` and `_`"
        )
    if name.replace("-", "_") in RUST_KEYWORDS:
        raise AppNameError(f"\"{name}\" is a Rust keyword and cannot be used")


def transliterate_name(text: str) -> str:
    """Best-effort conversion of a directory name into a valid app name."""
    name = re.sub(r"[^A-Za-z0-9_-]+", "-", text.strip()).strip("-_").lower()
    name = name.lstrip(string.digits + "-_")
    return name


def stylize(name: str) -> str:
    return " ".join(word.capitalize() for word in re.split(r"[-_]+", name) if word)


@dataclass(frozen=True)
class App:
    root_dir: Path
    name: str
    stylized_name: str
    domain: str
    asset_dir_rel: str
    template_pack: str

    @classmethod
    def from_raw(cls, root_dir: Path, raw: RawApp) -> "App":
        try:
            check_name(raw.name)
        except AppNameError as err:
            raise AppConfigError(f"`{KEY}.name` invalid", err.msg) from err
        try:
            check_domain_syntax(raw.domain)
        except DomainError as err:
            raise AppConfigError(f"`{KEY}.domain` invalid", err.msg) from err

        if raw.asset_dir == DEFAULT_ASSET_DIR:
            logger.warning(
                "`%s.asset-dir` is set to the default value; you can remove it from your config", KEY
            )
        asset_dir = raw.asset_dir or DEFAULT_ASSET_DIR
        if not paths.under_root(asset_dir, root_dir):
            raise AppConfigError(
                f"`{KEY}.asset-dir` invalid",
                f"{asset_dir} is outside of the app root {root_dir}",
            )

        if raw.template_pack == DEFAULT_TEMPLATE_PACK:
            logger.warning(
                "`%s.template-pack` is set to the default value; you can remove it from your config", KEY
            )

        return cls(
            root_dir=Path(root_dir),
            name=raw.name,
            stylized_name=raw.stylized_name or stylize(raw.name),
            domain=raw.domain,
            asset_dir_rel=asset_dir,
            template_pack=raw.template_pack or DEFAULT_TEMPLATE_PACK,
        )

    @property
    def name_snake(self) -> str:
        return self.name.replace("-", "_")

    @property
    def reverse_domain(self) -> str:
        return reverse_domain(self.domain)

    @property
    def identifier(self) -> str:
        return f"{self.reverse_domain}.{self.name_snake}"

    @property
    def asset_dir(self) -> Path:
        return self.prefix_path(self.asset_dir_rel)

    def prefix_path(self, path) -> Path:
        return paths.prefix_path(self.root_dir, path)

    def unprefix_path(self, path) -> Path:
        return paths.unprefix_path(self.root_dir, path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "root-dir": str(self.root_dir),
            "name": self.name,
            "stylized-name": self.stylized_name,
            "domain": self.domain,
            "asset-dir": self.asset_dir_rel,
            "template-pack": self.template_pack,
        }
