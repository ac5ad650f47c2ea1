"""
paths.py — Path helpers that keep generated projects inside the app root.
"""

import os
from pathlib import Path
from typing import Optional, Union

from mobkit import config
from mobkit.report import MobkitError

PathLike = Union[str, os.PathLike]


class PathNotPrefixed(MobkitError):
    def __init__(self, path: PathLike, prefix: PathLike):
        super().__init__(f"Path {str(path)!r} didn't have prefix {str(prefix)!r}")
        self.path = Path(path)
        self.prefix = Path(prefix)


def normalize_path(path: PathLike) -> Path:
    """Canonicalize paths that exist; absolutize the rest without touching disk."""
    path = Path(path).expanduser()
    if path.exists():
        return path.resolve()
    return Path(os.path.normpath(os.path.abspath(path)))


def under_root(path: PathLike, root: PathLike) -> bool:
    root = normalize_path(root)
    return normalize_path(root / path).is_relative_to(root)


def prefix_path(root: PathLike, path: PathLike) -> Path:
    return Path(root) / path


def unprefix_path(root: PathLike, path: PathLike) -> Path:
    try:
        return Path(path).relative_to(root)
    except ValueError:
        raise PathNotPrefixed(path, root) from None


def relativize_path(abs_path: PathLike, abs_relative_to: PathLike) -> Path:
    """Walk up from `abs_relative_to` to the common root, then down to `abs_path`."""
    abs_path, abs_relative_to = Path(abs_path), Path(abs_relative_to)
    if not (abs_path.is_absolute() and abs_relative_to.is_absolute()):
        raise ValueError(f"both paths must be absolute: {abs_path}, {abs_relative_to}")
    return Path(os.path.relpath(abs_path, abs_relative_to))


def expand_home(path: PathLike) -> Path:
    return Path(path).expanduser()


def contract_home(path: PathLike) -> str:
    path = Path(path)
    home = Path.home()
    if path.is_relative_to(home):
        return str(Path("~") / path.relative_to(home))
    return str(path)


# ── Install locations ────────────────────────────────────────────────────────

def install_dir() -> Path:
    return expand_home(config.MOBKIT_HOME)


def tools_dir() -> Path:
    return install_dir() / "tools"


def user_templates_dir() -> Path:
    return expand_home(config.TEMPLATES_DIR)


def force_symlink_relative(target: PathLike, link_dir: PathLike, name: Optional[str] = None) -> Path:
    """Link `link_dir/<name>` to `target` by a relative path, replacing any old link.

    `name` defaults to the target's own file name.
    """
    target, link_dir = Path(target), Path(link_dir)
    link = link_dir / (name or target.name)
    if link.is_symlink():
        link.unlink()
    elif link.exists():
        raise FileExistsError(f"{link} exists and isn't a symlink")
    link.symlink_to(os.path.relpath(target, link_dir), target_is_directory=target.is_dir())
    return link
