"""
dot_cargo.py — The app's .cargo/config.toml.

mobkit owns the `[target.<triple>]` entries for mobile targets and the
`[env]` table; everything else already in the file is kept as-is.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from mobkit import toml_io

logger = logging.getLogger(__name__)


@dataclass
class DotCargoTarget:
    ar: Optional[str] = None
    linker: Optional[str] = None
    rustflags: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.ar or self.linker or self.rustflags)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.ar:
            data["ar"] = self.ar
        if self.linker:
            data["linker"] = self.linker
        if self.rustflags:
            data["rustflags"] = list(self.rustflags)
        return data


class DotCargo:
    def __init__(self, root_dir: Path, data: Optional[dict[str, Any]] = None):
        self.root_dir = Path(root_dir)
        self.data = data if data is not None else {}

    @property
    def dir(self) -> Path:
        return self.root_dir / ".cargo"

    @property
    def path(self) -> Path:
        return self.dir / "config.toml"

    @classmethod
    def load(cls, root_dir: Path) -> "DotCargo":
        dot_cargo = cls(root_dir)
        old_path = dot_cargo.dir / "config"
        if old_path.is_file():
            if dot_cargo.path.exists():
                logger.warning("both %s and %s exist; ignoring the old one", old_path, dot_cargo.path)
            else:
                logger.info("migrating %s to %s", old_path, dot_cargo.path)
                old_path.rename(dot_cargo.path)
        if dot_cargo.path.is_file():
            dot_cargo.data = toml_io.load_toml(dot_cargo.path)
        return dot_cargo

    def insert_target(self, triple: str, target: DotCargoTarget):
        if target.is_empty():
            logger.debug("not inserting empty target config for %s", triple)
            return
        targets = self.data.setdefault("target", {})
        entry = targets.setdefault(triple, {})
        entry.update(target.to_dict())

    def set_env(self, env: dict[str, Any]):
        if env:
            self.data.setdefault("env", {}).update(env)

    def write(self) -> Path:
        logger.info("writing %s", self.path)
        toml_io.write_toml(self.path, self.data)
        return self.path
