"""
jnilibs.py — Links built .so files into the Gradle project's jniLibs.
"""

import logging
from pathlib import Path

from mobkit.android_config import AndroidConfig
from mobkit.targets import AndroidTarget

logger = logging.getLogger(__name__)


def path(config: AndroidConfig, abi: str) -> Path:
    return config.project_dir / "app" / "src" / "main" / "jniLibs" / abi


class JniLibs:
    def __init__(self, directory: Path):
        self.directory = directory

    @classmethod
    def create(cls, config: AndroidConfig, target: AndroidTarget) -> "JniLibs":
        directory = path(config, target.abi)
        directory.mkdir(parents=True, exist_ok=True)
        return cls(directory)

    def remove_broken_links(self) -> list[Path]:
        removed = []
        for entry in self.directory.iterdir():
            if entry.is_symlink() and not entry.exists():
                logger.info("deleting broken symlink %s", entry)
                entry.unlink()
                removed.append(entry)
        return removed

    def symlink_lib(self, src: Path) -> Path:
        dest = self.directory / src.name
        if dest.is_symlink() or dest.exists():
            dest.unlink()
        dest.symlink_to(src)
        logger.info("linked %s -> %s", dest, src)
        return dest
