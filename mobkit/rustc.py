"""
rustc.py — rustc version check and rustup target installs.
"""

import logging
import re
import sys
from dataclasses import dataclass
from typing import Optional

from mobkit import config, shell
from mobkit.report import MobkitError
from mobkit.versions import VersionTriple

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(
    r"rustc (?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(-(?P<flavor>\w+)(\.(?P<candidate>\d+))?)?"
    r"( \((?P<hash>\w{9}) (?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})\))?"
)

# rustc releases between these broke linking for iOS targets
LAST_GOOD_STABLE = VersionTriple(1, 45, 2)
NEXT_GOOD_STABLE = VersionTriple(1, 49, 0)
FIRST_GOOD_NIGHTLY = (2020, 10, 24)


class RustcError(MobkitError):
    pass


@dataclass(frozen=True)
class RustVersion:
    triple: VersionTriple
    flavor: Optional[str] = None
    candidate: Optional[str] = None
    hash: Optional[str] = None
    date: Optional[tuple[int, int, int]] = None

    @classmethod
    def parse(cls, text: str) -> "RustVersion":
        m = _VERSION_RE.search(text)
        if not m:
            raise RustcError("Failed to parse `rustc --version` output", text.strip())
        date = None
        if m.group("hash"):
            date = (int(m.group("year")), int(m.group("month")), int(m.group("day")))
        return cls(
            triple=VersionTriple(int(m.group("major")), int(m.group("minor")), int(m.group("patch"))),
            flavor=m.group("flavor"),
            candidate=m.group("candidate"),
            hash=m.group("hash"),
            date=date,
        )

    def valid(self, platform: str = sys.platform) -> bool:
        if platform != "darwin":
            return True
        old_good = self.triple <= LAST_GOOD_STABLE
        if self.date is None:
            logger.warning(
                "output of `rustc --version` didn't contain date info; "
                "assuming the release date is at least 2020-10-24"
            )
            new_good = self.triple >= NEXT_GOOD_STABLE
        else:
            new_good = self.triple >= NEXT_GOOD_STABLE and self.date >= FIRST_GOOD_NIGHTLY
        return old_good or new_good

    def __str__(self) -> str:
        text = str(self.triple)
        if self.flavor:
            text += f"-{self.flavor}"
            if self.candidate:
                text += f".{self.candidate}"
        if self.hash and self.date:
            year, month, day = self.date
            text += f" ({self.hash} {year:04}-{month:02}-{day:02})"
        return text


async def check_version() -> RustVersion:
    rc, out, err = await shell.run([config.RUSTC_BIN, "--version"])
    if rc != 0:
        raise RustcError("Failed to check rustc version", (out + err).strip())
    version = RustVersion.parse(out)
    logger.info("detected rustc version %s", version)
    return version


async def rustup_add(triple: str) -> None:
    rc, out, err = await shell.run([config.RUSTUP_BIN, "target", "add", triple], timeout=config.BUILD_TIMEOUT)
    if rc != 0:
        raise RustcError(f"Failed to install Rust target {triple}", (out + err).strip())
