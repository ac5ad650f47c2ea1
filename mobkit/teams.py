"""
teams.py — Apple development teams from the login keychain.
"""

import logging
import re
from dataclasses import dataclass

from mobkit import config, shell

logger = logging.getLogger(__name__)

# 1) 0123456789ABCDEF0123456789ABCDEF01234567 "Apple Development: Jane Doe (ABCDE12345)"
_IDENTITY_RE = re.compile(r'^\s*\d+\)\s+[0-9A-F]{40}\s+"(?P<kind>[^:"]+):\s*(?P<name>.+?)\s+\((?P<id>[A-Z0-9]{10})\)"')


@dataclass(frozen=True)
class Team:
    name: str
    id: str

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


def parse_identities(text: str) -> list[Team]:
    teams: dict[str, Team] = {}
    for line in text.splitlines():
        m = _IDENTITY_RE.match(line)
        if m and m.group("id") not in teams:
            teams[m.group("id")] = Team(name=m.group("name"), id=m.group("id"))
    return list(teams.values())


async def find_development_teams() -> list[Team]:
    rc, out, err = await shell.run([config.SECURITY_BIN, "find-identity", "-v", "-p", "codesigning"])
    if rc != 0:
        logger.warning("`security find-identity` failed: %s", (out + err).strip())
        return []
    teams = parse_identities(out)
    logger.info("found %d development team(s)", len(teams))
    return teams
