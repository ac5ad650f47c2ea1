"""Global pytest configuration for mobkit tests."""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pytest


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


def _ensure_project_on_path() -> None:
    """Allow tests to import the local `mobkit` package without editable installs."""

    root_str = str(_project_root())
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


_ensure_project_on_path()

# Keep user template packs and downloaded tools out of the test run. These
# must be set before mobkit.config is first imported.
os.environ.setdefault("MOBKIT_HOME", str(_project_root() / "tests" / ".mobkit-home"))
os.environ.setdefault("TEMPLATES_DIR", str(_project_root() / "tests" / ".mobkit-home" / "templates"))

from mobkit import shell  # noqa: E402
from mobkit.project_config import Config  # noqa: E402
from mobkit.schema import RawApp, RawApple, RawConfig  # noqa: E402


@dataclass
class Call:
    cmd: list[str]
    cwd: Optional[str] = None
    env: Optional[dict] = None
    stdin: Optional[str] = None


class ShellRecorder:
    """Stands in for `shell.run` / `shell.run_passthrough`; nothing is executed.

    Responses are matched by command prefix, most recently registered first.
    Unmatched commands succeed with empty output.
    """

    def __init__(self):
        self.calls: list[Call] = []
        self.passthrough: list[Call] = []
        self._responses: list[tuple[list[str], tuple[int, str, str]]] = []

    def respond(self, prefix, rc: int = 0, out: str = "", err: str = ""):
        self._responses.insert(0, ([str(part) for part in prefix], (rc, out, err)))

    def _lookup(self, cmd: list[str]) -> tuple[int, str, str]:
        for prefix, result in self._responses:
            if cmd[: len(prefix)] == prefix:
                return result
        return 0, "", ""

    async def run(self, cmd, cwd=None, env=None, timeout=None, stdin=None):
        cmd = [str(part) for part in cmd]
        self.calls.append(Call(cmd, cwd, env, stdin))
        return self._lookup(cmd)

    async def run_passthrough(self, cmd, cwd=None, env=None, timeout=None):
        cmd = [str(part) for part in cmd]
        self.passthrough.append(Call(cmd, cwd, env))
        return self._lookup(cmd)[0]

    @property
    def commands(self) -> list[list[str]]:
        return [call.cmd for call in self.calls]

    @property
    def passthrough_commands(self) -> list[list[str]]:
        return [call.cmd for call in self.passthrough]


@pytest.fixture
def recorder(monkeypatch):
    rec = ShellRecorder()
    monkeypatch.setattr(shell, "run", rec.run)
    monkeypatch.setattr(shell, "run_passthrough", rec.run_passthrough)
    return rec


@pytest.fixture
def app_root(tmp_path):
    root = tmp_path / "my-app"
    root.mkdir()
    (root / "mobile.toml").write_text(
        '[app]\nname = "my-app"\ndomain = "example.com"\n', encoding="utf-8"
    )
    return root


@pytest.fixture
def config(app_root):
    return Config.load(app_root, platform="linux")


@pytest.fixture
def apple_config(app_root):
    raw = RawConfig(
        app=RawApp(name="my-app", domain="example.com"),
        apple=RawApple(development_team="ABCDE12345"),
    )
    return Config.from_raw(app_root, raw, platform="darwin")
