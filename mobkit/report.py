"""
report.py — User-facing error reports.

Every failure that should reach the user as a message (rather than a
traceback) is a MobkitError. The CLI catches them, renders their Report, and
exits non-zero.
"""

from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from rich.markup import escape

ERROR = "error"
ACTION_REQUEST = "action request"


@dataclass
class Report:
    label: str
    msg: str
    details: str = ""

    def render(self) -> str:
        text = f"{self.label}: {self.msg}"
        if self.details:
            body = "\n".join(f"    {line}" for line in self.details.splitlines())
            text = f"{text}\n{body}"
        return text

    def print(self, console: Optional[Console] = None):
        console = console or Console(stderr=True)
        style = "bold red" if self.label == ERROR else "bold yellow"
        console.print(f"[{style}]{self.label}:[/{style}] {escape(self.msg)}")
        for line in self.details.splitlines():
            console.print(f"    {escape(line)}", highlight=False)


class MobkitError(Exception):
    label = ERROR

    def __init__(self, msg: str, details: str = ""):
        super().__init__(f"{msg}: {details}" if details else msg)
        self.msg = msg
        self.details = details

    def report(self) -> Report:
        return Report(self.label, self.msg, self.details)


class ActionRequest(MobkitError):
    """Something the user has to do before the command can succeed."""

    label = ACTION_REQUEST
