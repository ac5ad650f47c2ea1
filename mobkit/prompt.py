"""
prompt.py — Terminal prompts used by interactive init.
"""

from typing import Optional, Sequence


def minimal(msg: str) -> str:
    return input(f"{msg}: ").strip()


def default(msg: str, default_value: Optional[str] = None) -> str:
    suffix = f" ({default_value})" if default_value else ""
    answer = input(f"{msg}{suffix}: ").strip()
    return answer or (default_value or "")


def yes_no(msg: str, default_value: Optional[bool] = None) -> bool:
    hint = {True: "[Y/n]", False: "[y/N]", None: "[y/n]"}[default_value]
    while True:
        answer = input(f"{msg} {hint} ").strip().lower()
        if not answer and default_value is not None:
            return default_value
        if answer in ("y", "yes"):
            return True
        if answer in ("n", "no"):
            return False


def list_display(items: Sequence[str]) -> str:
    items = [str(item) for item in items]
    if len(items) <= 1:
        return "".join(items)
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return f"{', '.join(items[:-1])}, and {items[-1]}"


def select(msg: str, choices: Sequence[str], default_index: Optional[int] = None) -> int:
    """Print a numbered list and return the chosen index."""
    for i, choice in enumerate(choices):
        print(f"  [{i}] {choice}")
    while True:
        answer = default(msg, str(default_index) if default_index is not None else None)
        if answer.isascii() and answer.isdigit() and int(answer) < len(choices):
            return int(answer)
        print(f"Please enter a number between 0 and {len(choices) - 1}")
